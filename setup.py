#!/usr/bin/env python3
"""
Setup configuration for spotifydl-core
Async library resolving Spotify links and downloading matching audio from YouTube Music
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "spotipy>=2.22.1",
    "ytmusicapi>=1.3.2",
    "yt-dlp>=2023.12.30",
    "mutagen>=1.47.0",
    "pyyaml>=6.0.1",
    "requests>=2.31.0",
    "colorama>=0.4.6",
    "python-dotenv>=1.0.0",
    "aiohttp>=3.9.1",
    "Pillow>=10.0.0",
]

setup(
    name="spotifydl-core",
    version="1.0.0",
    author="spotifydl-core contributors",
    description="Resolve Spotify tracks, albums and playlists and download them as tagged MP3s via YouTube Music",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["spotifydl_core", "spotifydl_core.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Framework :: AsyncIO",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Software Development :: Libraries",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
        ],
    },
    keywords="spotify youtube music download playlist album async library",
)
