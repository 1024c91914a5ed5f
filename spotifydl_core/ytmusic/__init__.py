"""
YouTube Music integration package
Media lookup with ytmusicapi and audio download with yt-dlp
"""

from .searcher import YouTubeMusicSearcher
from .downloader import YouTubeMusicDownloader

__all__ = ['YouTubeMusicSearcher', 'YouTubeMusicDownloader']
