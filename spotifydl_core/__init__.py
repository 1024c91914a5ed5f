"""
spotifydl-core: download Spotify tracks, albums and playlists through YouTube Music

Resolves Spotify links (canonical, share short links, URIs) into catalog
records with spotipy, finds the matching audio on YouTube Music, downloads it
with yt-dlp and tags it with mutagen. Results come back as MP3 bytes or as a
saved file path.

## Package layout

**Configuration (`config/`)**
- YAML + environment variable settings
- Spotify token acquisition and refresh

**Spotify Integration (`spotify/`)**
- Catalog client for tracks, albums, playlists, artists and users
- Immutable catalog records

**YouTube Music Integration (`ytmusic/`)**
- Query to media reference lookup
- Audio download and MP3 conversion

**Audio (`audio/`)**
- ID3 tag and artwork embedding

**Core (`core/`)**
- SpotifyFetcher, the async entry point
- Exception hierarchy

**Utilities (`utils/`)**
- Link normalization, logging, file helpers

## Usage

    import asyncio
    from spotifydl_core import SpotifyFetcher

    async def main():
        fetcher = SpotifyFetcher(client_id="...", client_secret="...")
        track = await fetcher.get_track("https://open.spotify.com/track/...")
        path = await fetcher.download_track(track, "song.mp3")
        albums = await fetcher.download_album("https://spotify.link/...")

    asyncio.run(main())
"""

__version__ = "1.0.0"
__author__ = "spotifydl-core contributors"
__license__ = "MIT"

from .core.exceptions import (
    SpotifyDlError,
    ConfigError,
    LinkResolutionError,
    CredentialError,
    CatalogError,
    MediaNotFoundError,
    FetchError,
    TagWriteError,
)
from .spotify.models import (
    TrackDetails,
    CollectionDetails,
    ArtistDetails,
    UserProfile,
    TrackListing,
    ArtistAlbums,
)
from .config.settings import Settings, get_settings, reload_settings
from .utils.logger import setup_logging, configure_from_settings
from .core.fetcher import SpotifyFetcher

__all__ = [
    'SpotifyFetcher',
    # Records
    'TrackDetails',
    'CollectionDetails',
    'ArtistDetails',
    'UserProfile',
    'TrackListing',
    'ArtistAlbums',
    # Errors
    'SpotifyDlError',
    'ConfigError',
    'LinkResolutionError',
    'CredentialError',
    'CatalogError',
    'MediaNotFoundError',
    'FetchError',
    'TagWriteError',
    # Configuration
    'Settings',
    'get_settings',
    'reload_settings',
    'setup_logging',
    'configure_from_settings',
]
