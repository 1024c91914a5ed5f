"""
Core package: the SpotifyFetcher orchestrator and the exception hierarchy

Only the exceptions are re-exported; import SpotifyFetcher from
spotifydl_core or spotifydl_core.core.fetcher.
"""

from .exceptions import (
    SpotifyDlError,
    ConfigError,
    LinkResolutionError,
    CredentialError,
    CatalogError,
    MediaNotFoundError,
    FetchError,
    TagWriteError,
)

__all__ = [
    'SpotifyDlError',
    'ConfigError',
    'LinkResolutionError',
    'CredentialError',
    'CatalogError',
    'MediaNotFoundError',
    'FetchError',
    'TagWriteError',
]
