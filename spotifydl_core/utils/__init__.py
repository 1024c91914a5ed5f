"""
Utilities package
Link normalization, logging and file helpers
"""

from .logger import get_logger, setup_logging, configure_from_settings
from .helpers import (
    format_file_size,
    ensure_directory,
    remove_file_quietly,
    temporary_path,
)
from .links import (
    normalize_url,
    strip_query,
    is_short_link,
    extract_canonical_href,
    extract_catalog_id,
    parse_spotify_uri,
)

__all__ = [
    # Logger exports
    'get_logger',
    'setup_logging',
    'configure_from_settings',
    # Helper exports
    'format_file_size',
    'ensure_directory',
    'remove_file_quietly',
    'temporary_path',
    # Link exports
    'normalize_url',
    'strip_query',
    'is_short_link',
    'extract_canonical_href',
    'extract_catalog_id',
    'parse_spotify_uri',
]
