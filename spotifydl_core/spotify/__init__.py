"""
Spotify integration package
Catalog client and immutable catalog records
"""

from .models import (
    TrackDetails,
    CollectionDetails,
    ArtistDetails,
    UserProfile,
    TrackListing,
    ArtistAlbums,
)
from .client import SpotifyCatalogClient

__all__ = [
    'SpotifyCatalogClient',
    'TrackDetails',
    'CollectionDetails',
    'ArtistDetails',
    'UserProfile',
    'TrackListing',
    'ArtistAlbums',
]
