"""
Data models for Spotify catalog records

This module defines the records the catalog client hands to the orchestrator.
They are built once from Spotify Web API responses and never modified
afterwards.

Models:
- TrackDetails: single track with everything the tag writer needs
- CollectionDetails: album or playlist with its ordered track identifiers
- ArtistDetails: artist profile
- UserProfile: public user profile
- TrackListing: collection name and count with fully resolved tracks
- ArtistAlbums: artist together with the full detail of each album

Every catalog model offers a `from_spotify_data()` factory that reads the raw
API dictionary defensively, falling back to empty values for optional fields.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


def _best_image_url(images: List[Dict[str, Any]]) -> Optional[str]:
    """
    Pick the largest image from a Spotify image array

    Uses area (width * height) as proxy for quality; images without
    dimensions rank lowest but are still used if nothing else exists.
    """
    if not images:
        return None
    best = max(images, key=lambda img: (img.get('width') or 0) * (img.get('height') or 0))
    return best.get('url')


@dataclass(frozen=True)
class TrackDetails:
    """
    Track metadata as resolved from the catalog

    Attributes:
        id: Spotify track identifier
        name: Track title
        artists: Contributor names in catalog order (first one is primary)
        album_name: Name of the parent album
        release_date: Album release date as reported (precision varies)
        cover_url: Largest album artwork URL, if any
        track_number: Position within the album
        disc_number: Disc for multi-disc releases
        duration_ms: Track length in milliseconds
        url: Canonical open.spotify.com link
    """
    id: str
    name: str
    artists: List[str] = field(default_factory=list)
    album_name: str = ""
    release_date: str = ""
    cover_url: Optional[str] = None
    track_number: int = 0
    disc_number: int = 1
    duration_ms: int = 0
    url: str = ""

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'TrackDetails':
        """
        Build a TrackDetails from a full track object

        Args:
            data: Response of GET /tracks/{id}

        Returns:
            TrackDetails instance
        """
        album = data.get('album') or {}
        return cls(
            id=data['id'],
            name=data['name'],
            artists=[artist['name'] for artist in data.get('artists', [])],
            album_name=album.get('name', ''),
            release_date=album.get('release_date', ''),
            cover_url=_best_image_url(album.get('images', [])),
            track_number=data.get('track_number', 0),
            disc_number=data.get('disc_number', 1),
            duration_ms=data.get('duration_ms', 0),
            url=data.get('external_urls', {}).get('spotify', f"https://open.spotify.com/track/{data['id']}")
        )

    @property
    def primary_artist(self) -> str:
        """First contributor, or an empty string for tracks without artists"""
        return self.artists[0] if self.artists else ""

    @property
    def search_query(self) -> str:
        """Free-text query used to find the track on YouTube Music"""
        return f"{self.name} {self.primary_artist}".strip()


@dataclass(frozen=True)
class CollectionDetails:
    """
    Album or playlist with its ordered track identifiers

    Attributes:
        id: Spotify album/playlist identifier
        name: Display name
        kind: 'album' or 'playlist'
        total_tracks: Track count reported by the catalog
        tracks: Track identifiers in collection order
        artists: Album artists (empty for playlists)
        owner: Playlist owner display name (empty for albums)
        release_date: Album release date (empty for playlists)
        cover_url: Largest artwork URL, if any
        url: Canonical open.spotify.com link
    """
    id: str
    name: str
    kind: str
    total_tracks: int
    tracks: List[str] = field(default_factory=list)
    artists: List[str] = field(default_factory=list)
    owner: str = ""
    release_date: str = ""
    cover_url: Optional[str] = None
    url: str = ""

    @classmethod
    def from_album_data(cls, data: Dict[str, Any], track_ids: Optional[List[str]] = None) -> 'CollectionDetails':
        """
        Build a CollectionDetails from an album object

        Args:
            data: Response of GET /albums/{id}
            track_ids: Complete ordered track identifiers when the album has
                       more tracks than the first embedded page

        Returns:
            CollectionDetails with kind 'album'
        """
        if track_ids is None:
            track_ids = [item['id'] for item in data.get('tracks', {}).get('items', []) if item and item.get('id')]

        return cls(
            id=data['id'],
            name=data['name'],
            kind='album',
            total_tracks=data.get('total_tracks', len(track_ids)),
            tracks=track_ids,
            artists=[artist['name'] for artist in data.get('artists', [])],
            release_date=data.get('release_date', ''),
            cover_url=_best_image_url(data.get('images', [])),
            url=data.get('external_urls', {}).get('spotify', f"https://open.spotify.com/album/{data['id']}")
        )

    @classmethod
    def from_playlist_data(cls, data: Dict[str, Any], track_ids: Optional[List[str]] = None) -> 'CollectionDetails':
        """
        Build a CollectionDetails from a playlist object

        Playlist items whose track is missing (removed from the catalog) or is
        a local file without an identifier are skipped.

        Args:
            data: Response of GET /playlists/{id}
            track_ids: Complete ordered track identifiers collected across pages

        Returns:
            CollectionDetails with kind 'playlist'
        """
        tracks_page = data.get('tracks', {})
        if track_ids is None:
            track_ids = [
                item['track']['id']
                for item in tracks_page.get('items', [])
                if item and item.get('track') and item['track'].get('id')
            ]

        return cls(
            id=data['id'],
            name=data['name'],
            kind='playlist',
            total_tracks=tracks_page.get('total', len(track_ids)),
            tracks=track_ids,
            owner=(data.get('owner') or {}).get('display_name') or '',
            cover_url=_best_image_url(data.get('images') or []),
            url=data.get('external_urls', {}).get('spotify', f"https://open.spotify.com/playlist/{data['id']}")
        )


@dataclass(frozen=True)
class ArtistDetails:
    """
    Artist profile

    Attributes:
        id: Spotify artist identifier
        name: Artist display name
        genres: Genre labels assigned by Spotify
        followers: Follower count, if reported
        image_url: Largest profile image URL, if any
        url: Canonical open.spotify.com link
    """
    id: str
    name: str
    genres: List[str] = field(default_factory=list)
    followers: Optional[int] = None
    image_url: Optional[str] = None
    url: str = ""

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'ArtistDetails':
        return cls(
            id=data['id'],
            name=data['name'],
            genres=data.get('genres', []),
            followers=(data.get('followers') or {}).get('total'),
            image_url=_best_image_url(data.get('images', [])),
            url=data.get('external_urls', {}).get('spotify', f"https://open.spotify.com/artist/{data['id']}")
        )


@dataclass(frozen=True)
class UserProfile:
    """Public Spotify user profile"""
    id: str
    display_name: str = ""
    followers: Optional[int] = None
    image_url: Optional[str] = None
    url: str = ""

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'UserProfile':
        return cls(
            id=data['id'],
            display_name=data.get('display_name') or data['id'],
            followers=(data.get('followers') or {}).get('total'),
            image_url=_best_image_url(data.get('images') or []),
            url=data.get('external_urls', {}).get('spotify', f"https://open.spotify.com/user/{data['id']}")
        )


@dataclass(frozen=True)
class TrackListing:
    """Collection name and reported count with every track fully resolved"""
    name: str
    total_tracks: int
    tracks: List[TrackDetails] = field(default_factory=list)


@dataclass(frozen=True)
class ArtistAlbums:
    """Artist together with the full detail of each of its albums, in catalog order"""
    artist: ArtistDetails
    albums: List[CollectionDetails] = field(default_factory=list)
