"""
Spotify Web API catalog client

This module wraps spotipy to provide the catalog lookups the fetcher needs:
tracks, albums, playlists, artists, an artist's albums and user profiles,
all addressed by opaque catalog identifiers. Raw API payloads are converted to
the immutable records defined in models.py.

Authentication is delegated to SpotifyAuth. verify_credentials() is exposed
so the orchestrator can check (and refresh) the token before every logical
operation; lookups themselves do not refresh on their own except for a single
rebuild of the client after a 401.

Error Handling Strategy:
- 401 Unauthorized: token is refreshed once and the call repeated; a second
  failure surfaces as CredentialError
- Any other SpotifyException: wrapped in CatalogError with the HTTP status
- No retry/backoff and no rate limiting; spotipy's own retries are disabled

Pagination:
Albums embed only their first 50 tracks and playlists their first 100 items,
so both are completed by walking the `next` links. Artist albums are paged
the same way.

Usage Examples:

    client = SpotifyCatalogClient()
    client.verify_credentials()
    album = client.get_album("4aawyAB9vmqN3uQ7FjRGTy")
    for track_id in album.tracks:
        print(client.get_track(track_id).name)
"""

from typing import Any, Callable, Dict, List, Optional

import spotipy
from spotipy.exceptions import SpotifyException

from ..config.auth import SpotifyAuth
from ..config.settings import get_settings
from ..core.exceptions import CatalogError, CredentialError
from .models import ArtistDetails, CollectionDetails, TrackDetails, UserProfile
from ..utils.logger import get_logger


class SpotifyCatalogClient:
    """
    Catalog lookups by identifier with credential management

    The spotipy connection is created lazily on first use, after the token
    has been obtained through SpotifyAuth.
    """

    def __init__(self, auth: Optional[SpotifyAuth] = None):
        """
        Initialize catalog client

        Args:
            auth: Token manager; a configured SpotifyAuth is built if omitted
        """
        self.auth = auth or SpotifyAuth()
        self.settings = get_settings()
        self.logger = get_logger(__name__)

    @property
    def client(self) -> spotipy.Spotify:
        """Authenticated spotipy client bound to the current token"""
        return self.auth.get_spotify_client()

    @property
    def market(self) -> Optional[str]:
        return self.settings.spotify.market or None

    def verify_credentials(self) -> None:
        """
        Check the access token and refresh it if it expired

        Raises:
            CredentialError: If a valid token cannot be obtained
        """
        self.auth.verify_credentials()

    def _make_request(self, method: Callable[[spotipy.Spotify], Any], description: str) -> Any:
        """
        Run a spotipy call with uniform error translation

        Args:
            method: Callable receiving the spotipy client
            description: What is being fetched, for error messages

        Returns:
            Raw API response

        Raises:
            CredentialError: If the token is rejected twice
            CatalogError: For any other API error
        """
        try:
            return method(self.client)
        except SpotifyException as e:
            if e.http_status != 401:
                raise CatalogError(
                    f"Failed to fetch {description}: {e.msg}",
                    details={'original_error': str(e)},
                    http_status=e.http_status
                ) from e

        # Token rejected - refresh once and repeat
        self.logger.debug(f"Spotify rejected the access token while fetching {description}, refreshing")
        self.auth.revoke_token()
        try:
            return method(self.client)
        except SpotifyException as e:
            if e.http_status == 401:
                raise CredentialError(f"Spotify rejected the refreshed access token: {e.msg}") from e
            raise CatalogError(
                f"Failed to fetch {description}: {e.msg}",
                details={'original_error': str(e)},
                http_status=e.http_status
            ) from e

    def _collect_pages(self, first_page: Dict[str, Any], extract: Callable[[Dict[str, Any]], Optional[str]],
                       description: str) -> List[str]:
        """
        Walk a paging object through its `next` links

        Args:
            first_page: Paging object already received
            extract: Maps an item to an identifier, or None to skip it
            description: What is being paged, for error messages

        Returns:
            Identifiers from every page in order
        """
        ids = []
        page = first_page
        while page:
            for item in page.get('items', []):
                item_id = extract(item) if item else None
                if item_id:
                    ids.append(item_id)
            if not page.get('next'):
                break
            page = self._make_request(lambda sp, current=page: sp.next(current), description)
        return ids

    def get_track(self, track_id: str) -> TrackDetails:
        """Fetch one track by identifier"""
        data = self._make_request(lambda sp: sp.track(track_id, market=self.market), f"track {track_id}")
        return TrackDetails.from_spotify_data(data)

    def get_album(self, album_id: str) -> CollectionDetails:
        """
        Fetch an album with its complete ordered track list

        Args:
            album_id: Spotify album identifier

        Returns:
            CollectionDetails with kind 'album'
        """
        data = self._make_request(lambda sp: sp.album(album_id, market=self.market), f"album {album_id}")
        track_ids = self._collect_pages(
            data.get('tracks', {}),
            lambda item: item.get('id'),
            f"tracks of album {album_id}"
        )
        return CollectionDetails.from_album_data(data, track_ids)

    def get_playlist(self, playlist_id: str) -> CollectionDetails:
        """
        Fetch a playlist with its complete ordered track list

        Episodes and removed tracks have no usable track identifier and are
        left out of the track list; total_tracks still reports the catalog's
        own count.

        Args:
            playlist_id: Spotify playlist identifier

        Returns:
            CollectionDetails with kind 'playlist'
        """
        data = self._make_request(
            lambda sp: sp.playlist(playlist_id, market=self.market),
            f"playlist {playlist_id}"
        )

        def track_id(item: Dict[str, Any]) -> Optional[str]:
            track = item.get('track')
            if not track or track.get('type', 'track') != 'track':
                return None
            return track.get('id')

        track_ids = self._collect_pages(data.get('tracks', {}), track_id, f"tracks of playlist {playlist_id}")
        self.logger.debug(f"Playlist {playlist_id}: {len(track_ids)} tracks")
        return CollectionDetails.from_playlist_data(data, track_ids)

    def get_artist(self, artist_id: str) -> ArtistDetails:
        """Fetch an artist profile by identifier"""
        data = self._make_request(lambda sp: sp.artist(artist_id), f"artist {artist_id}")
        return ArtistDetails.from_spotify_data(data)

    def get_artist_albums(self, artist_id: str) -> List[str]:
        """
        List the identifiers of an artist's albums in catalog order

        Args:
            artist_id: Spotify artist identifier

        Returns:
            Album identifiers
        """
        first_page = self._make_request(
            lambda sp: sp.artist_albums(artist_id, limit=50, country=self.market),
            f"albums of artist {artist_id}"
        )
        return self._collect_pages(first_page, lambda item: item.get('id'), f"albums of artist {artist_id}")

    def get_user(self, user_id: str) -> UserProfile:
        """Fetch a public user profile by identifier"""
        data = self._make_request(lambda sp: sp.user(user_id), f"user {user_id}")
        return UserProfile.from_spotify_data(data)
