"""
Token management for Spotify Web API access

This module obtains and refreshes the access token used by the catalog client.
Two grants are supported, chosen from the configured credentials:

1. Client credentials (client_id + client_secret): app-only access, enough for
   public tracks, albums, playlists, artists and user profiles.
2. Refresh token (client_id + client_secret + refresh_token): user context,
   needed for private playlists.

Tokens are held in memory only. Expiry is checked with a safety buffer so a
token is never handed out moments before it lapses. Failures are reported as
CredentialError so callers can tell credential problems from lookup problems.
"""

import threading
import time
from typing import Dict, Optional, Any

import requests
import spotipy

from .settings import get_settings
from ..core.exceptions import CredentialError
from ..utils.logger import get_logger


TOKEN_URL = "https://accounts.spotify.com/api/token"


class SpotifyAuth:
    """
    Spotify token acquisition, refresh and client management

    Attributes:
        client_id: Spotify application client ID
        client_secret: Spotify application client secret
        refresh_token: Optional user refresh token
        _token_info: Current token information dictionary
        _spotify_client: Cached spotipy client bound to the current token
    """

    # Refresh this many seconds before the token actually expires
    SAFETY_BUFFER_SECONDS = 60

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None
    ):
        """
        Initialize authentication manager

        Explicit arguments take precedence over configured values.
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self.client_id = client_id or self.settings.spotify.client_id
        self.client_secret = client_secret or self.settings.spotify.client_secret
        self.refresh_token = refresh_token or self.settings.spotify.refresh_token
        self.timeout = self.settings.network.request_timeout

        self._token_info: Optional[Dict[str, Any]] = None
        self._spotify_client: Optional[spotipy.Spotify] = None
        # Concurrent operations verify credentials from worker threads
        self._lock = threading.RLock()

    def is_token_expired(self, token_info: Optional[Dict[str, Any]] = None) -> bool:
        """
        Check if access token is expired or approaching expiration

        Args:
            token_info: Token dictionary, defaults to the current token

        Returns:
            True if missing, expired, or inside the safety buffer
        """
        token_info = token_info if token_info is not None else self._token_info
        if not token_info or 'expires_at' not in token_info:
            return True

        return int(time.time()) >= token_info['expires_at'] - self.SAFETY_BUFFER_SECONDS

    def _request_token(self) -> Dict[str, Any]:
        """
        Request a fresh access token from Spotify's accounts service

        Returns:
            Token information with an absolute 'expires_at' timestamp

        Raises:
            CredentialError: If credentials are missing or the request fails
        """
        if not self.client_id or not self.client_secret:
            raise CredentialError("Spotify client_id and client_secret are required")

        if self.refresh_token:
            data = {
                'grant_type': 'refresh_token',
                'refresh_token': self.refresh_token,
            }
        else:
            data = {'grant_type': 'client_credentials'}

        try:
            response = requests.post(
                TOKEN_URL,
                data=data,
                auth=(self.client_id, self.client_secret),
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=self.timeout
            )
            response.raise_for_status()
            new_token = response.json()
        except requests.RequestException as e:
            raise CredentialError(
                f"Failed to obtain Spotify access token: {e}",
                details={'grant_type': data['grant_type'], 'original_error': str(e)}
            ) from e
        except ValueError as e:
            raise CredentialError(f"Invalid token response from Spotify: {e}") from e

        if 'access_token' not in new_token:
            raise CredentialError("Token response did not contain an access token")

        expires_in = new_token.get('expires_in', 3600)
        # Spotify may rotate the refresh token
        if new_token.get('refresh_token'):
            self.refresh_token = new_token['refresh_token']

        return {
            'access_token': new_token['access_token'],
            'token_type': new_token.get('token_type', 'Bearer'),
            'expires_in': expires_in,
            'expires_at': int(time.time()) + expires_in,
        }

    def verify_credentials(self) -> None:
        """
        Make sure a valid access token is available, refreshing if needed

        Raises:
            CredentialError: If a token cannot be obtained
        """
        with self._lock:
            if not self.is_token_expired():
                return

            self.logger.debug("Spotify access token missing or expired, requesting a new one")
            self._token_info = self._request_token()

            # The cached client is bound to the old token
            self._spotify_client = None

    def get_valid_token(self) -> str:
        """Return a valid access token, refreshing it first if necessary"""
        self.verify_credentials()
        return self._token_info['access_token']

    def get_spotify_client(self) -> spotipy.Spotify:
        """
        Get authenticated Spotify API client instance

        Returns:
            spotipy client carrying the current access token
        """
        with self._lock:
            token = self.get_valid_token()
            if not self._spotify_client:
                self._spotify_client = spotipy.Spotify(
                    auth=token,
                    requests_timeout=self.timeout,
                    retries=0,
                    status_retries=0
                )
            return self._spotify_client

    def revoke_token(self) -> None:
        """Forget the cached token and client"""
        with self._lock:
            self._token_info = None
            self._spotify_client = None
