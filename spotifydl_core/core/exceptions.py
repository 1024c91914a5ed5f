"""
Exception classes for spotifydl-core.

Exception Hierarchy:
    SpotifyDlError (base)
        ConfigError - Configuration values are unusable
        LinkResolutionError - Short link could not be expanded
        CredentialError - Spotify token could not be obtained or refreshed
        CatalogError - Spotify catalog lookup failed
        MediaNotFoundError - No YouTube match for a track
        FetchError - Audio download failed
        TagWriteError - Metadata embedding failed

Single-item operations let every one of these reach the caller. Only the
album/playlist batch downloaders catch them, turning the failed position
into an empty placeholder.
"""


class SpotifyDlError(Exception):
    """
    Base exception for all spotifydl-core errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (track name, URL,
                 original error).

    Example:
        try:
            data = await fetcher.download_track(url)
        except SpotifyDlError as e:
            logger.error(f"Download failed: {e.message}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(SpotifyDlError):
    """
    Raised when the configuration cannot be used.

    Common causes:
        - configuration file is not valid YAML
        - configuration file does not hold a mapping of sections
    """
    pass


class LinkResolutionError(SpotifyDlError):
    """
    Raised when a share-style short link cannot be expanded.

    The short-link landing page is fetched once and scanned for the
    'secondary-action' anchor carrying the canonical open.spotify.com URL.
    If the anchor is missing, or the page itself cannot be fetched, no
    record is resolved.

    Example:
        raise LinkResolutionError(
            "Failed to extract the original URL",
            details={'url': 'https://spotify.link/abc'}
        )
    """
    pass


class CredentialError(SpotifyDlError):
    """
    Raised when Spotify credentials are missing, rejected, or cannot be refreshed.

    Checked before every resolution call, so it surfaces before any request
    for the resource itself is made.
    """
    pass


class CatalogError(SpotifyDlError):
    """
    Raised when a Spotify Web API lookup fails.

    Attributes:
        http_status: HTTP status reported by spotipy, when available.

    Example:
        raise CatalogError(
            "Failed to fetch album",
            details={'album_id': album_id},
            http_status=404
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        http_status: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.http_status = http_status


class MediaNotFoundError(SpotifyDlError):
    """
    Raised when YouTube Music returns no result for a track's search query.

    Attributes:
        track_name: Display name of the track that could not be matched.
    """

    def __init__(self, track_name: str, details: dict | None = None) -> None:
        super().__init__(f"Couldn't get a download URL for the track: {track_name}", details)
        self.track_name = track_name


class FetchError(SpotifyDlError):
    """
    Raised when yt-dlp fails to download or convert the audio stream.

    Common causes:
        - Video unavailable, removed or region-locked
        - FFmpeg missing or conversion failed
        - Disk full or permission denied
    """
    pass


class TagWriteError(SpotifyDlError):
    """
    Raised when metadata cannot be embedded into the audio payload.

    Common causes:
        - Payload is not a readable MPEG audio stream
        - Mutagen failed to save the ID3 header
    """
    pass
