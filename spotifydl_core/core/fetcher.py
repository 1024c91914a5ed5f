"""
Resolution and download orchestration

SpotifyFetcher is the caller-facing surface of the library. It turns Spotify
links into catalog records and drives the per-track pipeline:

    resolve -> locate on YouTube Music -> download -> tag

The fetcher owns no protocol logic itself; it holds four collaborators and
sequences their calls:

- SpotifyCatalogClient: catalog lookups and credential checks
- YouTubeMusicSearcher: query -> media reference
- YouTubeMusicDownloader: media reference -> audio file or bytes
- MetadataManager: ID3 tags

All collaborators are blocking; their calls run in worker threads through
asyncio.to_thread so that concurrent operations overlap their I/O waits.

Concurrency:
- Track detail resolution for album/playlist listings and batch downloads
  start every item at once and wait for all of them (asyncio.gather).
  Batch downloads can be capped with download.max_concurrent_downloads.
- Album detail for an artist is fetched one album at a time, in catalog order.
- network.operation_timeout, when set, bounds every catalog call and every
  single-track download.

Error handling:
Single-item operations propagate every error. The album/playlist batch
downloaders are the only place errors are suppressed: a failed track becomes
an empty string at its position, so the result always lines up with the
collection's track order.

Usage Examples:

    fetcher = SpotifyFetcher(client_id="...", client_secret="...")
    track = await fetcher.get_track("https://open.spotify.com/track/...")
    audio = await fetcher.download_track(track)
    results = await fetcher.download_playlist("https://spotify.link/...")
"""

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union

from ..audio.metadata import MetadataManager
from ..config.auth import SpotifyAuth
from ..config.settings import Settings, get_settings
from ..spotify.client import SpotifyCatalogClient
from ..spotify.models import (
    ArtistAlbums,
    ArtistDetails,
    CollectionDetails,
    TrackDetails,
    TrackListing,
    UserProfile,
)
from ..utils.helpers import temporary_path
from ..utils.links import extract_catalog_id, normalize_url
from ..utils.logger import get_logger
from ..ytmusic.downloader import YouTubeMusicDownloader
from ..ytmusic.searcher import YouTubeMusicSearcher
from .exceptions import MediaNotFoundError


T = TypeVar('T')

DownloadResult = Union[bytes, str]

COLLECTION_KINDS = ('album', 'playlist')


class SpotifyFetcher:
    """
    Resolves Spotify links and downloads matching audio

    Collaborators can be injected for testing or customization; otherwise
    they are built from the global settings and the given credentials.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        *,
        catalog: Optional[SpotifyCatalogClient] = None,
        searcher: Optional[YouTubeMusicSearcher] = None,
        downloader: Optional[YouTubeMusicDownloader] = None,
        metadata: Optional[MetadataManager] = None,
        settings: Optional[Settings] = None
    ):
        """
        Initialize fetcher

        Args:
            client_id: Spotify client ID, overrides configuration
            client_secret: Spotify client secret, overrides configuration
            refresh_token: Optional user refresh token, overrides configuration
            catalog: Catalog client to use instead of a new one
            searcher: Media locator to use instead of a new one
            downloader: Media fetcher to use instead of a new one
            metadata: Tag writer to use instead of a new one
            settings: Settings to use instead of the global instance
        """
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        self.catalog = catalog or SpotifyCatalogClient(SpotifyAuth(client_id, client_secret, refresh_token))
        self.searcher = searcher or YouTubeMusicSearcher()
        self.downloader = downloader or YouTubeMusicDownloader()
        self.metadata = metadata or MetadataManager()

        self.max_concurrent_downloads = self.settings.download.max_concurrent_downloads
        self.operation_timeout = self.settings.network.operation_timeout

    async def _with_timeout(self, awaitable: Awaitable[T]) -> T:
        """Await with the configured operation timeout, if any"""
        if self.operation_timeout:
            return await asyncio.wait_for(awaitable, self.operation_timeout)
        return await awaitable

    async def _call(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking collaborator call in a worker thread"""
        return await self._with_timeout(asyncio.to_thread(func, *args))

    async def _verify_credentials(self) -> None:
        await self._call(self.catalog.verify_credentials)

    async def _resolve_id(self, url: str) -> str:
        """Normalize url and read the catalog identifier from it"""
        original_url = await normalize_url(
            url,
            domains=self.settings.network.short_link_domains,
            timeout=self.settings.network.request_timeout
        )
        return extract_catalog_id(original_url)

    # Resolution

    async def get_track(self, url: str) -> TrackDetails:
        """
        Get the track details of the given track URL

        Args:
            url: Track link, short link, URI or bare identifier

        Returns:
            TrackDetails
        """
        await self._verify_credentials()
        track_id = await self._resolve_id(url)
        return await self._call(self.catalog.get_track, track_id)

    async def get_album(self, url: str) -> CollectionDetails:
        """Get the album details of the given album URL"""
        await self._verify_credentials()
        album_id = await self._resolve_id(url)
        return await self._call(self.catalog.get_album, album_id)

    async def get_playlist(self, url: str) -> CollectionDetails:
        """Get the playlist details of the given playlist URL"""
        await self._verify_credentials()
        playlist_id = await self._resolve_id(url)
        return await self._call(self.catalog.get_playlist, playlist_id)

    async def get_artist(self, url: str) -> ArtistDetails:
        """Get the artist details of the given artist URL"""
        await self._verify_credentials()
        artist_id = await self._resolve_id(url)
        return await self._call(self.catalog.get_artist, artist_id)

    async def get_artist_albums(self, url: str) -> ArtistAlbums:
        """
        Get an artist together with the full detail of each of its albums

        Albums are fetched one at a time in catalog order.

        Args:
            url: Artist link

        Returns:
            ArtistAlbums
        """
        await self._verify_credentials()
        artist = await self.get_artist(url)
        album_ids = await self._call(self.catalog.get_artist_albums, artist.id)

        albums = []
        for album_id in album_ids:
            albums.append(await self._call(self.catalog.get_album, album_id))

        self.logger.debug(f"Resolved {len(albums)} albums for artist {artist.name}")
        return ArtistAlbums(artist=artist, albums=albums)

    async def get_spotify_user(self, user_id: str) -> UserProfile:
        """Get a public user profile by identifier"""
        await self._verify_credentials()
        return await self._call(self.catalog.get_user, user_id)

    async def _get_collection(self, url: str, kind: str) -> CollectionDetails:
        if kind not in COLLECTION_KINDS:
            raise ValueError(f"Unsupported collection kind: {kind}")
        return await (self.get_album(url) if kind == 'album' else self.get_playlist(url))

    async def _get_tracks_from_collection(self, url: str, kind: str) -> TrackListing:
        await self._verify_credentials()
        collection = await self._get_collection(url, kind)
        tracks = await asyncio.gather(*(self.get_track(track_id) for track_id in collection.tracks))
        return TrackListing(name=collection.name, total_tracks=collection.total_tracks, tracks=list(tracks))

    async def get_tracks_from_playlist(self, url: str) -> TrackListing:
        """
        Get the info of every track of a playlist

        Track details are resolved concurrently; the order matches the playlist.
        """
        return await self._get_tracks_from_collection(url, 'playlist')

    async def get_tracks_from_album(self, url: str) -> TrackListing:
        """
        Get the info of every track of an album

        Track details are resolved concurrently; the order matches the album.
        """
        return await self._get_tracks_from_collection(url, 'album')

    # Download

    async def _locate(self, track: TrackDetails) -> str:
        """
        Find the media reference for track

        Raises:
            MediaNotFoundError: If YouTube Music has no result
        """
        query = track.search_query
        reference = await self._call(self.searcher.search, query)
        if not reference:
            raise MediaNotFoundError(track.name, details={'track_id': track.id, 'query': query})
        return reference

    async def download_track(
        self,
        track: Union[str, TrackDetails],
        filename: Optional[Union[str, Path]] = None
    ) -> DownloadResult:
        """
        Download and tag a track

        Args:
            track: Track link, or a TrackDetails already resolved
            filename: Where to save the audio; '.mp3' is appended when missing

        Returns:
            Audio bytes if filename is omitted, otherwise the saved file path

        Raises:
            MediaNotFoundError: If no YouTube Music match exists
            FetchError: If the download fails
            TagWriteError: If tagging fails
        """
        return await self._with_timeout(self._download_track(track, filename))

    async def _download_track(
        self,
        track: Union[str, TrackDetails],
        filename: Optional[Union[str, Path]]
    ) -> DownloadResult:
        if isinstance(track, TrackDetails):
            info = track
        else:
            await self._verify_credentials()
            info = await self.get_track(track)

        reference = await self._locate(info)

        if filename is not None:
            saved_path = await asyncio.to_thread(self.downloader.fetch_to_path, reference, filename)
            await asyncio.to_thread(self.metadata.write_tags, info, saved_path)
            self.logger.info(f"Saved '{info.name}' to {saved_path}")
            return saved_path

        # Temporary file is removed when the block exits, failures are only logged
        with temporary_path(self.settings.get_temp_directory(), suffix=f".{self.downloader.audio_format}") as temp_file:
            saved_path = await asyncio.to_thread(self.downloader.fetch_to_path, reference, temp_file)
            await asyncio.to_thread(self.metadata.write_tags, info, saved_path)
            return await asyncio.to_thread(Path(saved_path).read_bytes)

    async def download_track_from_info(self, info: TrackDetails) -> bytes:
        """
        Get the tagged audio of an already resolved track

        Skips credential checks and link resolution entirely.

        Args:
            info: Track details from get_track()

        Returns:
            Audio bytes
        """
        reference = await self._locate(info)
        data = await self._call(self.downloader.fetch_to_memory, reference)
        return await self._call(self.metadata.write_tags, info, data)

    async def _download_batch(self, url: str, kind: str) -> List[DownloadResult]:
        """
        Download every track of an album or playlist

        Failed tracks become '' at their position; the result always has one
        entry per collection track, in collection order.
        """
        await self._verify_credentials()
        collection = await self._get_collection(url, kind)

        limit = self.max_concurrent_downloads
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def download_one(position: int, track_id: str) -> DownloadResult:
            try:
                if semaphore is None:
                    return await self.download_track(track_id)
                async with semaphore:
                    return await self.download_track(track_id)
            except Exception as e:
                self.logger.warning(f"Track {position + 1}/{len(collection.tracks)} ({track_id}) failed: {e}")
                return ''

        results = await asyncio.gather(*(
            download_one(position, track_id) for position, track_id in enumerate(collection.tracks)
        ))

        failed = sum(1 for result in results if result == '')
        self.logger.info(
            f"Downloaded {len(results) - failed}/{len(results)} tracks from {kind} '{collection.name}'"
        )
        return list(results)

    async def download_playlist(self, url: str) -> List[DownloadResult]:
        """
        Download the tracks of a playlist

        Returns:
            One entry per track: bytes, or '' where the track failed
        """
        return await self._download_batch(url, 'playlist')

    async def download_album(self, url: str) -> List[DownloadResult]:
        """
        Download the tracks of an album

        Returns:
            One entry per track: bytes, or '' where the track failed
        """
        return await self._download_batch(url, 'album')
