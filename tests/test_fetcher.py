"""Tests for the SpotifyFetcher orchestration"""

import asyncio
import threading
import time
from unittest.mock import AsyncMock, Mock, patch

import pytest

from spotifydl_core.core.exceptions import (
    CatalogError,
    CredentialError,
    LinkResolutionError,
    MediaNotFoundError,
    TagWriteError,
)
from spotifydl_core.core.fetcher import SpotifyFetcher
from spotifydl_core.spotify.models import ArtistDetails, CollectionDetails

from conftest import FakeDownloader


class TestResolution:
    """Link resolution and catalog lookups"""

    @pytest.mark.asyncio
    async def test_get_track_from_canonical_link(self, fetcher, catalog, tracks):
        track = await fetcher.get_track("https://open.spotify.com/track/track_1?si=abc123")

        assert track is tracks['track_1']
        catalog.verify_credentials.assert_called()
        catalog.get_track.assert_called_once_with('track_1')

    @pytest.mark.asyncio
    async def test_get_track_from_uri(self, fetcher, catalog):
        await fetcher.get_track("spotify:track:track_2")
        catalog.get_track.assert_called_once_with('track_2')

    @pytest.mark.asyncio
    async def test_short_link_is_expanded(self, fetcher, catalog):
        page = '<html><a class="secondary-action" href="https://open.spotify.com/track/track_3?si=x">Open</a></html>'
        with patch('spotifydl_core.utils.links.fetch_page', new=AsyncMock(return_value=page)) as fetch_page:
            await fetcher.get_track("https://spotify.link/abcdef")

        fetch_page.assert_awaited_once()
        catalog.get_track.assert_called_once_with('track_3')

    @pytest.mark.asyncio
    async def test_invalid_credentials_stop_before_lookup(self, fetcher, catalog):
        catalog.verify_credentials.side_effect = CredentialError("bad credentials")

        with pytest.raises(CredentialError):
            await fetcher.get_track("https://open.spotify.com/track/track_1")

        catalog.get_track.assert_not_called()

    @pytest.mark.asyncio
    async def test_unresolvable_short_link_aborts(self, fetcher, catalog):
        with patch('spotifydl_core.utils.links.fetch_page', new=AsyncMock(return_value='<html></html>')):
            with pytest.raises(LinkResolutionError) as exc_info:
                await fetcher.get_track("https://spotify.link/broken")

        assert "Failed to extract the original URL" in str(exc_info.value)
        catalog.get_track.assert_not_called()

    @pytest.mark.asyncio
    async def test_catalog_error_propagates(self, fetcher, catalog):
        catalog.get_track.side_effect = CatalogError("not found", http_status=404)

        with pytest.raises(CatalogError) as exc_info:
            await fetcher.get_track("https://open.spotify.com/track/missing")

        assert exc_info.value.http_status == 404

    @pytest.mark.asyncio
    async def test_get_spotify_user(self, fetcher, catalog):
        catalog.get_user.return_value = "profile"

        assert await fetcher.get_spotify_user("user_1") == "profile"
        catalog.get_user.assert_called_once_with("user_1")


class TestCollections:
    """Album, playlist and artist expansion"""

    @pytest.mark.asyncio
    async def test_playlist_listing_matches_reported_count(self, fetcher, tracks):
        listing = await fetcher.get_tracks_from_playlist("https://open.spotify.com/playlist/playlist_123")

        assert listing.name == 'Test Playlist'
        assert listing.total_tracks == 3
        assert len(listing.tracks) == listing.total_tracks
        assert [t.id for t in listing.tracks] == ['track_1', 'track_2', 'track_3']

    @pytest.mark.asyncio
    async def test_album_listing_keeps_album_order(self, fetcher, catalog):
        listing = await fetcher.get_tracks_from_album("https://open.spotify.com/album/album_123")

        catalog.get_album.assert_called_once_with('album_123')
        assert [t.name for t in listing.tracks] == ['First Song', 'Second Song', 'Third Song']

    @pytest.mark.asyncio
    async def test_listing_fails_when_one_track_fails(self, fetcher, catalog, tracks):
        def get_track(track_id):
            if track_id == 'track_2':
                raise CatalogError("gone", http_status=404)
            return tracks[track_id]

        catalog.get_track.side_effect = get_track

        with pytest.raises(CatalogError):
            await fetcher.get_tracks_from_playlist("https://open.spotify.com/playlist/playlist_123")

    @pytest.mark.asyncio
    async def test_artist_albums_fetched_sequentially(self, fetcher, catalog):
        catalog.get_artist.return_value = ArtistDetails(id='artist_1', name='Test Artist')
        catalog.get_artist_albums.return_value = ['a1', 'a2', 'a3']

        state = {'active': 0, 'max_active': 0, 'order': []}
        lock = threading.Lock()

        def get_album(album_id):
            with lock:
                state['active'] += 1
                state['max_active'] = max(state['max_active'], state['active'])
                state['order'].append(album_id)
            time.sleep(0.01)
            with lock:
                state['active'] -= 1
            return CollectionDetails(id=album_id, name=album_id.upper(), kind='album', total_tracks=0)

        catalog.get_album.side_effect = get_album

        result = await fetcher.get_artist_albums("https://open.spotify.com/artist/artist_1")

        assert result.artist.name == 'Test Artist'
        assert [album.id for album in result.albums] == ['a1', 'a2', 'a3']
        assert state['order'] == ['a1', 'a2', 'a3']
        assert state['max_active'] == 1
        catalog.get_artist_albums.assert_called_once_with('artist_1')

    @pytest.mark.asyncio
    async def test_unknown_collection_kind(self, fetcher):
        with pytest.raises(ValueError):
            await fetcher._get_collection("https://open.spotify.com/show/x", 'show')


class TestDownloadTrack:
    """Single-track download pipeline"""

    @pytest.mark.asyncio
    async def test_download_to_memory_returns_bytes(self, fetcher, metadata, settings):
        audio = await fetcher.download_track("https://open.spotify.com/track/track_1")

        assert isinstance(audio, bytes)
        assert audio.startswith(b"ID3fake-audio")
        metadata.write_tags.assert_called_once()
        # Temporary file removed once its bytes were read
        assert list(settings.get_temp_directory().iterdir()) == []

    @pytest.mark.asyncio
    async def test_download_to_filename_returns_path(self, fetcher, metadata, tracks, tmp_path):
        target = tmp_path / "music" / "first"

        saved = await fetcher.download_track(tracks['track_1'], filename=target)

        assert saved == str(tmp_path / "music" / "first.mp3")
        metadata.write_tags.assert_called_once_with(tracks['track_1'], saved)

    @pytest.mark.asyncio
    async def test_resolved_track_skips_catalog(self, fetcher, catalog, tracks):
        await fetcher.download_track(tracks['track_3'])

        catalog.verify_credentials.assert_not_called()
        catalog.get_track.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_match_raises_media_not_found(self, fetcher, settings):
        with pytest.raises(MediaNotFoundError) as exc_info:
            await fetcher.download_track("https://open.spotify.com/track/track_2")

        assert exc_info.value.track_name == 'Second Song'
        assert "Couldn't get a download URL for the track: Second Song" in str(exc_info.value)
        assert list(settings.get_temp_directory().iterdir()) == []

    @pytest.mark.asyncio
    async def test_download_from_info_tags_bytes(self, fetcher, catalog, metadata, tracks):
        metadata.write_tags.side_effect = lambda track, target: b"tagged:" + target

        audio = await fetcher.download_track_from_info(tracks['track_1'])

        assert audio.startswith(b"tagged:ID3fake-audio")
        catalog.verify_credentials.assert_not_called()

    @pytest.mark.asyncio
    async def test_operation_timeout(self, fetcher, searcher, tracks):
        fetcher.operation_timeout = 0.05
        searcher.search.side_effect = lambda query: time.sleep(0.3) or "https://www.youtube.com/watch?v=slow"

        with pytest.raises(asyncio.TimeoutError):
            await fetcher.download_track(tracks['track_1'])


class TestBatchDownload:
    """Album and playlist batch downloads"""

    @pytest.mark.asyncio
    async def test_failed_track_becomes_placeholder(self, fetcher, settings):
        results = await fetcher.download_playlist("https://open.spotify.com/playlist/playlist_123")

        assert len(results) == 3
        assert isinstance(results[0], bytes)
        assert results[1] == ''
        assert isinstance(results[2], bytes)
        assert results[0].endswith(b"first")
        assert results[2].endswith(b"third")
        assert list(settings.get_temp_directory().iterdir()) == []

    @pytest.mark.asyncio
    async def test_album_batch_keeps_order(self, fetcher, searcher):
        searcher.search.side_effect = lambda query: f"https://www.youtube.com/watch?v={query.split()[0].lower()}"

        results = await fetcher.download_album("https://open.spotify.com/album/album_123")

        assert [r.split(b"v=")[-1] for r in results] == [b"first", b"second", b"third"]

    @pytest.mark.asyncio
    async def test_fetch_error_becomes_placeholder(self, settings, catalog, metadata):
        searcher = Mock()
        searcher.search.side_effect = lambda query: f"https://www.youtube.com/watch?v={query.split()[0].lower()}"
        downloader = FakeDownloader(fail_for=("v=second",))
        fetcher = SpotifyFetcher(
            catalog=catalog, searcher=searcher, downloader=downloader, metadata=metadata, settings=settings
        )

        results = await fetcher.download_playlist("https://open.spotify.com/playlist/playlist_123")

        assert len(results) == 3
        assert results[1] == ''
        assert isinstance(results[0], bytes) and isinstance(results[2], bytes)
        assert list(settings.get_temp_directory().iterdir()) == []

    @pytest.mark.asyncio
    async def test_tag_error_becomes_placeholder(self, fetcher, searcher, metadata, settings):
        searcher.search.side_effect = lambda query: f"https://www.youtube.com/watch?v={query.split()[0].lower()}"

        def write_tags(track, target):
            if track.id == 'track_2':
                raise TagWriteError("Failed to embed metadata", details={'track_id': track.id})
            return target

        metadata.write_tags.side_effect = write_tags

        results = await fetcher.download_album("https://open.spotify.com/album/album_123")

        assert len(results) == 3
        assert results[1] == ''
        assert isinstance(results[0], bytes) and isinstance(results[2], bytes)
        # The downloaded file of the failed track is gone too
        assert list(settings.get_temp_directory().iterdir()) == []

    @pytest.mark.asyncio
    async def test_all_tracks_failing(self, fetcher, searcher):
        searcher.search.side_effect = lambda query: None

        results = await fetcher.download_album("https://open.spotify.com/album/album_123")

        assert results == ['', '', '']

    @pytest.mark.asyncio
    async def test_invalid_credentials_abort_batch(self, fetcher, catalog):
        catalog.verify_credentials.side_effect = CredentialError("bad credentials")

        with pytest.raises(CredentialError):
            await fetcher.download_playlist("https://open.spotify.com/playlist/playlist_123")

        catalog.get_playlist.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrency_limit(self, settings, catalog, searcher, metadata):
        searcher.search.side_effect = lambda query: f"https://www.youtube.com/watch?v={query.split()[0].lower()}"
        downloader = FakeDownloader(delay=0.02)
        settings.download.max_concurrent_downloads = 1

        fetcher = SpotifyFetcher(
            catalog=catalog, searcher=searcher, downloader=downloader, metadata=metadata, settings=settings
        )

        results = await fetcher.download_album("https://open.spotify.com/album/album_123")

        assert all(isinstance(r, bytes) for r in results)
        assert downloader.max_active == 1
