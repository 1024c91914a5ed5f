"""Test configuration and fixtures"""

import threading
from pathlib import Path
from unittest.mock import Mock

import pytest

from spotifydl_core.config.settings import Settings
from spotifydl_core.core.exceptions import FetchError
from spotifydl_core.core.fetcher import SpotifyFetcher
from spotifydl_core.spotify.models import CollectionDetails, TrackDetails


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the user's environment"""
    settings = Settings()
    settings.spotify.client_id = "test_client"
    settings.spotify.client_secret = "test_secret"
    settings.spotify.refresh_token = ""
    settings.download.temp_directory = str(tmp_path / "tmp")
    settings.download.max_concurrent_downloads = None
    settings.metadata.include_album_art = False
    settings.network.operation_timeout = None
    return settings


@pytest.fixture
def sample_track_data():
    """Raw GET /tracks/{id} payload"""
    return {
        'id': 'track_123',
        'name': 'Test Song',
        'artists': [
            {'id': 'artist_123', 'name': 'Test Artist'},
            {'id': 'artist_456', 'name': 'Guest Artist'},
        ],
        'album': {
            'id': 'album_123',
            'name': 'Test Album',
            'release_date': '2023-01-01',
            'images': [
                {'url': 'https://i.scdn.co/image/small', 'width': 64, 'height': 64},
                {'url': 'https://i.scdn.co/image/large', 'width': 640, 'height': 640},
            ],
        },
        'duration_ms': 210000,
        'track_number': 3,
        'disc_number': 1,
        'external_urls': {'spotify': 'https://open.spotify.com/track/track_123'},
    }


@pytest.fixture
def sample_album_data():
    """Raw GET /albums/{id} payload with one embedded tracks page"""
    return {
        'id': 'album_123',
        'name': 'Test Album',
        'total_tracks': 2,
        'release_date': '2023-01-01',
        'artists': [{'id': 'artist_123', 'name': 'Test Artist'}],
        'images': [{'url': 'https://i.scdn.co/image/large', 'width': 640, 'height': 640}],
        'tracks': {
            'items': [{'id': 'track_1'}, {'id': 'track_2'}],
            'next': None,
            'total': 2,
        },
        'external_urls': {'spotify': 'https://open.spotify.com/album/album_123'},
    }


@pytest.fixture
def sample_playlist_data():
    """Raw GET /playlists/{id} payload including a removed track"""
    return {
        'id': 'playlist_123',
        'name': 'Test Playlist',
        'owner': {'id': 'user_1', 'display_name': 'Tester'},
        'images': [],
        'tracks': {
            'items': [
                {'track': {'id': 'track_1', 'type': 'track'}},
                {'track': None},
                {'track': {'id': 'track_2', 'type': 'track'}},
            ],
            'next': None,
            'total': 3,
        },
    }


def make_track(track_id: str, name: str, artist: str = "Test Artist") -> TrackDetails:
    return TrackDetails(
        id=track_id,
        name=name,
        artists=[artist],
        album_name="Test Album",
        release_date="2023",
        track_number=1,
        url=f"https://open.spotify.com/track/{track_id}",
    )


class FakeDownloader:
    """Media fetcher double writing fixed bytes and recording concurrency"""

    audio_format = "mp3"

    def __init__(self, payload: bytes = b"ID3fake-audio", delay: float = 0.0, fail_for: tuple = ()):
        self.payload = payload
        self.delay = delay
        # References containing any of these fail with FetchError
        self.fail_for = fail_for
        self.active = 0
        self.max_active = 0
        self.calls = []
        self._lock = threading.Lock()

    def fetch_to_path(self, reference, destination):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.calls.append(reference)
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            if any(marker in reference for marker in self.fail_for):
                raise FetchError(f"Video unavailable: {reference}", details={'reference': reference})
            path = Path(destination)
            if path.suffix != ".mp3":
                path = path.with_name(path.name + ".mp3")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(self.payload + reference.encode())
            return str(path)
        finally:
            with self._lock:
                self.active -= 1

    def fetch_to_memory(self, reference):
        return self.payload + reference.encode()


@pytest.fixture
def tracks():
    """Three resolved tracks keyed by identifier"""
    return {
        'track_1': make_track('track_1', 'First Song'),
        'track_2': make_track('track_2', 'Second Song'),
        'track_3': make_track('track_3', 'Third Song'),
    }


@pytest.fixture
def catalog(tracks):
    """Catalog client double serving a three-track playlist and album"""
    catalog = Mock()
    catalog.verify_credentials.return_value = None
    catalog.get_track.side_effect = lambda track_id: tracks[track_id]
    catalog.get_playlist.return_value = CollectionDetails(
        id='playlist_123', name='Test Playlist', kind='playlist', total_tracks=3,
        tracks=['track_1', 'track_2', 'track_3'],
    )
    catalog.get_album.return_value = CollectionDetails(
        id='album_123', name='Test Album', kind='album', total_tracks=3,
        tracks=['track_1', 'track_2', 'track_3'],
    )
    return catalog


@pytest.fixture
def searcher():
    """Media locator double that finds everything except 'Second Song'"""
    searcher = Mock()

    def search(query):
        if query.startswith('Second Song'):
            return None
        return f"https://www.youtube.com/watch?v={query.split()[0].lower()}"

    searcher.search.side_effect = search
    return searcher


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def metadata():
    """Tag writer double returning its target unchanged"""
    metadata = Mock()
    metadata.write_tags.side_effect = lambda track, target: target
    return metadata


@pytest.fixture
def fetcher(settings, catalog, searcher, downloader, metadata):
    return SpotifyFetcher(
        catalog=catalog,
        searcher=searcher,
        downloader=downloader,
        metadata=metadata,
        settings=settings,
    )
