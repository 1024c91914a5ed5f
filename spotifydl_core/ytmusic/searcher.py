"""
YouTube Music lookup for catalog tracks

Finds the media reference (a YouTube watch URL) for a free-text query built
from a track's title and primary artist. The first song result is taken as
the match; when the songs filter returns nothing, the first video result is
used instead if fallback_to_videos is enabled. No ranking or scoring is done
here - result order is whatever YouTube Music returns.

The YTMusic client is created lazily in unauthenticated mode, which gives
access to public search.
"""

from typing import Any, Dict, List, Optional

from ytmusicapi import YTMusic

from ..config.settings import get_settings
from ..utils.logger import get_logger


WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


class YouTubeMusicSearcher:
    """
    Maps search queries to YouTube watch URLs

    Search failures raised by ytmusicapi propagate unchanged; an empty result
    set is not an error and yields None.
    """

    def __init__(self, ytmusic: Optional[YTMusic] = None):
        """
        Initialize searcher

        Args:
            ytmusic: Preconfigured client; created on first search if omitted
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self._ytmusic = ytmusic
        self.max_results = self.settings.ytmusic.max_results
        self.fallback_to_videos = self.settings.ytmusic.fallback_to_videos

    @property
    def ytmusic(self) -> YTMusic:
        """YouTube Music API client with lazy initialization"""
        if not self._ytmusic:
            self._ytmusic = YTMusic()
            self.logger.debug("YouTube Music API initialized")
        return self._ytmusic

    def _search_ytmusic(self, query: str, filter_name: str) -> List[Dict[str, Any]]:
        """
        Run a filtered YouTube Music search

        Args:
            query: Search query string
            filter_name: ytmusicapi filter ('songs' or 'videos')

        Returns:
            Raw result dictionaries
        """
        results = self.ytmusic.search(query=query, filter=filter_name, limit=self.max_results)
        self.logger.debug(f"YTMusic {filter_name} search '{query}' returned {len(results)} results")
        return results

    @staticmethod
    def _first_video_id(results: List[Dict[str, Any]]) -> Optional[str]:
        """Return the videoId of the first result that has one"""
        for result in results:
            video_id = result.get('videoId')
            if video_id:
                return video_id
        return None

    def search(self, query: str) -> Optional[str]:
        """
        Find the best-guess media reference for query

        Args:
            query: Free text, normally '<title> <primary artist>'

        Returns:
            YouTube watch URL, or None when nothing matched
        """
        if not query.strip():
            return None

        video_id = self._first_video_id(self._search_ytmusic(query, 'songs'))

        if not video_id and self.fallback_to_videos:
            self.logger.debug(f"No song results for '{query}', trying videos")
            video_id = self._first_video_id(self._search_ytmusic(query, 'videos'))

        if not video_id:
            self.logger.info(f"No YouTube Music match for '{query}'")
            return None

        return WATCH_URL.format(video_id=video_id)
