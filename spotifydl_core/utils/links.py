"""
Spotify link normalization

Turns the different shapes a Spotify link can take into the canonical
open.spotify.com form the catalog identifier is read from:

- canonical links, possibly carrying share-tracking query parameters
  (https://open.spotify.com/track/<id>?si=...)
- share-style short links (https://spotify.link/<code>), expanded by fetching
  the landing page once and reading its 'secondary-action' anchor
- Spotify URIs (spotify:track:<id>)
"""

import re
from typing import Iterable, Optional
from urllib.parse import urlparse

import aiohttp

from ..core.exceptions import LinkResolutionError
from .logger import get_logger


logger = get_logger(__name__)

DEFAULT_SHORT_LINK_DOMAINS = ("spotify.link", "spoti.fi")

# The short-link landing page links to the canonical URL through this anchor
CANONICAL_ANCHOR_PATTERN = re.compile(r'<a class="secondary-action" href="(.*?)"')

SPOTIFY_URI_PATTERN = re.compile(r'^spotify:(track|album|playlist|artist|user):([A-Za-z0-9._-]+)$')


def strip_query(url: str) -> str:
    """Drop everything from the first '?' on"""
    return url.split('?', 1)[0]


def parse_spotify_uri(uri: str) -> Optional[str]:
    """
    Convert a spotify:<kind>:<id> URI into an open.spotify.com URL

    Returns:
        Canonical URL, or None if uri is not a Spotify URI
    """
    match = SPOTIFY_URI_PATTERN.match(uri.strip())
    if not match:
        return None
    kind, catalog_id = match.groups()
    return f"https://open.spotify.com/{kind}/{catalog_id}"


def is_short_link(url: str, domains: Iterable[str] = DEFAULT_SHORT_LINK_DOMAINS) -> bool:
    """
    Check whether url points at a share-style short-link domain

    Args:
        url: Link to inspect
        domains: Known short-link host names

    Returns:
        True if the host is one of domains or a subdomain of one
    """
    host = (urlparse(url).hostname or '').lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in domains)


def extract_canonical_href(html: str) -> str:
    """
    Find the canonical link on a short-link landing page

    Args:
        html: Landing page body

    Returns:
        Canonical URL without query string

    Raises:
        LinkResolutionError: If the anchor is not on the page
    """
    match = CANONICAL_ANCHOR_PATTERN.search(html)
    if not match or not match.group(1):
        raise LinkResolutionError("Failed to extract the original URL")
    return strip_query(match.group(1))


def extract_catalog_id(url: str) -> str:
    """
    Read the catalog identifier from a canonical link

    The identifier is the final path segment; trailing slashes are ignored.
    """
    return url.rstrip('/').split('/')[-1]


async def fetch_page(
    url: str,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: Optional[float] = None
) -> str:
    """
    GET url and return the response body as text

    Args:
        url: Page to fetch
        session: Optional shared session; a temporary one is used otherwise
        timeout: Total request timeout in seconds

    Raises:
        LinkResolutionError: If the request fails
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        if session is not None:
            async with session.get(url, timeout=client_timeout) as response:
                response.raise_for_status()
                return await response.text()

        async with aiohttp.ClientSession(timeout=client_timeout) as own_session:
            async with own_session.get(url) as response:
                response.raise_for_status()
                return await response.text()
    except aiohttp.ClientError as e:
        raise LinkResolutionError(
            f"Failed to fetch short link {url}: {e}",
            details={'url': url, 'original_error': str(e)}
        ) from e


async def normalize_url(
    url: str,
    domains: Iterable[str] = DEFAULT_SHORT_LINK_DOMAINS,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: Optional[float] = None
) -> str:
    """
    Resolve url to its canonical long form without query string

    Short links cost exactly one HTTP request; everything else is resolved
    locally.

    Args:
        url: Canonical link, short link or Spotify URI
        domains: Short-link host names
        session: Optional aiohttp session used for short links
        timeout: Request timeout for short links

    Returns:
        Canonical URL

    Raises:
        LinkResolutionError: If a short link cannot be expanded
    """
    url = url.strip()

    from_uri = parse_spotify_uri(url)
    if from_uri:
        return from_uri

    if is_short_link(url, domains):
        logger.debug(f"Expanding short link {url}")
        html = await fetch_page(url, session=session, timeout=timeout)
        try:
            return extract_canonical_href(html)
        except LinkResolutionError as e:
            e.details['url'] = url
            raise

    return strip_query(url)
