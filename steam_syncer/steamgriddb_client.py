"""
SteamGridDB API client for fetching game artwork

Talks to the v2 REST API directly: one name search endpoint plus one image
listing endpoint per asset family. Every API call passes through a shared
RateLimiter; image downloads from the CDN do not.

The python-steamgriddb package is not used: its wrappers cannot combine the
per-kind dimension and type filters with a preferred MIME type, and it would
bring a blocking requests stack next to the aiohttp session used here.
"""

import ssl
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
import certifi

from steam_syncer.utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

API_BASE = "https://www.steamgriddb.com/api/v2"

# Image listing endpoint and query string per artwork kind
KIND_QUERIES = {
    'grid': ('grids', {'dimensions': '600x900', 'types': 'static'}),
    'gridWide': ('grids', {'dimensions': '460x215,920x430', 'types': 'static'}),
    'hero': ('heroes', {'dimensions': '3840x1240,1920x620', 'types': 'static'}),
    'logo': ('logos', {'types': 'static'}),
    'icon': ('icons', {'dimensions': '256', 'types': 'static'}),
}

MIME_PREFERENCE = ('image/png', 'image/jpeg')

# One throttle for the whole process
_shared_rate_limiter = RateLimiter()


class CatalogError(Exception):
    """SteamGridDB returned an HTTP error or ``success: false``."""


def pick_image_url(assets: List[Dict[str, Any]]) -> Optional[str]:
    """Choose the first PNG, else the first JPEG, else the first asset with a URL."""
    with_url = [a for a in assets if isinstance(a, dict) and a.get('url')]
    for mime in MIME_PREFERENCE:
        for asset in with_url:
            if _asset_mime(asset) == mime:
                return asset['url']
    return with_url[0]['url'] if with_url else None


def _asset_mime(asset: Dict[str, Any]) -> str:
    mime = str(asset.get('mime') or '').lower()
    if mime:
        return 'image/jpeg' if mime == 'image/jpg' else mime
    url = str(asset.get('url', '')).lower()
    if url.endswith('.png'):
        return 'image/png'
    if url.endswith(('.jpg', '.jpeg')):
        return 'image/jpeg'
    return ''


class SteamGridDBClient:
    """Client for the SteamGridDB catalog"""

    def __init__(
        self,
        api_key: str,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
        api_base: str = API_BASE,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip('/')
        self.rate_limiter = rate_limiter or _shared_rate_limiter
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def close(self):
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _api_get(self, path: str, params: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        """GET an API endpoint and return its ``data`` list."""
        await self.rate_limiter.wait()

        session = await self._get_session()
        url = f"{self.api_base}/{path}"
        headers = {'Authorization': f"Bearer {self.api_key}"}
        async with session.get(url, params=params, headers=headers) as response:
            if response.status != 200:
                raise CatalogError(f"HTTP {response.status} for {path}")
            body = await response.json()

        if not isinstance(body, dict) or not body.get('success'):
            raise CatalogError(f"Unsuccessful response for {path}")

        data = body.get('data') or []
        return data if isinstance(data, list) else []

    async def search_game(self, title: str) -> Optional[int]:
        """Search by title and return the first matching SteamGridDB game id."""
        results = await self._api_get(f"search/autocomplete/{quote(title, safe='')}")
        if not results:
            logger.debug(f"[SGDB] No results for '{title}'")
            return None

        game_id = results[0].get('id')
        logger.debug(f"[SGDB] Found SteamGridDB ID {game_id} for '{title}'")
        return game_id

    async def get_image_url(self, sgdb_game_id: int, kind: str) -> Optional[str]:
        """Return the preferred image URL of one artwork kind, or None."""
        endpoint, params = KIND_QUERIES[kind]
        assets = await self._api_get(f"{endpoint}/game/{sgdb_game_id}", params=dict(params))
        return pick_image_url(assets)

    async def download_image(self, url: str) -> bytes:
        """Download an image and return its raw bytes."""
        session = await self._get_session()
        async with session.get(url) as response:
            if response.status != 200:
                raise CatalogError(f"HTTP {response.status} downloading {url}")
            return await response.read()
