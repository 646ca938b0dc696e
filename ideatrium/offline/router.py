"""
Offline request router
Chooses a caching strategy per GET request: network-first for API and AI
traffic, cache-first for static assets, stale-while-revalidate for the
rest. When nothing can be served, navigations get an offline page and other
requests a JSON 503.
"""

import asyncio
from fnmatch import fnmatchcase
from typing import Iterable, List, Optional, Sequence, Set

import httpx

from ideatrium.core.logger import get_logger
from ideatrium.offline.cache import Cache, CacheStorage
from ideatrium.offline.network import NetworkStatus

logger = get_logger(__name__)

CACHE_PREFIX = "ideatrium-"

DEFAULT_STATIC_ASSETS = ("/", "/tasks", "/manifest.json", "/logo.svg", "/favicon.ico")

# Matched anywhere in the full URL; "*" is a wildcard
NETWORK_FIRST = (
    "/api/",
    "https://generativelanguage.googleapis.com/",
    "https://*.supabase.co/",
)

# Matched against the start of the path
CACHE_FIRST = (
    "/logo.svg",
    "/favicon.ico",
    "/screenshots/",
    "/_next/static/",
    "/static/",
)

OFFLINE_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <title>Ideatrium - Offline</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
      body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; margin: 0;
             min-height: 100vh; display: flex; align-items: center;
             justify-content: center; text-align: center; color: white;
             background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); }
      .container { max-width: 400px; padding: 40px; border-radius: 20px;
                   background: rgba(255, 255, 255, 0.1); }
    </style>
  </head>
  <body>
    <div class="container">
      <h1>You're Offline</h1>
      <p>Ideatrium is currently offline. Your ideas are safely stored locally and will sync when you're back online.</p>
      <button onclick="window.location.reload()">Try Again</button>
    </div>
  </body>
</html>
"""

OFFLINE_ERROR = {
    "error": "Offline",
    "message": "This request requires an internet connection.",
}


def is_network_first(url: httpx.URL) -> bool:
    href = str(url)
    return any(fnmatchcase(href, f"*{pattern}*") for pattern in NETWORK_FIRST)


def is_cache_first(url: httpx.URL) -> bool:
    return url.path.startswith(CACHE_FIRST)


def is_navigation(request: httpx.Request) -> bool:
    """Page loads: Sec-Fetch-Mode navigate, or an HTML Accept header"""
    if request.headers.get("sec-fetch-mode", "").lower() == "navigate":
        return True
    return "text/html" in request.headers.get("accept", "")


class OfflineRouter:
    """Caching fetch layer over an httpx transport"""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        storage: Optional[CacheStorage] = None,
        network_status: Optional[NetworkStatus] = None,
        cache_version: str = "v1.0.0",
        static_assets: Sequence[str] = DEFAULT_STATIC_ASSETS,
        base_url: str = "http://localhost:8000",
    ):
        self.storage = storage or CacheStorage()
        self.network_status = network_status or NetworkStatus()
        self.cache_version = cache_version
        self.static_cache_name = f"{CACHE_PREFIX}static-{cache_version}"
        self.dynamic_cache_name = f"{CACHE_PREFIX}dynamic-{cache_version}"
        self.static_assets = list(static_assets)
        self.base_url = httpx.URL(base_url)
        self._client = httpx.AsyncClient(transport=transport)
        self._pending: Set[asyncio.Task] = set()

    @property
    def static_cache(self) -> Cache:
        return self.storage.open(self.static_cache_name)

    @property
    def dynamic_cache(self) -> Cache:
        return self.storage.open(self.dynamic_cache_name)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _absolute(self, url: str) -> httpx.URL:
        return self.base_url.join(url)

    # ==================== Network ====================

    async def _fetch(self, request: httpx.Request) -> httpx.Response:
        """Send to the network, tracking online status from the outcome"""
        try:
            response = await self._client.send(request)
        except httpx.TransportError:
            self.network_status.mark_offline()
            raise
        self.network_status.mark_online()
        return response

    async def _precache(self, urls: Iterable[str], cache: Cache) -> int:
        cached = 0
        for url in urls:
            request = httpx.Request("GET", self._absolute(url))
            try:
                response = await self._fetch(request)
            except httpx.TransportError as e:
                logger.warning(f"[offline] Could not cache {url}: {e.__class__.__name__}")
                continue
            if not response.is_success:
                logger.warning(f"[offline] Could not cache {url}: HTTP {response.status_code}")
                continue
            cache.put(request, response)
            cached += 1
        return cached

    # ==================== Lifecycle ====================

    async def install(self) -> int:
        """Precache the static asset list; returns how many were stored"""
        cached = await self._precache(self.static_assets, self.static_cache)
        logger.info(
            f"✓ Offline cache installed: {cached}/{len(self.static_assets)} static assets"
        )
        return cached

    def activate(self) -> List[str]:
        """Delete partitions left behind by other cache versions"""
        current = {self.static_cache_name, self.dynamic_cache_name}
        removed = [
            name
            for name in self.storage.keys()
            if name.startswith(CACHE_PREFIX) and name not in current
        ]
        for name in removed:
            self.storage.delete(name)
            logger.info(f"[offline] Deleted old cache: {name}")
        return removed

    async def cache_urls(self, urls: Sequence[str]) -> int:
        """Fetch and store the given URLs in the dynamic partition"""
        return await self._precache(urls, self.dynamic_cache)

    async def drain(self) -> None:
        """Wait for background revalidations to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await self.drain()
        await self._client.aclose()

    # ==================== Routing ====================

    async def handle(self, request: httpx.Request) -> httpx.Response:
        """Serve a request through the matching strategy"""
        if request.method.upper() != "GET" or request.url.scheme not in ("http", "https"):
            return await self._fetch(request)

        try:
            if is_network_first(request.url):
                return await self.network_first(request)
            if is_cache_first(request.url):
                return await self.cache_first(request)
            return await self.stale_while_revalidate(request)
        except httpx.TransportError as e:
            logger.warning(f"[offline] Fetch failed for {request.url}: {e.__class__.__name__}")
            return self.offline_response(request)

    async def network_first(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._fetch(request)
        except httpx.TransportError:
            cached = self.storage.match(request)
            if cached is not None:
                logger.debug(f"[offline] Network failed, serving cache for {request.url}")
                return cached
            raise

        if response.is_success:
            self.dynamic_cache.put(request, response)
        return response

    async def cache_first(self, request: httpx.Request) -> httpx.Response:
        cached = self.storage.match(request)
        if cached is not None:
            return cached

        response = await self._fetch(request)
        if response.is_success:
            self.static_cache.put(request, response)
        return response

    async def stale_while_revalidate(self, request: httpx.Request) -> httpx.Response:
        cache = self.dynamic_cache
        cached = cache.match(request)
        if cached is not None:
            task = asyncio.create_task(self._revalidate(request, cache))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            return cached

        response = await self._revalidate(request, cache)
        return response if response is not None else self.offline_response(request)

    async def _revalidate(
        self, request: httpx.Request, cache: Cache
    ) -> Optional[httpx.Response]:
        try:
            response = await self._fetch(request)
        except httpx.TransportError:
            return None
        if response.is_success:
            cache.put(request, response)
        return response

    def offline_response(self, request: httpx.Request) -> httpx.Response:
        if is_navigation(request):
            home = self.storage.match(httpx.Request("GET", request.url.join("/")))
            if home is not None:
                return home
            return httpx.Response(200, html=OFFLINE_PAGE, request=request)
        return httpx.Response(503, json=OFFLINE_ERROR, request=request)


class RouterTransport(httpx.AsyncBaseTransport):
    """httpx transport that sends every request through an OfflineRouter"""

    def __init__(self, router: OfflineRouter):
        self.router = router

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.router.handle(request)
