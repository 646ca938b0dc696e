"""
Response cache storage
Named cache partitions keyed by request (method + URL). Stored responses
are replayed as fresh httpx.Response objects on every match.
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import httpx

from ideatrium.core.logger import get_logger

logger = get_logger(__name__)

# Stored bodies are already decoded; these headers would no longer match them
_DROPPED_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


def request_key(request: httpx.Request) -> Tuple[str, str]:
    return request.method.upper(), str(request.url)


@dataclass(frozen=True)
class CachedResponse:
    status_code: int
    headers: Tuple[Tuple[str, str], ...]
    content: bytes

    @classmethod
    def capture(cls, response: httpx.Response) -> "CachedResponse":
        headers = tuple(
            (name, value)
            for name, value in response.headers.multi_items()
            if name.lower() not in _DROPPED_HEADERS
        )
        return cls(response.status_code, headers, response.content)

    def replay(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            self.status_code,
            headers=list(self.headers),
            content=self.content,
            request=request,
        )


class Cache:
    """One named partition"""

    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[Tuple[str, str], CachedResponse] = {}
        self._lock = threading.Lock()

    def put(self, request: httpx.Request, response: httpx.Response) -> None:
        entry = CachedResponse.capture(response)
        with self._lock:
            self._entries[request_key(request)] = entry

    def match(self, request: httpx.Request) -> Optional[httpx.Response]:
        with self._lock:
            entry = self._entries.get(request_key(request))
        return entry.replay(request) if entry else None

    def delete(self, request: httpx.Request) -> bool:
        with self._lock:
            return self._entries.pop(request_key(request), None) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return [url for _, url in self._entries]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheStorage:
    """All partitions, searched in creation order by match()"""

    def __init__(self):
        self._caches: Dict[str, Cache] = {}
        self._lock = threading.Lock()

    def open(self, name: str) -> Cache:
        with self._lock:
            cache = self._caches.get(name)
            if cache is None:
                cache = self._caches[name] = Cache(name)
                logger.debug(f"[cache] Opened partition {name}")
            return cache

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._caches

    def delete(self, name: str) -> bool:
        with self._lock:
            return self._caches.pop(name, None) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._caches)

    def match(self, request: httpx.Request) -> Optional[httpx.Response]:
        with self._lock:
            caches = list(self._caches.values())
        for cache in caches:
            response = cache.match(request)
            if response is not None:
                return response
        return None
