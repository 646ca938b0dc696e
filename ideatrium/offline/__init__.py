"""
Offline support: response caches, network status and the request router
"""

from .cache import Cache, CacheStorage
from .network import NetworkStatus
from .router import OfflineRouter, RouterTransport

__all__ = ["Cache", "CacheStorage", "NetworkStatus", "OfflineRouter", "RouterTransport"]
