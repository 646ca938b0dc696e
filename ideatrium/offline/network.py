"""
Network status tracker
"""

import threading
from typing import Callable, List

from ideatrium.core.logger import get_logger

logger = get_logger(__name__)

StatusListener = Callable[[bool], None]


class NetworkStatus:
    """Online/offline flag with change listeners"""

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: List[StatusListener] = []
        self._lock = threading.Lock()

    @property
    def is_online(self) -> bool:
        return self._online

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it"""
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def set_online(self, online: bool) -> None:
        with self._lock:
            if self._online == online:
                return
            self._online = online
            listeners = list(self._listeners)

        logger.info(f"Network status changed: {'online' if online else 'offline'}")
        for listener in listeners:
            try:
                listener(online)
            except Exception:
                logger.error("Network status listener failed", exc_info=True)

    def mark_online(self) -> None:
        self.set_online(True)

    def mark_offline(self) -> None:
        self.set_online(False)
