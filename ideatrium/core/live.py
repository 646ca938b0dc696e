"""
Live collections
In-memory view of a record list kept current by change-feed refetches
and local optimistic writes. Whichever update lands last wins.
"""

import threading
from typing import Any, Callable, Generic, List, Optional, TypeVar

from ideatrium.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Listener = Callable[[List[Any]], None]


class LiveCollection(Generic[T]):
    """Newest-first list of records identified by their `id` attribute"""

    def __init__(
        self,
        fetch: Callable[[], List[T]],
        key: Callable[[T], str] = lambda record: record.id,  # type: ignore[attr-defined]
    ):
        self._fetch = fetch
        self._key = key
        self._items: List[T] = []
        self._listeners: List[Listener] = []
        self._subscription: Optional[Any] = None
        self._lock = threading.Lock()
        self.version = 0

    @property
    def items(self) -> List[T]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def on_change(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            listener(snapshot)

    def replace(self, items: List[T]) -> None:
        """Swap in a freshly fetched list"""
        with self._lock:
            self._items = list(items)
            self.version += 1
        self._notify()

    def refresh(self) -> List[T]:
        self.replace(self._fetch())
        return self.items

    def upsert(self, item: T) -> None:
        """Replace the record with the same id in place, or prepend it"""
        item_key = self._key(item)
        with self._lock:
            for index, existing in enumerate(self._items):
                if self._key(existing) == item_key:
                    self._items[index] = item
                    break
            else:
                self._items.insert(0, item)
            self.version += 1
        self._notify()

    def remove(self, record_id: str) -> bool:
        with self._lock:
            kept = [item for item in self._items if self._key(item) != record_id]
            removed = len(kept) != len(self._items)
            if removed:
                self._items = kept
                self.version += 1
        if removed:
            self._notify()
        return removed

    def bind(self, subscribe: Callable[[Callable[[List[T]], None]], Any]) -> "LiveCollection[T]":
        """Load once, then follow a change feed such as RecordManager.subscribe_ideas"""
        self.close()
        self.refresh()
        self._subscription = subscribe(self.replace)
        logger.debug("Live collection bound to change feed")
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def view(self, transform: Optional[Callable[[List[T]], List[T]]] = None) -> List[T]:
        """Current items, optionally passed through a filter/sort pipeline"""
        items = self.items
        return transform(items) if transform else items
