"""
Change notification feed
Stores publish one event per row-level write; subscribers are told which
table changed and for which owner, and are expected to re-fetch.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ideatrium.core.logger import get_logger

logger = get_logger(__name__)

TABLES = ("ideas", "tasks", "subtasks", "tags", "user_profiles")


@dataclass
class ChangeEvent:
    """A single row change"""

    table: str
    event_type: str  # insert | update | delete
    record_id: Optional[str] = None
    user_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "type": f"{self.table}_{self.event_type}",
            "table": self.table,
            "recordId": self.record_id,
            "userId": self.user_id,
            "timestamp": self.timestamp.isoformat(),
        }


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ChangeNotifier.subscribe"""

    def __init__(self, notifier: "ChangeNotifier", table: str, callback: ChangeCallback):
        self._notifier = notifier
        self.table = table
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._notifier._remove(self)
            self.active = False


class ChangeNotifier:
    """In-process publish/subscribe feed keyed by table name"""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        subscription = Subscription(self, table, callback)
        with self._lock:
            self._subscribers.setdefault(table, []).append(subscription)
        logger.debug(f"[events] Subscribed to {table}")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.table, [])
            if subscription in subscribers:
                subscribers.remove(subscription)

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._subscribers.get(table, []))

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event; returns the number of callbacks invoked"""
        with self._lock:
            subscribers = list(self._subscribers.get(event.table, []))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.callback(event)
                delivered += 1
            except Exception:
                # One broken subscriber must not starve the others
                logger.error(
                    f"[events] Subscriber failed for {event.table}:{event.event_type}",
                    exc_info=True,
                )
        return delivered

    def emit(
        self,
        table: str,
        event_type: str,
        record_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> int:
        return self.publish(ChangeEvent(table, event_type, record_id, user_id))

    def clear(self) -> None:
        with self._lock:
            for subscribers in self._subscribers.values():
                for subscription in subscribers:
                    subscription.active = False
            self._subscribers.clear()


class SubscriptionGroup:
    """Several subscriptions cancelled together"""

    def __init__(self, subscriptions: List[Subscription]):
        self.subscriptions = subscriptions

    @property
    def active(self) -> bool:
        return any(subscription.active for subscription in self.subscriptions)

    def unsubscribe(self) -> None:
        for subscription in self.subscriptions:
            subscription.unsubscribe()
