"""
In-process change feed.

The storage layer publishes one ChangeEvent per committed write; each event is
delivered, in publication order, to the subscribers of every user it concerns.
Subscriptions are explicit handles owned by the caller.
"""

import enum
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional

from courtside.utils.logger import get_logger

logger = get_logger(__name__)


class ChangeType(enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    change_type: ChangeType
    record_id: str
    user_ids: FrozenSet[str]
    new: Optional[object] = None
    old: Optional[object] = None
    old_values: Dict = field(default_factory=dict)


class Subscription:
    """Handle returned by ChangeFeed.subscribe; unsubscribe() is idempotent"""

    def __init__(self, feed: 'ChangeFeed', user_id: str, callback: Callable[[ChangeEvent], None]):
        self._feed = feed
        self.user_id = user_id
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self):
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.unsubscribe()


class ChangeFeed:
    """Per-user fan-out of change events"""

    def __init__(self):
        self._lock = threading.RLock()
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._closed = False

    def subscribe(self, user_id: str, callback: Callable[[ChangeEvent], None]) -> Subscription:
        subscription = Subscription(self, user_id, callback)
        with self._lock:
            if self._closed:
                subscription._active = False
                logger.warning(f"Subscribe on closed change feed for user {user_id}")
                return subscription
            self._subscribers.setdefault(user_id, []).append(subscription)
        logger.debug(f"User {user_id} subscribed to changes")
        return subscription

    def _remove(self, subscription: Subscription):
        with self._lock:
            subscribers = self._subscribers.get(subscription.user_id, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.user_id, None)

    def subscriber_count(self, user_id: str = None) -> int:
        with self._lock:
            if user_id is not None:
                return len(self._subscribers.get(user_id, []))
            return sum(len(subs) for subs in self._subscribers.values())

    def publish(self, event: ChangeEvent):
        # Delivery holds the lock so events reach each subscriber in publication order
        with self._lock:
            targets = []
            for user_id in sorted(event.user_ids):
                targets.extend(self._subscribers.get(user_id, []))

            for subscription in targets:
                if not subscription.active:
                    continue
                try:
                    subscription.callback(event)
                except Exception as e:
                    logger.error(
                        f"Change subscriber for user {subscription.user_id} failed on "
                        f"{event.table} {event.change_type.value}: {str(e)}"
                    )

    def close(self):
        """Drop every subscription; later unsubscribe() calls are no-ops"""
        with self._lock:
            self._closed = True
            for subscribers in self._subscribers.values():
                for subscription in subscribers:
                    subscription._active = False
            self._subscribers.clear()
