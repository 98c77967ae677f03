"""Notifications about shelf changes that originate outside the local view."""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass

from shelfsync.sync.entities import ShelfEntry

logger = logging.getLogger(__name__)

ChangeCallback = Callable[["ShelfChange"], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class ShelfChange:
    """A committed membership change. ``entry`` is None for a deletion."""

    user_id: str
    book_id: str
    entry: ShelfEntry | None = None

    @property
    def is_delete(self) -> bool:
        return self.entry is None


class ShelfChangeFeed(ABC):
    @abstractmethod
    def subscribe(self, user_id: str, callback: ChangeCallback) -> Unsubscribe:
        """Deliver every change to ``user_id``'s shelves until unsubscribed."""


class LocalChangeFeed(ShelfChangeFeed):
    """In-process fan-out used by the HTTP app and by tests."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[ChangeCallback]] = defaultdict(list)

    def subscribe(self, user_id: str, callback: ChangeCallback) -> Unsubscribe:
        self._subscribers[user_id].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(user_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def publish(self, change: ShelfChange) -> None:
        for callback in list(self._subscribers.get(change.user_id, [])):
            try:
                callback(change)
            except Exception:
                logger.exception("Shelf change subscriber failed for user %s", change.user_id)

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, []))
