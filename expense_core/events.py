"""Change notifications published by the expense store."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, NamedTuple, Optional

__all__ = [
    "ADDED",
    "UPDATED",
    "DELETED",
    "RESET",
    "PERSISTENCE_FAILED",
    "EventBus",
    "StoreEvent",
]

ADDED = "added"
UPDATED = "updated"
DELETED = "deleted"
RESET = "reset"
PERSISTENCE_FAILED = "persistence_failed"

logger = logging.getLogger(__name__)


class StoreEvent(NamedTuple):
    action: str
    resource: Optional[str]
    record_id: Optional[str]
    ts: str


Handler = Callable[[StoreEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: List[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` and return a callable that removes it again."""
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(handler)

        return unsubscribe

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(
        self, action: str, resource: Optional[str] = None, record_id: Optional[str] = None
    ) -> StoreEvent:
        event = StoreEvent(
            action=action,
            resource=resource,
            record_id=record_id,
            ts=datetime.now().isoformat(),
        )
        # Copy so a handler may unsubscribe itself while being notified.
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception:
                logger.exception("Subscriber %r failed on %s event", handler, action)
        return event

    def __len__(self) -> int:
        return len(self._subscribers)
