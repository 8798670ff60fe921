"""Change notifications for live dashboards.

Writes to modules, quizzes, progress, attempts and comments publish a
ChangeEvent; the admin event stream subscribes to the tables it cares
about and receives events through its own queue.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Literal

import structlog

logger = structlog.get_logger(__name__)

ChangeAction = Literal["insert", "update", "delete"]

TABLES = ("modules", "quizzes", "progress", "quiz_attempts", "comments", "profiles")

# Subscribers that stop reading are dropped once their queue is this full
MAX_QUEUE_SIZE = 1000


@dataclass
class ChangeEvent:
    """A row-level change to one of the watched tables."""

    table: str
    action: ChangeAction
    record_id: str
    user_id: str | None = None
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    occurred_at: str = ""

    def __post_init__(self):
        if not self.occurred_at:
            self.occurred_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "table": self.table,
            "action": self.action,
            "record_id": self.record_id,
            "user_id": self.user_id,
            "occurred_at": self.occurred_at,
        }


@dataclass
class Subscription:
    """One listener: the tables it watches and its event queue."""

    subscription_id: str
    tables: frozenset[str]
    queue: asyncio.Queue[ChangeEvent | None] = field(
        default_factory=lambda: asyncio.Queue(maxsize=MAX_QUEUE_SIZE)
    )


def _close_full_queue(queue: asyncio.Queue[ChangeEvent | None]) -> None:
    """Replace the oldest pending event with the close marker.

    The stream then ends with a close message and the client reconnects.
    """
    try:
        queue.get_nowait()
    except asyncio.QueueEmpty:
        pass
    queue.put_nowait(None)


class ChangeBroker:
    """Fan-out of change events to subscribers.

    Each subscriber owns a bounded queue. A None on the queue means the
    subscription was closed.
    """

    def __init__(self):
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, tables: Iterable[str] | None = None) -> Subscription:
        """Register a listener.

        Args:
            tables: Tables to watch; None watches all of them

        Raises:
            ValueError: If an unknown table is named
        """
        watched = frozenset(tables) if tables is not None else frozenset(TABLES)
        unknown = watched - set(TABLES)
        if unknown:
            raise ValueError(f"Unknown tables: {', '.join(sorted(unknown))}")

        subscription = Subscription(subscription_id=uuid.uuid4().hex[:8], tables=watched)
        async with self._lock:
            self._subscriptions[subscription.subscription_id] = subscription

        logger.info(
            "events.subscribed",
            subscription_id=subscription.subscription_id,
            tables=sorted(watched),
        )
        return subscription

    async def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a listener and close its queue.

        Returns:
            True if the subscription existed
        """
        async with self._lock:
            subscription = self._subscriptions.pop(subscription_id, None)

        if subscription is None:
            return False

        try:
            subscription.queue.put_nowait(None)
        except asyncio.QueueFull:
            pass
        logger.info("events.unsubscribed", subscription_id=subscription_id)
        return True

    async def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every subscriber watching its table.

        Returns:
            Number of subscribers the event was delivered to
        """
        async with self._lock:
            targets = [s for s in self._subscriptions.values() if event.table in s.tables]

        delivered = 0
        for subscription in targets:
            try:
                subscription.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "events.subscriber_dropped",
                    subscription_id=subscription.subscription_id,
                )
                async with self._lock:
                    self._subscriptions.pop(subscription.subscription_id, None)
                _close_full_queue(subscription.queue)

        logger.debug(
            "events.published",
            table=event.table,
            action=event.action,
            record_id=event.record_id,
            delivered=delivered,
        )
        return delivered

    async def subscriber_count(self) -> int:
        async with self._lock:
            return len(self._subscriptions)


# Global broker instance
_change_broker: ChangeBroker | None = None


def get_change_broker() -> ChangeBroker:
    """Get the global change broker instance."""
    global _change_broker
    if _change_broker is None:
        _change_broker = ChangeBroker()
    return _change_broker


def reset_change_broker() -> None:
    """Reset the change broker (for testing)."""
    global _change_broker
    _change_broker = None


async def publish_change(
    table: str,
    action: ChangeAction,
    record_id: str,
    user_id: str | None = None,
) -> int:
    """Publish a change on the global broker."""
    event = ChangeEvent(table=table, action=action, record_id=record_id, user_id=user_id)
    return await get_change_broker().publish(event)
