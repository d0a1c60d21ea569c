"""In-process broadcast channel between resource panes.

Stands in for the external publish/subscribe transport. Semantics:

- State messages are retained per (source_id, state_key). A newer message
  from the same source replaces the retained one unconditionally, and a
  subscriber that joins later receives the retained state first.
- Event messages are delivered once to current subscribers and dropped.
- Each subscriber has a bounded queue; a subscriber whose queue overflows
  is disconnected (it can re-subscribe and get the retained state again).
- A subscriber never receives its own messages unless it asks to.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from quotelink.messages.models import BaseMessage, StateMessageBase

logger = logging.getLogger(__name__)

# Queue size per subscriber
MAX_BUFFER_SIZE = 1_000


@dataclass
class Subscription:
    """Active subscriber."""

    id: str
    queue: asyncio.Queue[BaseMessage] = field(
        default_factory=lambda: asyncio.Queue(maxsize=MAX_BUFFER_SIZE)
    )
    receive_own: bool = False
    is_closed: bool = False
    delivered: int = 0


class BroadcastChannel:
    """Fans out pane messages to every other subscribed pane."""

    def __init__(self, buffer_size: int = MAX_BUFFER_SIZE):
        self._buffer_size = buffer_size
        self._subscriptions: dict[str, Subscription] = {}
        self._retained: dict[tuple[str, str], StateMessageBase] = {}
        self._lock = asyncio.Lock()

    async def subscribe(
        self, subscriber_id: str, receive_own: bool = False
    ) -> Subscription:
        """Add a subscriber and queue the retained state for it.

        Args:
            subscriber_id: Pane id; messages with this source_id are skipped
            receive_own: Also deliver the subscriber's own messages

        Returns:
            Subscription to read messages from
        """
        async with self._lock:
            sub = Subscription(
                id=subscriber_id,
                queue=asyncio.Queue(maxsize=self._buffer_size),
                receive_own=receive_own,
            )
            self._subscriptions[subscriber_id] = sub
            for message in sorted(self._retained.values(), key=lambda m: m.timestamp):
                if self._wants(sub, message):
                    self._offer(sub, message)
            logger.debug(f"Added subscriber: {subscriber_id}")
            return sub

    async def unsubscribe(self, subscriber_id: str) -> None:
        async with self._lock:
            sub = self._subscriptions.pop(subscriber_id, None)
            if sub is not None:
                sub.is_closed = True
                logger.debug(f"Removed subscriber: {subscriber_id}")

    async def publish(self, message: BaseMessage) -> int:
        """Deliver a message to every interested subscriber.

        State messages older than the retained one from the same source and
        key are dropped so a late delivery can never roll state back.

        Returns:
            Number of subscribers that received the message
        """
        to_disconnect = []
        delivered = 0

        async with self._lock:
            if isinstance(message, StateMessageBase):
                key = (message.source_id, message.state_key)
                current = self._retained.get(key)
                if current is not None and current.timestamp > message.timestamp:
                    logger.debug(
                        f"Dropping stale {message.kind} from {message.source_id}"
                    )
                    return 0
                self._retained[key] = message

            for sub in self._subscriptions.values():
                if sub.is_closed or not self._wants(sub, message):
                    continue
                if self._offer(sub, message):
                    delivered += 1
                else:
                    logger.warning(f"Subscriber {sub.id} buffer full, disconnecting")
                    to_disconnect.append(sub.id)

        for subscriber_id in to_disconnect:
            await self.unsubscribe(subscriber_id)

        return delivered

    @staticmethod
    def _wants(sub: Subscription, message: BaseMessage) -> bool:
        return sub.receive_own or message.source_id != sub.id

    @staticmethod
    def _offer(sub: Subscription, message: BaseMessage) -> bool:
        try:
            sub.queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        sub.delivered += 1
        return True

    async def messages(
        self, subscription: Subscription, timeout: float = 30.0
    ) -> AsyncIterator[BaseMessage]:
        """Async iterator over a subscriber's messages until it is closed."""
        while not subscription.is_closed:
            try:
                yield await asyncio.wait_for(subscription.queue.get(), timeout=timeout)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

    def drain(self, subscription: Subscription) -> list[BaseMessage]:
        """Take every queued message without waiting."""
        out = []
        while True:
            try:
                out.append(subscription.queue.get_nowait())
            except asyncio.QueueEmpty:
                return out

    def retained(self, source_id: str, state_key: str) -> StateMessageBase | None:
        return self._retained.get((source_id, state_key))

    def get_subscriber_count(self) -> int:
        return len(self._subscriptions)

    def get_stats(self) -> dict[str, Any]:
        """Statistics about subscribers and retained state."""
        return {
            "subscribers": [
                {
                    "id": sub.id,
                    "delivered": sub.delivered,
                    "queue_size": sub.queue.qsize(),
                }
                for sub in self._subscriptions.values()
            ],
            "retained": [
                {"source_id": source_id, "state_key": state_key}
                for source_id, state_key in sorted(self._retained)
            ],
        }
