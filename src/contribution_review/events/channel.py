"""Session-scoped pub/sub so open views learn about changes made elsewhere."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from contribution_review.events.contracts import EventEnvelope

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

_QUEUE_SIZE = 100


class SessionChannel:
    """Fan out events to every subscriber of one session."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self._subscribers: set[asyncio.Queue[EventEnvelope]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event_type: str, data: dict[str, Any] | str) -> None:
        envelope = EventEnvelope(event=event_type, data=data)
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(envelope)
            except asyncio.QueueFull:
                logger.warning(
                    "Dropping event=%s for a slow subscriber: session=%s",
                    event_type,
                    self.session_id,
                )

    @contextlib.asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[EventEnvelope]]:
        queue: asyncio.Queue[EventEnvelope] = asyncio.Queue(maxsize=_QUEUE_SIZE)
        self._subscribers.add(queue)
        try:
            yield queue
        finally:
            self._subscribers.discard(queue)


class ChannelRegistry:
    """Hold one channel per session; empty channels are dropped on release."""

    def __init__(self) -> None:
        self._channels: dict[str, SessionChannel] = {}

    def get(self, session_id: str) -> SessionChannel:
        channel = self._channels.get(session_id)
        if channel is None:
            channel = SessionChannel(session_id)
            self._channels[session_id] = channel
        return channel

    async def publish(self, session_id: str, event_type: str, data: dict[str, Any] | str) -> None:
        """Publish to a session's channel if anyone is listening on it."""
        channel = self._channels.get(session_id)
        if channel is not None:
            await channel.publish(event_type, data)

    def release(self, session_id: str) -> None:
        channel = self._channels.get(session_id)
        if channel is not None and channel.subscriber_count == 0:
            del self._channels[session_id]

    def __len__(self) -> int:
        return len(self._channels)
