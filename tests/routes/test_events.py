"""Tests for the session SSE stream."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from contribution_review.events import ChannelRegistry
from contribution_review.routes.events import stream_channel


async def test_stream_yields_published_events_and_releases_channel() -> None:
    registry = ChannelRegistry()
    request = MagicMock()
    request.is_disconnected = AsyncMock(side_effect=[False, True])

    stream = stream_channel(request, registry, "session-1")
    first = asyncio.create_task(anext(stream))
    await asyncio.sleep(0.01)
    await registry.publish("session-1", "contribution-updated", {"id": "c1"})

    frame = await first

    assert frame.startswith("event: contribution-updated\n")
    assert '"id": "c1"' in frame
    await stream.aclose()
    assert len(registry) == 0
