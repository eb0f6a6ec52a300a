"""SSE route: stream this session's contribution updates to open views."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from contribution_review.auth.middleware import require_authenticated_user
from contribution_review.routes.contributions import channel_id

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from contribution_review.events.channel import ChannelRegistry

router = APIRouter(tags=["events"])

KEEPALIVE_SECONDS = 15.0


async def stream_channel(
    request: Request, registry: ChannelRegistry, session_id: str
) -> AsyncIterator[str]:
    """Yield SSE frames for one session until the client disconnects."""
    channel = registry.get(session_id)
    try:
        async with channel.subscribe() as queue:
            while not await request.is_disconnected():
                try:
                    envelope = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield envelope.to_sse()
    finally:
        registry.release(session_id)


@router.get("/events")
async def events(
    request: Request,
    user: Annotated[dict[str, Any], Depends(require_authenticated_user)],
) -> StreamingResponse:
    """SSE endpoint for contribution updates made in this session."""
    return StreamingResponse(
        stream_channel(request, request.app.state.channels, channel_id(request)),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
