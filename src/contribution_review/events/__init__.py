"""Event contracts, publishing and session notification channels."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from contribution_review.events.channel import ChannelRegistry, SessionChannel
from contribution_review.events.contracts import (
    CONTRIBUTION_APPROVED,
    CONTRIBUTION_REJECTED,
    CONTRIBUTION_UPDATED,
    REVISION_SUBMITTED,
    ContributionReviewed,
    EventEnvelope,
    RevisionSubmitted,
)
from contribution_review.events.servicebus import ServiceBusPublisher


@runtime_checkable
class EventPublisher(Protocol):
    """Anything review events can be handed to."""

    async def publish(self, event_type: str, data: dict[str, Any] | str) -> None: ...


__all__ = [
    "CONTRIBUTION_APPROVED",
    "CONTRIBUTION_REJECTED",
    "CONTRIBUTION_UPDATED",
    "REVISION_SUBMITTED",
    "ChannelRegistry",
    "ContributionReviewed",
    "EventEnvelope",
    "EventPublisher",
    "RevisionSubmitted",
    "ServiceBusPublisher",
    "SessionChannel",
]
