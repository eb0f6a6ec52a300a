"""Review event payloads and the envelope they travel in."""

from __future__ import annotations

import contextlib
import json
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from contribution_review.models.approval import RejectionReason, ReviewStatus

CONTRIBUTION_APPROVED = "contribution-approved"
CONTRIBUTION_REJECTED = "contribution-rejected"
CONTRIBUTION_UPDATED = "contribution-updated"
REVISION_SUBMITTED = "revision-submitted"


class ContributionReviewed(BaseModel):
    """Sent to the donor's notification service after approve or reject."""

    contribution_id: str
    case_id: str
    donor_id: str | None = None
    amount: Decimal
    status: ReviewStatus
    rejection_reason: RejectionReason | None = None
    rejection_label: str | None = None
    admin_comment: str | None = None


class RevisionSubmitted(BaseModel):
    """Sent to administrators when a donor resubmits a rejected contribution."""

    original_contribution_id: str
    new_contribution_id: str
    case_id: str
    revision_explanation: str
    original_amount: Decimal
    new_amount: Decimal


class EventEnvelope(BaseModel):
    """Event name, payload and emission time."""

    event: str
    data: dict[str, Any] | str
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_message_body(cls, body: str | bytes) -> EventEnvelope:
        """Parse a Service Bus message body. A JSON-encoded string ``data`` is unwrapped."""
        envelope = cls.model_validate_json(body)
        if isinstance(envelope.data, str) and envelope.data.lstrip().startswith("{"):
            with contextlib.suppress(json.JSONDecodeError):
                envelope.data = json.loads(envelope.data)
        return envelope

    def to_sse(self) -> str:
        """Render as a server-sent event frame."""
        data = self.data if isinstance(self.data, str) else json.dumps(self.data, default=str)
        lines = "\n".join(f"data: {line}" for line in data.splitlines() or [""])
        return f"event: {self.event}\n{lines}\n\n"
