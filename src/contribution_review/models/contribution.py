"""Contribution document model: a single donor payment submission."""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from contribution_review.models.approval import ApprovalStatus, ReviewStatus
from contribution_review.models.base import DocumentBase

# Attached on read from the approval_statuses container, never stored inline.
DETACHED_FIELDS = frozenset({"approval_statuses"})


class Contribution(DocumentBase):
    """A donation towards one case, reviewed by an administrator."""

    case_id: str
    amount: Decimal = Field(gt=0)
    payment_method: str
    message: str | None = None
    proof_of_payment: str | None = None
    anonymous: bool = False
    notes: str | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    parent_contribution_id: str | None = None

    case_title: str | None = None
    donor_id: str | None = None
    donor_name: str | None = None
    donor_email: str | None = None

    approval_statuses: list[ApprovalStatus] = Field(default_factory=list)

    @property
    def approval(self) -> ApprovalStatus | None:
        """Return the authoritative (most recently updated) approval record."""
        if not self.approval_statuses:
            return None
        return max(self.approval_statuses, key=lambda s: (s.updated_at, s.created_at))

    @property
    def review_status(self) -> ReviewStatus:
        approval = self.approval
        return approval.status if approval else self.status

    def to_document(self) -> dict:
        """Serialize for storage, leaving out attached approval history."""
        return self.model_dump(mode="json", exclude=set(DETACHED_FIELDS), exclude_none=True)
