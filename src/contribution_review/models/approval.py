"""Approval status documents: the review record attached to a contribution."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from contribution_review.models.base import DocumentBase


class ReviewStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACKNOWLEDGED = "acknowledged"


class RejectionReason(StrEnum):
    """Structured causes an administrator can give when rejecting."""

    PAYMENT_PROOF_INVALID = "payment_proof_invalid"
    PAYMENT_NOT_RECEIVED = "payment_not_received"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DUPLICATE_PAYMENT = "duplicate_payment"
    WRONG_PAYMENT_METHOD = "wrong_payment_method"
    PAYMENT_EXPIRED = "payment_expired"
    WRONG_AMOUNT = "wrong_amount"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    OTHER = "other"


class ApprovalStatus(DocumentBase):
    """One review record. The most recently updated record is authoritative."""

    contribution_id: str
    status: ReviewStatus = ReviewStatus.PENDING
    rejection_reason: RejectionReason | None = None
    admin_comment: str | None = None
    admin_id: str | None = None
    donor_reply: str | None = None
    donor_reply_date: datetime | None = None
    payment_proof_url: str | None = None
    resubmission_count: int = Field(default=0, ge=0)
