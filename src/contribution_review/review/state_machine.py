"""Approval state machine: legal review transitions for a contribution."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from contribution_review.errors import InvalidTransition, NotFoundError, ValidationError
from contribution_review.events.contracts import (
    CONTRIBUTION_APPROVED,
    CONTRIBUTION_REJECTED,
    ContributionReviewed,
)
from contribution_review.models.approval import ApprovalStatus, RejectionReason, ReviewStatus
from contribution_review.review.taxonomy import label_for, parse_reason

if TYPE_CHECKING:
    from contribution_review.events import EventPublisher
    from contribution_review.models.contribution import Contribution
    from contribution_review.store import ContributionStore

logger = logging.getLogger(__name__)

TRANSITIONS: dict[ReviewStatus, frozenset[ReviewStatus]] = {
    ReviewStatus.PENDING: frozenset({ReviewStatus.APPROVED, ReviewStatus.REJECTED}),
    ReviewStatus.REJECTED: frozenset({ReviewStatus.ACKNOWLEDGED}),
    ReviewStatus.APPROVED: frozenset(),
    ReviewStatus.ACKNOWLEDGED: frozenset(),
}


def can_transition(current: ReviewStatus, target: ReviewStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(contribution_id: str, current: ReviewStatus, target: ReviewStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(contribution_id, current, target)


def validate_rejection(
    reason: RejectionReason | str | None, admin_comment: str | None
) -> tuple[RejectionReason, str]:
    """Check a rejection's reason and comment, reporting every problem at once."""
    errors: dict[str, str] = {}
    parsed = parse_reason(reason)
    if reason is None or (isinstance(reason, str) and not reason.strip()):
        errors["reason"] = "A rejection reason is required"
    elif parsed is None:
        errors["reason"] = f"Unknown rejection reason: {reason}"

    comment = (admin_comment or "").strip()
    if not comment:
        if parsed is RejectionReason.OTHER:
            errors["admin_comment"] = "Describe the specific reason when rejecting as 'Other'"
        else:
            errors["admin_comment"] = "Tell the donor what needs to be corrected"

    if errors:
        raise ValidationError(errors)
    return cast("RejectionReason", parsed), comment


class ApprovalStateMachine:
    """Approve, reject and acknowledge contributions through the record store."""

    def __init__(
        self,
        store: ContributionStore,
        *,
        events: EventPublisher | None = None,
    ) -> None:
        self._store = store
        self._events = events

    async def _load(self, contribution_id: str) -> Contribution:
        contribution = await self._store.get_contribution(contribution_id)
        if contribution is None:
            raise NotFoundError(contribution_id)
        return contribution

    async def approve(
        self,
        contribution_id: str,
        *,
        admin_id: str | None = None,
        admin_comment: str | None = None,
    ) -> ApprovalStatus:
        contribution = await self._load(contribution_id)
        current = contribution.review_status
        ensure_transition(contribution_id, current, ReviewStatus.APPROVED)

        approval = await self._store.update_approval_status(
            contribution_id,
            ReviewStatus.APPROVED,
            expected=current,
            admin_comment=(admin_comment or "").strip() or None,
            admin_id=admin_id,
        )
        logger.info(
            "Contribution approved: id=%s case=%s amount=%s admin=%s",
            contribution_id,
            contribution.case_id,
            contribution.amount,
            admin_id,
        )
        await self._publish(CONTRIBUTION_APPROVED, contribution, approval)
        return approval

    async def reject(
        self,
        contribution_id: str,
        reason: RejectionReason | str | None,
        admin_comment: str | None,
        *,
        admin_id: str | None = None,
    ) -> ApprovalStatus:
        """Reject a pending contribution.

        Input is validated before the contribution is even read, so a bad
        request never touches the store.
        """
        parsed, comment = validate_rejection(reason, admin_comment)
        contribution = await self._load(contribution_id)
        current = contribution.review_status
        ensure_transition(contribution_id, current, ReviewStatus.REJECTED)

        approval = await self._store.update_approval_status(
            contribution_id,
            ReviewStatus.REJECTED,
            expected=current,
            reason=parsed,
            admin_comment=comment,
            admin_id=admin_id,
        )
        logger.info(
            "Contribution rejected: id=%s reason=%s admin=%s",
            contribution_id,
            parsed.value,
            admin_id,
        )
        await self._publish(CONTRIBUTION_REJECTED, contribution, approval)
        return approval

    async def acknowledge(
        self,
        contribution_id: str,
        *,
        donor_reply: str | None = None,
    ) -> ApprovalStatus:
        """Mark a rejection as seen by the donor, with an optional reply."""
        contribution = await self._load(contribution_id)
        current = contribution.review_status
        ensure_transition(contribution_id, current, ReviewStatus.ACKNOWLEDGED)

        approval = await self._store.update_approval_status(
            contribution_id,
            ReviewStatus.ACKNOWLEDGED,
            expected=current,
            donor_reply=(donor_reply or "").strip() or None,
        )
        logger.info("Rejection acknowledged: id=%s", contribution_id)
        return approval

    async def _publish(
        self, event_type: str, contribution: Contribution, approval: ApprovalStatus
    ) -> None:
        if self._events is None:
            return
        reason = approval.rejection_reason
        payload = ContributionReviewed(
            contribution_id=contribution.id,
            case_id=contribution.case_id,
            donor_id=contribution.donor_id,
            amount=contribution.amount,
            status=approval.status,
            rejection_reason=reason,
            rejection_label=label_for(reason) if reason else None,
            admin_comment=approval.admin_comment,
        )
        await self._events.publish(event_type, payload.model_dump(mode="json"))
