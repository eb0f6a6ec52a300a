"""Revision submission pipeline: resubmitting a corrected, rejected contribution.

A revision never edits the original. It is a new pending contribution that
points back at the original, so every submission attempt stays on record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, cast

from contribution_review.errors import InvalidTransition, NotFoundError, ValidationError
from contribution_review.events.contracts import REVISION_SUBMITTED, RevisionSubmitted
from contribution_review.models.approval import ReviewStatus
from contribution_review.models.case import CaseStatus
from contribution_review.review.breadcrumbs import format_breadcrumb, format_revision_notes
from contribution_review.review.taxonomy import label_for

if TYPE_CHECKING:
    from contribution_review.events import EventPublisher
    from contribution_review.models.contribution import Contribution
    from contribution_review.storage.evidence import EvidenceFile
    from contribution_review.store import ContributionStore, EvidenceUploader, PaymentMethodLookup

logger = logging.getLogger(__name__)

UNSPECIFIED_REASON = "Unspecified"


@dataclass
class RevisionRequest:
    """Raw revision input as submitted by the donor."""

    amount: Decimal | float | int | str | None
    payment_method: str | None
    explanation: str | None
    message: str | None = None
    anonymous: bool = False
    evidence: EvidenceFile | None = None


@dataclass(frozen=True)
class ValidRevision:
    """A revision request whose scalar fields passed validation."""

    amount: Decimal
    payment_method: str
    explanation: str
    message: str | None
    anonymous: bool
    evidence: EvidenceFile | None


def _parse_amount(value: object) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def validate_revision(request: RevisionRequest, payment_methods: set[str]) -> ValidRevision:
    """Validate every scalar field and report all failures together."""
    errors: dict[str, str] = {}

    amount = _parse_amount(request.amount)
    if request.amount is None or (isinstance(request.amount, str) and not request.amount.strip()):
        errors["amount"] = "Amount is required"
    elif amount is None:
        errors["amount"] = "Enter a valid amount greater than 0"

    method = (request.payment_method or "").strip()
    if not method:
        errors["payment_method"] = "Payment method is required"
    elif method not in payment_methods:
        errors["payment_method"] = f"Unknown payment method: {method}"

    explanation = (request.explanation or "").strip()
    if not explanation:
        errors["explanation"] = "Explain what changed in this revision"

    if errors:
        raise ValidationError(errors)

    return ValidRevision(
        amount=cast("Decimal", amount),
        payment_method=method,
        explanation=explanation,
        message=(request.message or "").strip() or None,
        anonymous=bool(request.anonymous),
        evidence=request.evidence,
    )


def rejection_label(original: Contribution) -> str:
    """Label of the original's rejection reason, as written into the breadcrumb."""
    approval = original.approval
    if approval is None or approval.rejection_reason is None:
        return UNSPECIFIED_REASON
    return label_for(approval.rejection_reason)


class RevisionPipeline:
    """Validate, upload evidence for, and record a revision of a rejected contribution."""

    def __init__(
        self,
        store: ContributionStore,
        uploader: EvidenceUploader,
        payment_methods: PaymentMethodLookup,
        *,
        events: EventPublisher | None = None,
    ) -> None:
        self._store = store
        self._uploader = uploader
        self._payment_methods = payment_methods
        self._events = events

    async def submit(self, original_id: str, request: RevisionRequest) -> Contribution:
        """Create a new pending contribution revising ``original_id``.

        Raises ValidationError for bad input, NotFoundError when the original
        is missing, InvalidTransition when it is not rejected, ValidationError
        when its case no longer accepts contributions and UploadError when the
        evidence cannot be stored. Nothing is created on failure.
        """
        revision = validate_revision(request, await self._payment_methods.list_codes())

        original = await self._store.get_contribution(original_id)
        if original is None:
            raise NotFoundError(original_id)
        status = original.review_status
        if status != ReviewStatus.REJECTED:
            raise InvalidTransition(original_id, status, "revised")
        case = await self._store.get_case(original.case_id)
        if case is None or case.status != CaseStatus.PUBLISHED:
            raise ValidationError(
                {"case_id": "Case is not published and cannot accept contributions"}
            )

        evidence_ref = None
        if revision.evidence is not None:
            evidence_ref = await self._uploader.upload_evidence(revision.evidence)

        breadcrumb = format_breadcrumb(original.id, rejection_label(original))
        created = await self._store.create_revision(
            original,
            revision,
            breadcrumb=breadcrumb,
            notes=format_revision_notes(revision.explanation, breadcrumb),
            evidence_ref=evidence_ref,
        )
        logger.info(
            "Revision submitted: original=%s revision=%s amount=%s evidence=%s",
            original.id,
            created.id,
            revision.amount,
            evidence_ref is not None,
        )

        if self._events is not None:
            payload = RevisionSubmitted(
                original_contribution_id=original.id,
                new_contribution_id=created.id,
                case_id=original.case_id,
                revision_explanation=revision.explanation,
                original_amount=original.amount,
                new_amount=revision.amount,
            )
            await self._events.publish(REVISION_SUBMITTED, payload.model_dump(mode="json"))
        return created
