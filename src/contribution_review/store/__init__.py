"""Collaborator contracts consumed by the review core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contribution_review.models.approval import ApprovalStatus, RejectionReason, ReviewStatus
    from contribution_review.models.case import Case
    from contribution_review.models.contribution import Contribution
    from contribution_review.models.query import ContributionFilters, Page
    from contribution_review.review.revision import ValidRevision
    from contribution_review.storage.evidence import EvidenceFile


@runtime_checkable
class ContributionStore(Protocol):
    """Reads and writes contributions and their approval history."""

    async def list_contributions(self, filters: ContributionFilters) -> Page[Contribution]:
        """Return one page of contributions with approval history attached."""
        ...

    async def get_contribution(self, contribution_id: str) -> Contribution | None:
        """Return a single contribution with approval history, or None."""
        ...

    async def get_case(self, case_id: str) -> Case | None:
        """Return the case a contribution is made towards, or None."""
        ...

    async def update_approval_status(
        self,
        contribution_id: str,
        status: ReviewStatus,
        *,
        expected: ReviewStatus,
        reason: RejectionReason | None = None,
        admin_comment: str | None = None,
        admin_id: str | None = None,
        donor_reply: str | None = None,
    ) -> ApprovalStatus:
        """Move the review status, raising InvalidTransition unless it is ``expected``."""
        ...

    async def create_revision(
        self,
        original: Contribution,
        revision: ValidRevision,
        *,
        breadcrumb: str,
        notes: str,
        evidence_ref: str | None,
    ) -> Contribution:
        """Create a pending revision and bump the original's resubmission count."""
        ...


@runtime_checkable
class EvidenceUploader(Protocol):
    async def upload_evidence(self, file: EvidenceFile) -> str:
        """Store the file and return its URI, raising UploadError on failure."""
        ...


@runtime_checkable
class PaymentMethodLookup(Protocol):
    async def list_codes(self) -> set[str]:
        """Return the codes of the payment methods donors may declare."""
        ...


__all__ = ["ContributionStore", "EvidenceUploader", "PaymentMethodLookup"]
