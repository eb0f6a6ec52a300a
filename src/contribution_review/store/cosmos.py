"""Cosmos DB implementation of the contribution record store."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from contribution_review.models.approval import ApprovalStatus, ReviewStatus
from contribution_review.models.contribution import Contribution

if TYPE_CHECKING:
    from contribution_review.database.repositories import (
        ApprovalStatusRepository,
        CaseRepository,
        ContributionRepository,
    )
    from contribution_review.models.approval import RejectionReason
    from contribution_review.models.case import Case
    from contribution_review.models.query import ContributionFilters, Page
    from contribution_review.review.revision import ValidRevision

logger = logging.getLogger(__name__)


class CosmosContributionStore:
    """Join contributions with their approval history across containers."""

    def __init__(
        self,
        contributions: ContributionRepository,
        approvals: ApprovalStatusRepository,
        cases: CaseRepository,
    ) -> None:
        self._contributions = contributions
        self._approvals = approvals
        self._cases = cases

    async def _attach(self, contributions: list[Contribution]) -> list[Contribution]:
        records = await self._approvals.list_for_contributions([c.id for c in contributions])
        by_contribution: dict[str, list[ApprovalStatus]] = defaultdict(list)
        for record in records:
            by_contribution[record.contribution_id].append(record)
        for contribution in contributions:
            contribution.approval_statuses = by_contribution.get(contribution.id, [])
        return contributions

    async def list_contributions(self, filters: ContributionFilters) -> Page[Contribution]:
        page = await self._contributions.list_page(filters)
        await self._attach(page.items)
        return page

    async def get_contribution(self, contribution_id: str) -> Contribution | None:
        contribution = await self._contributions.get(contribution_id)
        if contribution is None:
            return None
        await self._attach([contribution])
        return contribution

    async def get_case(self, case_id: str) -> Case | None:
        return await self._cases.get(case_id)

    async def list_unlinked(self) -> list[Contribution]:
        """Contributions lacking an explicit parent link, with history attached."""
        return await self._attach(await self._contributions.list_without_parent())

    async def link_parent(self, contribution: Contribution, parent_id: str) -> Contribution:
        return await self._contributions.set_parent(contribution, parent_id)

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
        updates: dict[str, Any] = {}
        if reason is not None:
            updates["rejection_reason"] = reason
        if admin_comment is not None:
            updates["admin_comment"] = admin_comment
        if admin_id is not None:
            updates["admin_id"] = admin_id
        if donor_reply is not None:
            updates["donor_reply"] = donor_reply
            updates["donor_reply_date"] = datetime.now(UTC)

        approval = await self._approvals.transition(contribution_id, expected, status, updates)

        contribution = await self._contributions.get(contribution_id)
        if contribution is not None:
            await self._contributions.set_status(contribution, status)
            if status == ReviewStatus.APPROVED:
                await self._credit_case(contribution)
        return approval

    async def _credit_case(self, contribution: Contribution) -> None:
        try:
            case = await self._cases.add_to_current_amount(contribution.case_id, contribution.amount)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to credit case: case=%s contribution=%s amount=%s",
                contribution.case_id,
                contribution.id,
                contribution.amount,
                exc_info=True,
            )
            return
        if case is None:
            logger.warning(
                "Approved contribution references a missing case: case=%s contribution=%s",
                contribution.case_id,
                contribution.id,
            )

    async def create_revision(
        self,
        original: Contribution,
        revision: ValidRevision,
        *,
        breadcrumb: str,
        notes: str,
        evidence_ref: str | None,
    ) -> Contribution:
        created = Contribution(
            case_id=original.case_id,
            amount=revision.amount,
            payment_method=revision.payment_method,
            message=revision.message,
            proof_of_payment=evidence_ref,
            anonymous=revision.anonymous,
            notes=notes,
            status=ReviewStatus.PENDING,
            parent_contribution_id=original.id,
            case_title=original.case_title,
            donor_id=original.donor_id,
            donor_name=original.donor_name,
            donor_email=original.donor_email,
        )
        await self._contributions.create(created)

        approval = ApprovalStatus(
            id=created.id,
            contribution_id=created.id,
            status=ReviewStatus.PENDING,
            admin_comment=breadcrumb,
            payment_proof_url=evidence_ref,
        )
        await self._approvals.create(approval)
        created.approval_statuses = [approval]

        await self._approvals.record_resubmission(original.id, donor_reply=revision.explanation)
        return created
