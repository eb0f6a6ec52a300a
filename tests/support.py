"""Test support: an in-memory contribution store, fakes and record factories."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from contribution_review.errors import InvalidTransition
from contribution_review.models.approval import ApprovalStatus, RejectionReason, ReviewStatus
from contribution_review.models.case import Case, CaseStatus
from contribution_review.models.contribution import Contribution
from contribution_review.models.query import ContributionFilters, Page

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    """Return a timestamp ``minutes`` after the shared base time."""
    return BASE_TIME + timedelta(minutes=minutes)


def make_contribution(
    contribution_id: str,
    *,
    status: ReviewStatus = ReviewStatus.PENDING,
    minute: int = 0,
    reason: RejectionReason | None = None,
    admin_comment: str | None = None,
    notes: str | None = None,
    parent: str | None = None,
    case_id: str = "case-1",
    donor_id: str | None = "donor-1",
    amount: str = "100",
) -> Contribution:
    """Build a contribution with one approval record carrying ``status``."""
    created = at(minute)
    approval = ApprovalStatus(
        id=contribution_id,
        contribution_id=contribution_id,
        status=status,
        rejection_reason=reason,
        admin_comment=admin_comment,
        created_at=created,
        updated_at=created,
    )
    return Contribution(
        id=contribution_id,
        case_id=case_id,
        amount=Decimal(amount),
        payment_method="bank_transfer",
        status=status,
        notes=notes,
        parent_contribution_id=parent,
        donor_id=donor_id,
        donor_name="Donor One",
        donor_email="donor@example.com",
        case_title="Clean water",
        created_at=created,
        updated_at=created,
        approval_statuses=[approval],
    )


class InMemoryStore:
    """Dict-backed ``ContributionStore`` with the same transition guard as Cosmos."""

    def __init__(self, contributions: list[Contribution] | None = None) -> None:
        self.contributions: dict[str, Contribution] = {}
        self.cases: dict[str, Case] = {}
        self.writes = 0
        for contribution in contributions or []:
            self.add(contribution)

    def add(self, contribution: Contribution) -> Contribution:
        self.contributions[contribution.id] = contribution
        self.cases.setdefault(
            contribution.case_id, Case(id=contribution.case_id, status=CaseStatus.PUBLISHED)
        )
        return contribution

    async def list_contributions(self, filters: ContributionFilters) -> Page[Contribution]:
        items = sorted(self.contributions.values(), key=lambda c: c.created_at, reverse=True)
        if filters.status is not None:
            items = [c for c in items if c.review_status == filters.status]
        if filters.search:
            needle = filters.search.lower()
            items = [
                c
                for c in items
                if c.id == filters.search
                or any(
                    needle in (value or "").lower()
                    for value in (c.case_title, c.donor_name, c.donor_email, c.message)
                )
            ]
        window = items[filters.offset : filters.offset + filters.limit]
        return Page[Contribution](
            items=window, total=len(items), page=filters.page, limit=filters.limit
        )

    async def get_contribution(self, contribution_id: str) -> Contribution | None:
        return self.contributions.get(contribution_id)

    async def get_case(self, case_id: str) -> Case | None:
        return self.cases.get(case_id)

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
        contribution = self.contributions[contribution_id]
        if contribution.review_status != expected:
            raise InvalidTransition(contribution_id, contribution.review_status, status)
        current = contribution.approval
        updates: dict[str, Any] = {"status": status, "updated_at": datetime.now(UTC)}
        if reason is not None:
            updates["rejection_reason"] = reason
        if admin_comment is not None:
            updates["admin_comment"] = admin_comment
        if admin_id is not None:
            updates["admin_id"] = admin_id
        if donor_reply is not None:
            updates["donor_reply"] = donor_reply
        if current is None:
            approval = ApprovalStatus(contribution_id=contribution_id, **updates)
            contribution.approval_statuses.append(approval)
        else:
            approval = current.model_copy(update=updates)
            index = contribution.approval_statuses.index(current)
            contribution.approval_statuses[index] = approval
        contribution.status = status
        self.writes += 1
        return approval

    async def create_revision(
        self,
        original: Contribution,
        revision: Any,
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
            parent_contribution_id=original.id,
            donor_id=original.donor_id,
            case_title=original.case_title,
        )
        created.approval_statuses = [
            ApprovalStatus(
                id=created.id,
                contribution_id=created.id,
                admin_comment=breadcrumb,
                payment_proof_url=evidence_ref,
            )
        ]
        self.add(created)
        approval = original.approval
        if approval is not None:
            index = original.approval_statuses.index(approval)
            original.approval_statuses[index] = approval.model_copy(
                update={
                    "resubmission_count": approval.resubmission_count + 1,
                    "donor_reply": revision.explanation,
                }
            )
        self.writes += 1
        return created


class StaticPaymentMethods:
    def __init__(self, codes: set[str] | None = None) -> None:
        self.codes = codes if codes is not None else {"bank_transfer", "vodafone_cash", "instapay"}

    async def list_codes(self) -> set[str]:
        return set(self.codes)


class RecordingUploader:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.uploaded: list[Any] = []

    async def upload_evidence(self, file: Any) -> str:
        if self.error is not None:
            raise self.error
        self.uploaded.append(file)
        return f"https://storage.example.com/contributions/{file.filename}"


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    async def publish(self, event_type: str, data: Any) -> None:
        self.events.append((event_type, data))
