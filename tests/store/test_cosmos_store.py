"""Tests for the Cosmos-backed contribution store."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from contribution_review.models.approval import ApprovalStatus, ReviewStatus
from contribution_review.models.case import Case, CaseStatus
from contribution_review.models.contribution import Contribution
from contribution_review.models.query import ContributionFilters, Page
from contribution_review.review.revision import ValidRevision
from contribution_review.store import ContributionStore
from contribution_review.store.cosmos import CosmosContributionStore


def _contribution(cid: str = "c1") -> Contribution:
    return Contribution(
        id=cid,
        case_id="case-1",
        amount=Decimal(100),
        payment_method="instapay",
        donor_id="donor-1",
        case_title="Clean water",
    )


@pytest.fixture
def repos():
    contributions = MagicMock()
    contributions.get = AsyncMock(return_value=_contribution())
    contributions.list_page = AsyncMock()
    contributions.create = AsyncMock()
    contributions.set_status = AsyncMock()
    contributions.list_without_parent = AsyncMock(return_value=[])
    approvals = MagicMock()
    approvals.list_for_contributions = AsyncMock(return_value=[])
    approvals.transition = AsyncMock()
    approvals.create = AsyncMock()
    approvals.record_resubmission = AsyncMock()
    cases = MagicMock()
    cases.add_to_current_amount = AsyncMock()
    cases.get = AsyncMock(return_value=None)
    return contributions, approvals, cases


@pytest.fixture
def store(repos) -> CosmosContributionStore:
    return CosmosContributionStore(*repos)


def test_satisfies_store_protocol(store) -> None:
    assert isinstance(store, ContributionStore)


async def test_list_attaches_history(store, repos) -> None:
    contributions, approvals, _ = repos
    items = [_contribution("a"), _contribution("b")]
    contributions.list_page.return_value = Page[Contribution](items=items, total=2, page=1, limit=10)
    approvals.list_for_contributions.return_value = [
        ApprovalStatus(contribution_id="a", status=ReviewStatus.REJECTED),
        ApprovalStatus(contribution_id="a", status=ReviewStatus.PENDING),
    ]

    page = await store.list_contributions(ContributionFilters())

    assert len(page.items[0].approval_statuses) == 2
    assert page.items[1].approval_statuses == []
    approvals.list_for_contributions.assert_awaited_once_with(["a", "b"])


async def test_get_missing_returns_none(store, repos) -> None:
    repos[0].get.return_value = None
    assert await store.get_contribution("missing") is None


async def test_approve_updates_status_copy_and_credits_case(store, repos) -> None:
    contributions, approvals, cases = repos
    approvals.transition.return_value = ApprovalStatus(
        contribution_id="c1", status=ReviewStatus.APPROVED
    )

    await store.update_approval_status(
        "c1", ReviewStatus.APPROVED, expected=ReviewStatus.PENDING, admin_id="admin-1"
    )

    contribution_id, expected, target, updates = approvals.transition.call_args[0]
    assert (contribution_id, expected, target) == ("c1", ReviewStatus.PENDING, ReviewStatus.APPROVED)
    assert updates == {"admin_id": "admin-1"}
    contributions.set_status.assert_awaited_once()
    cases.add_to_current_amount.assert_awaited_once_with("case-1", Decimal(100))


async def test_case_credit_failure_is_logged_not_raised(store, repos, caplog) -> None:
    _, approvals, cases = repos
    approvals.transition.return_value = ApprovalStatus(
        contribution_id="c1", status=ReviewStatus.APPROVED
    )
    cases.add_to_current_amount.side_effect = RuntimeError("conflict storm")

    approval = await store.update_approval_status(
        "c1", ReviewStatus.APPROVED, expected=ReviewStatus.PENDING
    )

    assert approval.status is ReviewStatus.APPROVED
    assert "Failed to credit case" in caplog.text


async def test_acknowledge_records_reply_date(store, repos) -> None:
    _, approvals, cases = repos
    approvals.transition.return_value = ApprovalStatus(
        contribution_id="c1", status=ReviewStatus.ACKNOWLEDGED
    )

    await store.update_approval_status(
        "c1", ReviewStatus.ACKNOWLEDGED, expected=ReviewStatus.REJECTED, donor_reply="ok"
    )

    updates = approvals.transition.call_args[0][3]
    assert updates["donor_reply"] == "ok"
    assert updates["donor_reply_date"] is not None
    cases.add_to_current_amount.assert_not_called()


async def test_create_revision_writes_contribution_and_pending_approval(store, repos) -> None:
    contributions, approvals, _ = repos
    original = _contribution("orig")
    revision = ValidRevision(
        amount=Decimal(120),
        payment_method="bank_transfer",
        explanation="new transfer",
        message=None,
        anonymous=True,
        evidence=None,
    )

    created = await store.create_revision(
        original,
        revision,
        breadcrumb="Revision of contribution orig. Original rejection reason: Wrong Amount",
        notes="REVISION: new transfer",
        evidence_ref="https://blob/proof.png",
    )

    assert created.parent_contribution_id == "orig"
    assert created.review_status is ReviewStatus.PENDING
    assert created.case_id == "case-1"
    assert created.donor_id == "donor-1"
    assert created.proof_of_payment == "https://blob/proof.png"
    contributions.create.assert_awaited_once_with(created)
    approval = approvals.create.call_args[0][0]
    assert approval.id == created.id
    assert approval.admin_comment.startswith("Revision of contribution orig.")
    assert approval.payment_proof_url == "https://blob/proof.png"
    approvals.record_resubmission.assert_awaited_once_with("orig", donor_reply="new transfer")


async def test_get_case_reads_case_repository(store, repos) -> None:
    _, _, cases = repos
    case = Case(id="case-1", status=CaseStatus.PUBLISHED)
    cases.get.return_value = case

    assert await store.get_case("case-1") is case
    cases.get.assert_awaited_once_with("case-1")
