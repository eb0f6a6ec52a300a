"""Tests for the approval state machine."""

import pytest

from contribution_review.errors import InvalidTransition, NotFoundError, ValidationError
from contribution_review.models.approval import RejectionReason, ReviewStatus
from contribution_review.review.state_machine import (
    ApprovalStateMachine,
    can_transition,
    validate_rejection,
)

from support import InMemoryStore, RecordingPublisher, make_contribution


@pytest.fixture
def machine(store: InMemoryStore, publisher: RecordingPublisher) -> ApprovalStateMachine:
    return ApprovalStateMachine(store, events=publisher)


class TestTransitions:
    """Test the transition table."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ReviewStatus.PENDING, ReviewStatus.APPROVED),
            (ReviewStatus.PENDING, ReviewStatus.REJECTED),
            (ReviewStatus.REJECTED, ReviewStatus.ACKNOWLEDGED),
        ],
    )
    def test_allowed(self, current, target) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ReviewStatus.APPROVED, ReviewStatus.REJECTED),
            (ReviewStatus.APPROVED, ReviewStatus.PENDING),
            (ReviewStatus.REJECTED, ReviewStatus.APPROVED),
            (ReviewStatus.ACKNOWLEDGED, ReviewStatus.PENDING),
            (ReviewStatus.PENDING, ReviewStatus.ACKNOWLEDGED),
        ],
    )
    def test_refused(self, current, target) -> None:
        assert not can_transition(current, target)


class TestValidateRejection:
    """Test rejection input validation."""

    def test_trims_comment_and_parses_label(self) -> None:
        reason, comment = validate_rejection("Wrong Amount", "  sent 50 not 100 ")
        assert reason is RejectionReason.WRONG_AMOUNT
        assert comment == "sent 50 not 100"

    @pytest.mark.parametrize("reason", list(RejectionReason))
    def test_blank_comment_fails_for_every_reason(self, reason) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_rejection(reason, "   ")
        assert set(exc_info.value.fields) == {"admin_comment"}

    def test_reports_every_bad_field(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_rejection("nonsense", "")
        assert set(exc_info.value.fields) == {"reason", "admin_comment"}

    def test_missing_reason(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_rejection(None, "comment")
        assert exc_info.value.fields["reason"] == "A rejection reason is required"


class TestApprove:
    """Test approving contributions."""

    async def test_approve_pending(self, machine, store, publisher) -> None:
        store.add(make_contribution("c1"))

        approval = await machine.approve("c1", admin_id="admin-1")

        assert approval.status is ReviewStatus.APPROVED
        assert approval.admin_id == "admin-1"
        assert store.contributions["c1"].review_status is ReviewStatus.APPROVED
        assert publisher.events[0][0] == "contribution-approved"
        assert publisher.events[0][1]["contribution_id"] == "c1"

    async def test_approve_twice_fails(self, machine, store) -> None:
        store.add(make_contribution("c1"))
        await machine.approve("c1")

        with pytest.raises(InvalidTransition) as exc_info:
            await machine.approve("c1")

        assert exc_info.value.current == ReviewStatus.APPROVED

    async def test_approve_rejected_fails(self, machine, store) -> None:
        store.add(
            make_contribution(
                "c1",
                status=ReviewStatus.REJECTED,
                reason=RejectionReason.WRONG_AMOUNT,
                admin_comment="short",
            )
        )
        with pytest.raises(InvalidTransition):
            await machine.approve("c1")
        assert store.writes == 0

    async def test_approve_missing(self, machine) -> None:
        with pytest.raises(NotFoundError):
            await machine.approve("missing")


class TestReject:
    """Test rejecting contributions."""

    async def test_reject_pending(self, machine, store, publisher) -> None:
        store.add(make_contribution("c1"))

        approval = await machine.reject(
            "c1", "payment_expired", "  Transfer older than 7 days ", admin_id="admin-1"
        )

        assert approval.status is ReviewStatus.REJECTED
        assert approval.rejection_reason is RejectionReason.PAYMENT_EXPIRED
        assert approval.admin_comment == "Transfer older than 7 days"
        assert approval.resubmission_count == 0
        event, data = publisher.events[0]
        assert event == "contribution-rejected"
        assert data["rejection_label"] == "Payment Expired"

    async def test_reject_other_with_empty_comment_leaves_pending(self, machine, store) -> None:
        store.add(make_contribution("x"))

        with pytest.raises(ValidationError):
            await machine.reject("x", "other", "")

        assert store.contributions["x"].review_status is ReviewStatus.PENDING
        assert store.writes == 0

    async def test_validation_precedes_lookup(self, machine) -> None:
        with pytest.raises(ValidationError):
            await machine.reject("missing", None, "")

    async def test_reject_approved_fails(self, machine, store) -> None:
        store.add(make_contribution("c1", status=ReviewStatus.APPROVED))
        with pytest.raises(InvalidTransition):
            await machine.reject("c1", RejectionReason.OTHER, "changed my mind")


class TestAcknowledge:
    """Test donor acknowledgement of rejections."""

    async def test_acknowledge_rejected(self, machine, store) -> None:
        store.add(
            make_contribution(
                "c1",
                status=ReviewStatus.REJECTED,
                reason=RejectionReason.WRONG_AMOUNT,
                admin_comment="short",
            )
        )

        approval = await machine.acknowledge("c1", donor_reply=" Understood ")

        assert approval.status is ReviewStatus.ACKNOWLEDGED
        assert approval.donor_reply == "Understood"
        assert approval.rejection_reason is RejectionReason.WRONG_AMOUNT

    async def test_acknowledge_pending_fails(self, machine, store) -> None:
        store.add(make_contribution("c1"))
        with pytest.raises(InvalidTransition):
            await machine.acknowledge("c1")


async def test_publish_is_optional(store) -> None:
    store.add(make_contribution("c1"))
    machine = ApprovalStateMachine(store)
    approval = await machine.approve("c1")
    assert approval.status is ReviewStatus.APPROVED
