"""Rejection taxonomy: labels and donor guidance for every rejection reason."""

from __future__ import annotations

from dataclasses import dataclass

from contribution_review.models.approval import RejectionReason


@dataclass(frozen=True)
class ReasonInfo:
    reason: RejectionReason
    label: str
    guidance: str
    requires_specific_comment: bool = False


_TAXONOMY: dict[RejectionReason, ReasonInfo] = {
    info.reason: info
    for info in (
        ReasonInfo(
            RejectionReason.PAYMENT_PROOF_INVALID,
            "Invalid Payment Proof",
            "Please provide a clear, readable proof of payment.",
        ),
        ReasonInfo(
            RejectionReason.PAYMENT_NOT_RECEIVED,
            "Payment Not Received",
            "We could not verify the payment was made.",
        ),
        ReasonInfo(
            RejectionReason.INSUFFICIENT_FUNDS,
            "Insufficient Funds",
            "The payment amount is less than the contribution amount.",
        ),
        ReasonInfo(
            RejectionReason.DUPLICATE_PAYMENT,
            "Duplicate Payment",
            "This appears to be a duplicate contribution.",
        ),
        ReasonInfo(
            RejectionReason.WRONG_PAYMENT_METHOD,
            "Wrong Payment Method",
            "Please use the specified payment method.",
        ),
        ReasonInfo(
            RejectionReason.PAYMENT_EXPIRED,
            "Payment Expired",
            "The payment proof shows an expired transaction.",
        ),
        ReasonInfo(
            RejectionReason.WRONG_AMOUNT,
            "Wrong Amount",
            "The payment amount does not match the contribution amount.",
        ),
        ReasonInfo(
            RejectionReason.SUSPICIOUS_ACTIVITY,
            "Suspicious Activity",
            "Payment requires additional verification.",
        ),
        ReasonInfo(
            RejectionReason.OTHER,
            "Other",
            "See the administrator's comment for the specific reason.",
            requires_specific_comment=True,
        ),
    )
}

_missing = set(RejectionReason) - set(_TAXONOMY)
if _missing:
    raise RuntimeError(f"Rejection reasons without a label: {sorted(_missing)}")


def describe(reason: RejectionReason) -> ReasonInfo:
    return _TAXONOMY[reason]


def label_for(reason: RejectionReason) -> str:
    """Return the human-readable label shown to donors and written to breadcrumbs."""
    return _TAXONOMY[reason].label


def all_reasons() -> list[ReasonInfo]:
    return [_TAXONOMY[reason] for reason in RejectionReason]


def parse_reason(value: RejectionReason | str | None) -> RejectionReason | None:
    """Resolve an enum, key, label or legacy ``Label - guidance`` text to a reason.

    Returns None when nothing matches.
    """
    if value is None:
        return None
    if isinstance(value, RejectionReason):
        return value
    text = value.strip().lower()
    if not text:
        return None
    for info in _TAXONOMY.values():
        label = info.label.lower()
        if text in (info.reason.value, label) or text.startswith(f"{label} - "):
            return info.reason
    return None
