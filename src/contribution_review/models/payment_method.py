"""Payment method documents: the codes donors may declare."""

from __future__ import annotations

from contribution_review.models.base import DocumentBase


class PaymentMethod(DocumentBase):
    code: str
    name: str = ""
    active: bool = True
