"""Case documents: the charity case a contribution is made towards."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum

from pydantic import Field

from contribution_review.models.base import DocumentBase


class CaseStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


class Case(DocumentBase):
    title: str = ""
    description: str = ""
    category_id: str | None = None
    target_amount: Decimal = Decimal(0)
    current_amount: Decimal = Decimal(0)
    status: CaseStatus = CaseStatus.DRAFT
    created_by: str | None = None
    extra: dict = Field(default_factory=dict)
