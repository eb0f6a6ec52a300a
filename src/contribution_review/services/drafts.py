"""Draft case lifecycle: create lazily, patch as fields change, clean up on abandon."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from contribution_review.errors import ValidationError
from contribution_review.models.case import Case, CaseStatus

if TYPE_CHECKING:
    from contribution_review.database.repositories.cases import CaseRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "target_amount", "category_id")
_CASE_FIELDS = frozenset({*REQUIRED_FIELDS, "extra"})


def validate_draft_fields(fields: dict[str, Any]) -> dict[str, str]:
    """Return field errors for the values a draft needs before it is stored."""
    errors: dict[str, str] = {}
    for name in ("title", "description", "category_id"):
        value = fields.get(name)
        if not isinstance(value, str) or not value.strip():
            errors[name] = f"{name.replace('_', ' ').capitalize()} is required"

    raw_amount = fields.get("target_amount")
    try:
        amount = Decimal(str(raw_amount)) if raw_amount is not None else None
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite() or amount <= 0:
        errors["target_amount"] = "Target amount must be greater than 0"
    return errors


class DraftCaseSession:
    """One user's in-progress case.

    Nothing is written until every required field validates. After that the
    draft is kept in step with each update until it is committed or abandoned.
    """

    def __init__(self, cases: CaseRepository, *, created_by: str | None = None) -> None:
        self._cases = cases
        self._created_by = created_by
        self.fields: dict[str, Any] = {}
        self.draft: Case | None = None
        self._committed = False

    @property
    def errors(self) -> dict[str, str]:
        return validate_draft_fields(self.fields)

    async def update(self, fields: dict[str, Any]) -> Case | None:
        """Merge ``fields`` and create or patch the draft once it is valid."""
        if self._committed:
            raise RuntimeError("Draft already committed")
        unknown = set(fields) - _CASE_FIELDS
        if unknown:
            raise ValidationError({name: "Unknown case field" for name in sorted(unknown)})
        self.fields.update(fields)
        if self.errors:
            return self.draft

        values = {
            "title": self.fields["title"].strip(),
            "description": self.fields["description"].strip(),
            "category_id": self.fields["category_id"].strip(),
            "target_amount": Decimal(str(self.fields["target_amount"])),
            "extra": dict(self.fields.get("extra") or {}),
        }
        if self.draft is None:
            self.draft = Case(status=CaseStatus.DRAFT, created_by=self._created_by, **values)
            await self._cases.create(self.draft)
            logger.info("Draft case created: id=%s", self.draft.id)
        else:
            for key, value in values.items():
                setattr(self.draft, key, value)
            await self._cases.update(self.draft, self.draft.id)
        return self.draft

    async def abandon(self) -> None:
        """Delete the draft if one was created and not committed."""
        if self.draft is None or self._committed:
            return
        await self._cases.delete(self.draft.id, self.draft.id)
        logger.info("Draft case abandoned: id=%s", self.draft.id)
        self.draft = None

    def commit(self) -> Case:
        """Hand the stored draft to the caller; it will no longer be cleaned up."""
        if self.draft is None:
            raise ValidationError(self.errors or {"case": "Draft has not been created"})
        self._committed = True
        return self.draft
