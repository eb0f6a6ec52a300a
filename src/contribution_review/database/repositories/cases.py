"""Repository for the cases container (partitioned by /id)."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, cast

from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from contribution_review.database.repositories.base import BaseRepository
from contribution_review.models.case import Case

_HTTP_PRECONDITION_FAILED = 412
_MAX_ATTEMPTS = 5


class CaseRepository(BaseRepository[Case]):
    """Provide data access for the cases container."""

    container_name = "cases"
    model_class = Case

    async def add_to_current_amount(self, case_id: str, amount: Decimal) -> Case | None:
        """Increase a case's collected amount, retrying when the document moved."""
        for _attempt in range(_MAX_ATTEMPTS):
            try:
                data = cast(
                    "dict[str, Any]",
                    await self._container.read_item(item=case_id, partition_key=case_id),
                )
            except CosmosResourceNotFoundError:
                return None

            case = self.model_class.model_validate(data)
            case.current_amount += amount
            case.updated_at = datetime.now(UTC)
            try:
                await self._container.replace_item(
                    item=case.id,
                    body=self._to_body(case),
                    etag=data.get("_etag"),
                    match_condition=MatchConditions.IfNotModified,
                )
            except CosmosHttpResponseError as exc:
                if exc.status_code == _HTTP_PRECONDITION_FAILED:
                    continue
                raise
            return case
        raise RuntimeError(f"Could not update amount for case {case_id} after {_MAX_ATTEMPTS} attempts")
