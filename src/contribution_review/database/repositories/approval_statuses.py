"""Repository for the approval_statuses container (partitioned by /id).

The first record for a contribution uses the contribution id as its own id, so
two reviewers racing to create it collide on the insert. Later status moves
replace the latest record guarded by its etag.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, cast

from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceExistsError

from contribution_review.database.repositories.base import BaseRepository
from contribution_review.errors import InvalidTransition
from contribution_review.models.approval import ApprovalStatus, ReviewStatus

logger = logging.getLogger(__name__)

_HTTP_PRECONDITION_FAILED = 412
_MAX_ATTEMPTS = 5


def _latest_document(documents: list[dict[str, Any]]) -> dict[str, Any] | None:
    if not documents:
        return None
    return max(documents, key=lambda d: (d.get("updated_at") or "", d.get("created_at") or ""))


class ApprovalStatusRepository(BaseRepository[ApprovalStatus]):
    """Provide data access for the approval_statuses container."""

    container_name = "approval_statuses"
    model_class = ApprovalStatus

    async def list_for_contributions(self, contribution_ids: list[str]) -> list[ApprovalStatus]:
        """Fetch the approval history of many contributions in one query."""
        if not contribution_ids:
            return []
        return await self.query(
            "SELECT * FROM c WHERE ARRAY_CONTAINS(@ids, c.contribution_id)"
            " AND NOT IS_DEFINED(c.deleted_at)",
            [{"name": "@ids", "value": contribution_ids}],
        )

    async def _latest_raw(self, contribution_id: str) -> dict[str, Any] | None:
        documents = await self._query_values(
            "SELECT * FROM c WHERE c.contribution_id = @contribution_id"
            " AND NOT IS_DEFINED(c.deleted_at)",
            [{"name": "@contribution_id", "value": contribution_id}],
        )
        return _latest_document(cast("list[dict[str, Any]]", documents))

    async def _replace_guarded(self, data: dict[str, Any], record: ApprovalStatus) -> bool:
        """Replace ``record`` if ``data`` is still current. Returns False on a lost race."""
        etag = data.get("_etag")
        if not isinstance(etag, str):
            raise ValueError(f"Approval status {record.id} has no etag")
        try:
            await self._container.replace_item(
                item=record.id,
                body=self._to_body(record),
                etag=etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == _HTTP_PRECONDITION_FAILED:
                return False
            raise
        return True

    async def transition(
        self,
        contribution_id: str,
        expected: ReviewStatus,
        target: ReviewStatus,
        updates: dict[str, Any],
    ) -> ApprovalStatus:
        """Move a contribution's review status from ``expected`` to ``target``.

        Raises InvalidTransition when the stored status differs from
        ``expected`` or another writer got there first.
        """
        now = datetime.now(UTC)
        data = await self._latest_raw(contribution_id)

        if data is None:
            if expected != ReviewStatus.PENDING:
                raise InvalidTransition(contribution_id, ReviewStatus.PENDING, target)
            record = ApprovalStatus(
                id=contribution_id,
                contribution_id=contribution_id,
                status=target,
                **updates,
            )
            try:
                await self._container.create_item(body=self._to_body(record))
            except CosmosResourceExistsError as exc:
                raise InvalidTransition(contribution_id, expected, target) from exc
            return record

        record = self.model_class.model_validate(data)
        if record.status != expected:
            raise InvalidTransition(contribution_id, record.status, target)

        record = record.model_copy(update={**updates, "status": target, "updated_at": now})
        if not await self._replace_guarded(data, record):
            logger.info(
                "Lost approval status race: contribution=%s target=%s",
                contribution_id,
                target.value,
            )
            raise InvalidTransition(contribution_id, expected, target)
        return record

    async def record_resubmission(
        self, contribution_id: str, donor_reply: str | None = None
    ) -> ApprovalStatus | None:
        """Increment the resubmission counter on the latest record, retrying on races."""
        for _attempt in range(_MAX_ATTEMPTS):
            data = await self._latest_raw(contribution_id)
            if data is None:
                return None
            record = self.model_class.model_validate(data)
            now = datetime.now(UTC)
            updates: dict[str, Any] = {
                "resubmission_count": record.resubmission_count + 1,
                "updated_at": now,
            }
            if donor_reply:
                updates["donor_reply"] = donor_reply
                updates["donor_reply_date"] = now
            record = record.model_copy(update=updates)
            if await self._replace_guarded(data, record):
                return record
        raise RuntimeError(
            f"Could not record resubmission for {contribution_id} "
            f"after {_MAX_ATTEMPTS} attempts"
        )
