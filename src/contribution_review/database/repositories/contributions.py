"""Repository for the contributions container (partitioned by /id)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from contribution_review.database.repositories.base import BaseRepository, QueryParameters
from contribution_review.models.contribution import Contribution
from contribution_review.models.query import Page

if TYPE_CHECKING:
    from contribution_review.models.approval import ReviewStatus
    from contribution_review.models.query import ContributionFilters

_SEARCH_FIELDS = ("c.case_title", "c.donor_name", "c.donor_email", "c.message")


def build_filter_clause(filters: ContributionFilters) -> tuple[str, QueryParameters]:
    """Translate listing filters into a WHERE clause and its parameters."""
    clauses = ["NOT IS_DEFINED(c.deleted_at)"]
    parameters: QueryParameters = []

    if filters.status is not None:
        clauses.append("c.status = @status")
        parameters.append({"name": "@status", "value": filters.status.value})
    if filters.search:
        matches = [f"CONTAINS({f}, @search, true)" for f in _SEARCH_FIELDS]
        matches.append("c.id = @search")
        clauses.append(f"({' OR '.join(matches)})")
        parameters.append({"name": "@search", "value": filters.search})
    if filters.date_from is not None:
        clauses.append("c.created_at >= @date_from")
        parameters.append({"name": "@date_from", "value": filters.date_from.isoformat()})
    if filters.date_to is not None:
        clauses.append("c.created_at <= @date_to")
        parameters.append({"name": "@date_to", "value": filters.date_to.isoformat()})

    return " AND ".join(clauses), parameters


class ContributionRepository(BaseRepository[Contribution]):
    """Provide data access for the contributions container."""

    container_name = "contributions"
    model_class = Contribution

    def _to_body(self, item: Contribution) -> dict[str, Any]:
        return item.to_document()

    async def list_page(self, filters: ContributionFilters) -> Page[Contribution]:
        """Fetch one page of contributions, newest first, with the total count."""
        where, parameters = build_filter_clause(filters)
        items = await self.query(
            f"SELECT * FROM c WHERE {where}"
            " ORDER BY c.created_at DESC"
            " OFFSET @offset LIMIT @limit",
            [
                *parameters,
                {"name": "@offset", "value": filters.offset},
                {"name": "@limit", "value": filters.limit},
            ],
        )
        counts = await self._query_values(
            f"SELECT VALUE COUNT(1) FROM c WHERE {where}",
            parameters,
        )
        total = int(counts[0]) if counts else 0
        return Page[Contribution](items=items, total=total, page=filters.page, limit=filters.limit)

    async def list_without_parent(self) -> list[Contribution]:
        """Fetch every contribution that has no explicit parent link."""
        return await self.query(
            "SELECT * FROM c WHERE NOT IS_DEFINED(c.parent_contribution_id)"
            " AND NOT IS_DEFINED(c.deleted_at)"
            " ORDER BY c.created_at ASC",
        )

    async def set_status(self, contribution: Contribution, status: ReviewStatus) -> Contribution:
        """Refresh the denormalized status copy."""
        contribution.status = status
        return await self.update(contribution, contribution.id)

    async def set_parent(self, contribution: Contribution, parent_id: str) -> Contribution:
        """Write an explicit parent link onto a contribution."""
        contribution.parent_contribution_id = parent_id
        return await self.update(contribution, contribution.id)
