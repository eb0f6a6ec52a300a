"""Per-session contribution view state: filters, search and in-place merges."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from contribution_review.models.query import ContributionFilters, Page
from contribution_review.review.search import SearchCoordinator
from contribution_review.review.threads import build_threads

if TYPE_CHECKING:
    import asyncio

    from contribution_review.models.contribution import Contribution
    from contribution_review.models.thread import ThreadedPage
    from contribution_review.store import ContributionStore

logger = logging.getLogger(__name__)


class ContributionBrowser:
    """Hold the current listing for one session.

    Searches go through a ``SearchCoordinator`` so a slow, superseded query
    can never overwrite the listing of a newer one. Mutations elsewhere are
    merged in with ``merge`` instead of refetching the page.
    """

    def __init__(
        self,
        store: ContributionStore,
        *,
        filters: ContributionFilters | None = None,
        debounce_ms: int = 300,
    ) -> None:
        self._store = store
        self.filters = filters or ContributionFilters()
        self.page: Page[Contribution] | None = None
        self.threaded: ThreadedPage | None = None
        self._search = SearchCoordinator(
            self._fetch_search, self._apply_search, debounce_ms=debounce_ms
        )

    async def load(self, filters: ContributionFilters | None = None) -> ThreadedPage:
        if filters is not None:
            self.filters = filters
        self._apply(await self._store.list_contributions(self.filters))
        return cast("ThreadedPage", self.threaded)

    def search(self, text: str) -> asyncio.Task[Page[Contribution] | None]:
        """Debounced search from the first page; stale results are dropped."""
        return self._search.submit(text)

    async def _fetch_search(self, text: str) -> Page[Contribution]:
        filters = self.filters.model_copy(update={"search": text.strip() or None, "page": 1})
        return await self._store.list_contributions(filters)

    def _apply_search(self, text: str, page: Page[Contribution]) -> None:
        self.filters = self.filters.model_copy(update={"search": text.strip() or None, "page": 1})
        self._apply(page)

    def _apply(self, page: Page[Contribution]) -> None:
        self.page = page
        self.threaded = build_threads(page.items)

    def merge(self, contribution: Contribution) -> bool:
        """Replace or insert an authoritative contribution and rethread.

        Returns False when no listing is loaded or the entity does not belong on it.
        """
        if self.page is None:
            return False
        items = list(self.page.items)
        for index, item in enumerate(items):
            if item.id == contribution.id:
                items[index] = contribution
                break
        else:
            linked = contribution.parent_contribution_id
            if not linked or all(item.id != linked for item in items):
                return False
            items.insert(0, contribution)
        total = self.page.total + (len(items) - len(self.page.items))
        self._apply(self.page.model_copy(update={"items": items, "total": total}))
        logger.debug("Merged contribution into listing: id=%s", contribution.id)
        return True

    async def aclose(self) -> None:
        await self._search.aclose()
