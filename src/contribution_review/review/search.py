"""Debounced contribution search that never applies stale results."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchCoordinator(Generic[T]):
    """Collapse rapid queries into one fetch and drop superseded results.

    Every ``submit`` takes a new token. A query only fetches if its token is
    still the latest once the debounce delay has passed, and its results are
    only delivered if no newer query was submitted while the fetch ran.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[T]],
        on_results: Callable[[str, T], Awaitable[None] | None] | None = None,
        *,
        debounce_ms: int = 300,
    ) -> None:
        self._fetch = fetch
        self._on_results = on_results
        self._delay = debounce_ms / 1000
        self._token = 0
        self._tasks: set[asyncio.Task] = set()
        self.latest: tuple[str, T] | None = None

    @property
    def token(self) -> int:
        return self._token

    def submit(self, query: str) -> asyncio.Task[T | None]:
        """Schedule a search for ``query``; the task resolves to None if superseded."""
        self._token += 1
        task = asyncio.create_task(self._run(query, self._token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, query: str, token: int) -> T | None:
        await asyncio.sleep(self._delay)
        if token != self._token:
            return None

        result = await self._fetch(query)
        if token != self._token:
            logger.debug("Discarding stale search results: query=%r token=%d", query, token)
            return None

        self.latest = (query, result)
        if self._on_results is not None:
            outcome = self._on_results(query, result)
            if inspect.isawaitable(outcome):
                await outcome
        return result

    async def aclose(self) -> None:
        """Cancel outstanding searches."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
