"""Tests for the debounced search coordinator."""

import asyncio

from contribution_review.review.search import SearchCoordinator


async def test_rapid_queries_fetch_only_the_last() -> None:
    fetched: list[str] = []

    async def fetch(query: str) -> str:
        fetched.append(query)
        return query.upper()

    coordinator = SearchCoordinator(fetch, debounce_ms=10)
    first = coordinator.submit("wa")
    second = coordinator.submit("wat")
    third = coordinator.submit("water")

    results = await asyncio.gather(first, second, third)

    assert results == [None, None, "WATER"]
    assert fetched == ["water"]
    assert coordinator.latest == ("water", "WATER")
    assert coordinator.token == 3


async def test_stale_results_are_discarded() -> None:
    release_slow = asyncio.Event()
    delivered: list[tuple[str, str]] = []

    async def fetch(query: str) -> str:
        if query == "slow":
            await release_slow.wait()
        return f"results for {query}"

    async def on_results(query: str, result: str) -> None:
        delivered.append((query, result))

    coordinator = SearchCoordinator(fetch, on_results, debounce_ms=0)
    slow = coordinator.submit("slow")
    await asyncio.sleep(0.01)
    fast = coordinator.submit("fast")
    assert await fast == "results for fast"

    release_slow.set()
    assert await slow is None
    assert delivered == [("fast", "results for fast")]
    assert coordinator.latest == ("fast", "results for fast")


async def test_sync_callback_is_supported() -> None:
    seen: list[str] = []

    async def fetch(query: str) -> int:
        return len(query)

    coordinator = SearchCoordinator(fetch, lambda q, r: seen.append(q), debounce_ms=0)
    assert await coordinator.submit("abc") == 3
    assert seen == ["abc"]


async def test_aclose_cancels_pending_searches() -> None:
    async def fetch(query: str) -> str:
        return query

    coordinator = SearchCoordinator(fetch, debounce_ms=1000)
    task = coordinator.submit("never")
    await coordinator.aclose()
    assert task.cancelled()
