"""Thread reconstruction: group a flat contribution list into revision threads.

Every contribution lands in exactly one thread or in the standalone set.
Linking is best effort. A revision whose original cannot be found is shown
ungrouped rather than in the wrong thread, and nothing here raises for
unresolvable links.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from contribution_review.models.approval import ReviewStatus
from contribution_review.models.thread import LinkSource, Thread, ThreadedPage
from contribution_review.review.breadcrumbs import parse_breadcrumb
from contribution_review.review.taxonomy import parse_reason

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contribution_review.models.contribution import Contribution

logger = logging.getLogger(__name__)

_ROOT_STATUSES = frozenset({ReviewStatus.REJECTED, ReviewStatus.ACKNOWLEDGED})


@dataclass(frozen=True)
class ParentLink:
    parent_id: str | None
    reason_text: str | None
    source: LinkSource


def parent_link(contribution: Contribution) -> ParentLink | None:
    """Return the contribution's parent reference, explicit field first."""
    crumb = parse_breadcrumb(contribution)
    if contribution.parent_contribution_id:
        reason = crumb.reason_text if crumb else None
        return ParentLink(contribution.parent_contribution_id, reason, LinkSource.PARENT_ID)
    if crumb is None:
        return None
    return ParentLink(crumb.original_id, crumb.reason_text, crumb.source)


def _same_or_unknown(left: str | None, right: str | None) -> bool:
    return left is None or right is None or left == right


class _Resolver:
    """Resolve each revision to the root of its chain, memoized and cycle-safe."""

    def __init__(self, contributions: list[Contribution]) -> None:
        self.by_id: dict[str, Contribution] = {}
        for contribution in contributions:
            self.by_id.setdefault(contribution.id, contribution)
        self.links = {c.id: parent_link(c) for c in self.by_id.values()}
        self.roots = [
            c
            for c in self.by_id.values()
            if self.links[c.id] is None and c.review_status in _ROOT_STATUSES
        ]
        self._resolved: dict[str, tuple[Contribution, LinkSource] | None] = {}

    def resolve(self, contribution: Contribution) -> tuple[Contribution, LinkSource] | None:
        return self._resolve(contribution, set())

    def _resolve(
        self, contribution: Contribution, visiting: set[str]
    ) -> tuple[Contribution, LinkSource] | None:
        if contribution.id in self._resolved:
            return self._resolved[contribution.id]
        link = self.links.get(contribution.id)
        if link is None:
            return None

        visiting.add(contribution.id)
        result: tuple[Contribution, LinkSource] | None = None
        parent = self.by_id.get(link.parent_id) if link.parent_id else None
        if parent is not None and parent.id not in visiting:
            if self.links[parent.id] is None:
                result = (parent, link.source)
            else:
                upstream = self._resolve(parent, visiting)
                if upstream is not None:
                    result = (upstream[0], link.source)
        elif parent is None:
            heuristic = self._match_by_reason(contribution, link.reason_text)
            if heuristic is not None:
                result = (heuristic, LinkSource.REASON_HEURISTIC)
        else:
            logger.warning("Revision link cycle detected at contribution %s", contribution.id)
        visiting.discard(contribution.id)

        self._resolved[contribution.id] = result
        return result

    def _match_by_reason(
        self, contribution: Contribution, reason_text: str | None
    ) -> Contribution | None:
        """Bind to the single rejected original whose reason matches, if any."""
        reason = parse_reason(reason_text)
        if reason is None:
            return None
        created = contribution.created_at
        candidates = [
            root
            for root in self.roots
            if root.approval is not None
            and root.approval.rejection_reason == reason
            and _same_or_unknown(root.case_id, contribution.case_id)
            and _same_or_unknown(root.donor_id, contribution.donor_id)
            and root.created_at <= created
        ]
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            logger.debug(
                "Ambiguous reason match for contribution %s: %d candidates",
                contribution.id,
                len(candidates),
            )
        return None


def resolve_parent(
    contribution: Contribution, contributions: Iterable[Contribution]
) -> tuple[Contribution, LinkSource] | None:
    """Resolve one contribution's thread root within ``contributions``."""
    items = list(contributions)
    if all(c.id != contribution.id for c in items):
        items.append(contribution)
    return _Resolver(items).resolve(contribution)


def resolve_parents(
    contributions: Iterable[Contribution],
) -> dict[str, tuple[Contribution, LinkSource] | None]:
    """Resolve the thread root of every linked contribution in one pass.

    Keys are the ids of contributions that carry a parent link. A None value
    means the link could not be bound to a root.
    """
    resolver = _Resolver(list(contributions))
    return {
        contribution_id: resolver.resolve(resolver.by_id[contribution_id])
        for contribution_id, link in resolver.links.items()
        if link is not None
    }


def _entry_key(entry: Thread | Contribution) -> tuple[datetime, str]:
    if isinstance(entry, Thread):
        return entry.latest_activity, entry.root.id
    return entry.created_at, entry.id


def build_threads(contributions: Iterable[Contribution]) -> ThreadedPage:
    """Partition contributions into threads and standalone items.

    Threads and standalone items are interleaved newest first: a thread sorts
    by the most recent creation time among its members.
    """
    items = list(contributions)
    resolver = _Resolver(items)

    placement: dict[str, tuple[Contribution, LinkSource]] = {}
    for contribution in resolver.by_id.values():
        resolved = resolver.resolve(contribution)
        if resolved is not None:
            placement[contribution.id] = resolved

    threads: dict[str, Thread] = {root.id: Thread(root=root) for root in resolver.roots}
    for root, _source in placement.values():
        threads.setdefault(root.id, Thread(root=root))

    standalone: list[Contribution] = []
    seen: set[str] = set()
    for contribution in items:
        if contribution.id in seen:
            logger.warning("Duplicate contribution id in listing: %s", contribution.id)
            standalone.append(contribution)
            continue
        seen.add(contribution.id)
        if contribution.id in threads:
            continue
        resolved = placement.get(contribution.id)
        if resolved is None:
            standalone.append(contribution)
            continue
        root, source = resolved
        thread = threads[root.id]
        thread.children.append(contribution)
        thread.link_sources[contribution.id] = source

    for thread in threads.values():
        thread.children.sort(key=lambda c: (c.created_at, c.id))

    ordered_threads = sorted(threads.values(), key=_entry_key, reverse=True)
    entries: list[Thread | Contribution] = [*ordered_threads, *standalone]
    entries.sort(key=_entry_key, reverse=True)
    standalone.sort(key=_entry_key, reverse=True)

    logger.debug(
        "Threads built: contributions=%d threads=%d standalone=%d",
        len(items),
        len(ordered_threads),
        len(standalone),
    )
    return ThreadedPage(threads=ordered_threads, standalone=standalone, entries=entries)
