"""Derived grouping of contributions into revision threads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from contribution_review.models.contribution import Contribution


class LinkSource(StrEnum):
    """Where a revision's parent reference was read from."""

    PARENT_ID = "parent_id"
    ADMIN_COMMENT = "admin_comment"
    NOTES = "notes"
    REASON_HEURISTIC = "reason_heuristic"


@dataclass
class Thread:
    """A root contribution plus its revisions in ascending creation order."""

    root: Contribution
    children: list[Contribution] = field(default_factory=list)
    link_sources: dict[str, LinkSource] = field(default_factory=dict)

    @property
    def members(self) -> list[Contribution]:
        return [self.root, *self.children]

    @property
    def latest(self) -> Contribution:
        """The submission the donor or admin should act on next."""
        return self.children[-1] if self.children else self.root

    @property
    def latest_activity(self) -> datetime:
        return max(c.created_at for c in self.members)

    @property
    def is_unresolved(self) -> bool:
        """True for a rejected original that nobody has retried yet."""
        return not self.children


@dataclass
class ThreadedPage:
    """Threads and standalone items, plus one interleaved display order."""

    threads: list[Thread] = field(default_factory=list)
    standalone: list[Contribution] = field(default_factory=list)
    entries: list[Thread | Contribution] = field(default_factory=list)

    def contribution_ids(self) -> list[str]:
        ids = [c.id for thread in self.threads for c in thread.members]
        ids.extend(c.id for c in self.standalone)
        return ids
