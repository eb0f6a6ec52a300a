"""Contribution listing: fetch a page, thread it and shape it for the API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from contribution_review.models.thread import Thread
from contribution_review.review.breadcrumbs import parse_breadcrumb
from contribution_review.review.taxonomy import label_for
from contribution_review.review.threads import build_threads

if TYPE_CHECKING:
    from contribution_review.models.approval import ApprovalStatus
    from contribution_review.models.contribution import Contribution
    from contribution_review.models.query import ContributionFilters, Page
    from contribution_review.models.thread import ThreadedPage
    from contribution_review.store import ContributionStore


async def list_threaded(
    store: ContributionStore, filters: ContributionFilters
) -> tuple[ThreadedPage, Page[Contribution]]:
    """Fetch one page and group it into threads."""
    page = await store.list_contributions(filters)
    return build_threads(page.items), page


def approval_payload(approval: ApprovalStatus) -> dict[str, Any]:
    data = approval.model_dump(mode="json", exclude_none=True)
    if approval.rejection_reason is not None:
        data["rejection_label"] = label_for(approval.rejection_reason)
    return data


def contribution_payload(contribution: Contribution, *, currency: str) -> dict[str, Any]:
    data = contribution.to_document()
    data["status"] = contribution.review_status.value
    data["currency"] = currency
    data["approval_statuses"] = [approval_payload(a) for a in contribution.approval_statuses]
    crumb = parse_breadcrumb(contribution)
    data["is_revision"] = bool(contribution.parent_contribution_id or crumb)
    return data


def thread_payload(thread: Thread, *, currency: str) -> dict[str, Any]:
    latest = thread.latest
    return {
        "type": "thread",
        "root": contribution_payload(thread.root, currency=currency),
        "revisions": [contribution_payload(c, currency=currency) for c in thread.children],
        "link_sources": {cid: source.value for cid, source in thread.link_sources.items()},
        "latest_id": latest.id,
        "latest_activity": thread.latest_activity.isoformat(),
        "unresolved": thread.is_unresolved,
    }


def listing_payload(
    threaded: ThreadedPage, page: Page[Contribution], *, currency: str
) -> dict[str, Any]:
    entries: list[dict[str, Any]] = []
    for entry in threaded.entries:
        if isinstance(entry, Thread):
            entries.append(thread_payload(entry, currency=currency))
        else:
            entries.append(
                {"type": "contribution", **contribution_payload(entry, currency=currency)}
            )
    return {"entries": entries, "pagination": page.pagination()}
