"""Revision breadcrumbs: the free-text marker that links a revision to its original.

Older records have no parent reference, only a sentence of the form::

    Revision of contribution <originalId>. Original rejection reason: <reason>

written either to the revision's approval ``admin_comment`` or, prefixed with
``REVISION:``, to the contribution's own ``notes``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from contribution_review.models.contribution import Contribution
from contribution_review.models.thread import LinkSource

NOTES_PREFIX = "REVISION:"
_MARKER = "Revision of contribution"

_LINK_RE = re.compile(
    r"Revision of contribution (?P<id>\S+?)\.\s+Original rejection reason:[ \t]*(?P<reason>[^\r\n]*)"
)
_REASON_RE = re.compile(r"Original rejection reason:[ \t]*(?P<reason>[^\r\n]+)")


@dataclass(frozen=True)
class Breadcrumb:
    original_id: str | None
    reason_text: str | None
    source: LinkSource


def format_breadcrumb(original_id: str, reason_label: str) -> str:
    return f"{_MARKER} {original_id}. Original rejection reason: {reason_label}"


def format_revision_notes(explanation: str, breadcrumb: str) -> str:
    """Build the ``notes`` value for a revision; the breadcrumb sits on its own line."""
    return f"{NOTES_PREFIX} {explanation.strip()}\n{breadcrumb}"


def _parse_text(text: str, source: LinkSource) -> Breadcrumb | None:
    match = _LINK_RE.search(text)
    if match:
        reason = match.group("reason").strip() or None
        return Breadcrumb(match.group("id"), reason, source)
    match = _REASON_RE.search(text)
    if match:
        return Breadcrumb(None, match.group("reason").strip(), source)
    return None


def _comment_breadcrumb(contribution: Contribution) -> Breadcrumb | None:
    # A later rejection overwrites the comment, so search the whole history.
    history = sorted(
        contribution.approval_statuses,
        key=lambda s: (s.updated_at, s.created_at),
        reverse=True,
    )
    fallback = None
    for approval in history:
        comment = approval.admin_comment or ""
        if _MARKER not in comment:
            continue
        parsed = _parse_text(comment, LinkSource.ADMIN_COMMENT)
        if parsed and parsed.original_id:
            return parsed
        fallback = fallback or parsed or Breadcrumb(None, None, LinkSource.ADMIN_COMMENT)
    return fallback


def has_breadcrumb(contribution: Contribution) -> bool:
    """Return True when the contribution carries any revision marker."""
    return parse_breadcrumb(contribution) is not None


def parse_breadcrumb(contribution: Contribution) -> Breadcrumb | None:
    """Read the revision breadcrumb, preferring approval comments over notes.

    A marker without a parseable sentence still yields a breadcrumb with no
    id, so the contribution is treated as a revision rather than an original.
    """
    from_comment = _comment_breadcrumb(contribution)
    if from_comment and from_comment.original_id:
        return from_comment

    notes = (contribution.notes or "").lstrip()
    if notes.startswith(NOTES_PREFIX):
        from_notes = _parse_text(notes, LinkSource.NOTES)
        if from_notes and from_notes.original_id:
            return from_notes
        return from_comment or from_notes or Breadcrumb(None, None, LinkSource.NOTES)
    return from_comment
