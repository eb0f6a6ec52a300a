"""Contribution review core: taxonomy, transitions, revisions and threading."""

from contribution_review.review.breadcrumbs import Breadcrumb, format_breadcrumb, parse_breadcrumb
from contribution_review.review.revision import RevisionPipeline, RevisionRequest
from contribution_review.review.state_machine import ApprovalStateMachine
from contribution_review.review.taxonomy import label_for, parse_reason
from contribution_review.review.threads import build_threads, resolve_parent, resolve_parents

__all__ = [
    "ApprovalStateMachine",
    "Breadcrumb",
    "RevisionPipeline",
    "RevisionRequest",
    "build_threads",
    "format_breadcrumb",
    "label_for",
    "parse_breadcrumb",
    "parse_reason",
    "resolve_parent",
    "resolve_parents",
]
