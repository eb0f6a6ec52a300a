"""Data models for Cosmos DB document types."""

from contribution_review.models.approval import ApprovalStatus, RejectionReason, ReviewStatus
from contribution_review.models.case import Case, CaseStatus
from contribution_review.models.contribution import Contribution
from contribution_review.models.payment_method import PaymentMethod
from contribution_review.models.query import ContributionFilters, Page
from contribution_review.models.thread import LinkSource, Thread, ThreadedPage

__all__ = [
    "ApprovalStatus",
    "Case",
    "CaseStatus",
    "Contribution",
    "ContributionFilters",
    "LinkSource",
    "Page",
    "PaymentMethod",
    "RejectionReason",
    "ReviewStatus",
    "Thread",
    "ThreadedPage",
]
