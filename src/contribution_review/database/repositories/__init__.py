"""Cosmos DB repositories, one per container."""

from contribution_review.database.repositories.approval_statuses import ApprovalStatusRepository
from contribution_review.database.repositories.base import BaseRepository
from contribution_review.database.repositories.cases import CaseRepository
from contribution_review.database.repositories.contributions import ContributionRepository
from contribution_review.database.repositories.payment_methods import PaymentMethodRepository

__all__ = [
    "ApprovalStatusRepository",
    "BaseRepository",
    "CaseRepository",
    "ContributionRepository",
    "PaymentMethodRepository",
]
