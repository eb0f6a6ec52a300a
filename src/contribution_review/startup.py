"""Service initialization helpers shared by the web app and the importer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from azure.core.exceptions import AzureError

from contribution_review.database.client import CosmosClient
from contribution_review.database.repositories import (
    ApprovalStatusRepository,
    CaseRepository,
    ContributionRepository,
    PaymentMethodRepository,
)
from contribution_review.storage.evidence import BlobEvidenceStorage
from contribution_review.store.cosmos import CosmosContributionStore

if TYPE_CHECKING:
    from contribution_review.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    contributions: ContributionRepository
    approvals: ApprovalStatusRepository
    cases: CaseRepository
    payment_methods: PaymentMethodRepository


async def init_database(settings: Settings) -> CosmosClient:
    """Connect to Cosmos DB, raising ConnectionError when it is unreachable."""
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize()
    try:
        if settings.app.is_development:
            await cosmos.ensure_containers()
        else:
            await cosmos.database.read()
    except AzureError as exc:
        await cosmos.close()
        raise ConnectionError(
            f"Cannot reach Cosmos DB database {settings.cosmos.database!r} "
            f"at {settings.cosmos.endpoint}"
        ) from exc
    logger.info("Cosmos DB connected: database=%s", settings.cosmos.database)
    return cosmos


def init_repositories(cosmos: CosmosClient) -> Repositories:
    database = cosmos.database
    return Repositories(
        contributions=ContributionRepository(database),
        approvals=ApprovalStatusRepository(database),
        cases=CaseRepository(database),
        payment_methods=PaymentMethodRepository(database),
    )


def init_store(repositories: Repositories) -> CosmosContributionStore:
    return CosmosContributionStore(
        repositories.contributions,
        repositories.approvals,
        repositories.cases,
    )


async def init_storage(settings: Settings) -> BlobEvidenceStorage:
    storage = BlobEvidenceStorage(settings.storage, max_bytes=settings.review.max_evidence_bytes)
    await storage.initialize()
    return storage
