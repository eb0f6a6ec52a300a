"""Async Cosmos DB connection for the review database."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient as AzureCosmosClient
from azure.cosmos.aio import DatabaseProxy
from azure.identity.aio import DefaultAzureCredential

if TYPE_CHECKING:
    from contribution_review.config import CosmosConfig

logger = logging.getLogger(__name__)

CONTAINERS = ("contributions", "approval_statuses", "cases", "payment_methods")


class CosmosClient:
    """Hold the Cosmos client and the review database handle.

    A configured key is used directly; without one the client signs in with
    ``DefaultAzureCredential``.
    """

    def __init__(self, config: CosmosConfig) -> None:
        self._config = config
        self._client: AzureCosmosClient | None = None
        self._credential: DefaultAzureCredential | None = None
        self._database: DatabaseProxy | None = None

    async def initialize(self) -> None:
        if self._config.key:
            self._client = AzureCosmosClient(self._config.endpoint, credential=self._config.key)
        else:
            self._credential = DefaultAzureCredential()
            self._client = AzureCosmosClient(self._config.endpoint, credential=self._credential)
        self._database = self._client.get_database_client(self._config.database)

    async def ensure_containers(self) -> None:
        """Create the database and every review container when missing (emulator setup)."""
        if self._client is None:
            raise RuntimeError("CosmosClient not initialized, call initialize() first")
        database = await self._client.create_database_if_not_exists(self._config.database)
        for name in CONTAINERS:
            await database.create_container_if_not_exists(
                id=name, partition_key=PartitionKey(path="/id")
            )
        self._database = database
        logger.info("Cosmos containers ready: database=%s", self._config.database)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
        if self._credential is not None:
            await self._credential.close()
        self._client = None
        self._credential = None
        self._database = None

    @property
    def database(self) -> DatabaseProxy:
        if self._database is None:
            raise RuntimeError("CosmosClient not initialized, call initialize() first")
        return self._database
