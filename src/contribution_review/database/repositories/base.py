"""Generic Cosmos container repository for pydantic documents."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from azure.cosmos.exceptions import CosmosResourceNotFoundError

from contribution_review.models.base import DocumentBase

if TYPE_CHECKING:
    from azure.cosmos.aio import ContainerProxy, DatabaseProxy

T = TypeVar("T", bound=DocumentBase)

QueryParameters = list[dict[str, Any]]


class BaseRepository(Generic[T]):
    """CRUD over one container. Documents are partitioned by ``/id``."""

    container_name: ClassVar[str]
    model_class: type[T]

    def __init__(self, database: DatabaseProxy) -> None:
        self._container: ContainerProxy = database.get_container_client(self.container_name)

    def _to_body(self, item: T) -> dict[str, Any]:
        return item.model_dump(mode="json", exclude_none=True)

    async def create(self, item: T) -> T:
        await self._container.create_item(body=self._to_body(item))
        return item

    async def get(self, item_id: str, partition_key: str | None = None) -> T | None:
        """Read one document, or None when it is missing or soft-deleted."""
        try:
            data = await self._container.read_item(
                item=item_id, partition_key=partition_key or item_id
            )
        except CosmosResourceNotFoundError:
            return None
        if data.get("deleted_at") is not None:
            return None
        return self.model_class.model_validate(data)

    async def update(self, item: T, partition_key: str | None = None) -> T:
        item.updated_at = datetime.now(UTC)
        await self._container.replace_item(item=item.id, body=self._to_body(item))
        return item

    async def query(self, sql: str, parameters: QueryParameters | None = None) -> list[T]:
        items = self._container.query_items(sql, parameters=parameters or [])
        return [self.model_class.model_validate(data) async for data in items]

    async def _query_values(self, sql: str, parameters: QueryParameters | None = None) -> list[Any]:
        """Run a ``SELECT VALUE`` query and return the raw values."""
        items = self._container.query_items(sql, parameters=parameters or [])
        return [cast("Any", value) async for value in items]

    async def soft_delete(self, item: T, partition_key: str | None = None) -> T:
        item.deleted_at = datetime.now(UTC)
        return await self.update(item, partition_key)

    async def delete(self, item_id: str, partition_key: str | None = None) -> None:
        await self._container.delete_item(item=item_id, partition_key=partition_key or item_id)
