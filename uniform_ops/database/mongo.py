"""MongoDB-backed record store (motor async client)."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConnectionFailure, OperationFailure

from uniform_ops.config import settings
from uniform_ops.exceptions import RecordStoreUnavailableException

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(operation: str, collection: str) -> Iterator[None]:
    try:
        yield
    except ConnectionFailure as exc:
        raise RecordStoreUnavailableException(
            f"Lost connection to MongoDB during {operation} on '{collection}': {exc}"
        ) from exc


class MongoRecordStore:
    """Record store over a single MongoDB database.

    The connection is verified eagerly in :meth:`connect`; the data-repair
    tools are offline batch jobs and fail fast instead of retrying.
    """

    def __init__(
        self,
        uri: str | None = None,
        database: str | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        self._uri = uri or settings.mongodb_uri
        self._database_name = database or settings.mongodb_database
        self._client = AsyncIOMotorClient(
            self._uri,
            serverSelectionTimeoutMS=timeout_ms or settings.mongodb_timeout_ms,
        )
        self._db = self._client[self._database_name]

    async def connect(self) -> None:
        """Ping the server; raise RecordStoreUnavailableException if unreachable."""
        try:
            await self._client.admin.command("ping")
        except (ConnectionFailure, OperationFailure) as exc:
            raise RecordStoreUnavailableException(
                f"Cannot reach MongoDB database '{self._database_name}': {exc}"
            ) from exc
        logger.info("Connected to MongoDB database %s", self._database_name)

    def close(self) -> None:
        self._client.close()

    async def find_all(self, collection: str) -> list[dict[str, Any]]:
        with _translate_errors("find", collection):
            return await self._db[collection].find({}).to_list(length=None)

    async def update_one(
        self,
        collection: str,
        filter: dict[str, Any],
        set_fields: dict[str, Any],
    ) -> int:
        with _translate_errors("update", collection):
            result = await self._db[collection].update_one(filter, {"$set": set_fields})
        return result.modified_count

    async def delete_many(self, collection: str, filter: dict[str, Any]) -> int:
        with _translate_errors("delete", collection):
            result = await self._db[collection].delete_many(filter)
        return result.deleted_count

    async def insert_one(self, collection: str, document: dict[str, Any]) -> Any:
        with _translate_errors("insert", collection):
            result = await self._db[collection].insert_one(document)
        return result.inserted_id

    async def count(self, collection: str) -> int:
        with _translate_errors("count", collection):
            return await self._db[collection].count_documents({})
