"""Append-only log of data-repair actions in the ``status_migration_logs`` collection."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from uniform_ops.config import settings
from uniform_ops.database.store import RecordStore
from uniform_ops.models.enums import MigrationLogAction

logger = logging.getLogger(__name__)

SYSTEM_ENTITY_ID = "MIGRATION_SYSTEM"


class MigrationLog:
    """Writes one log document per applied change and per run boundary."""

    def __init__(
        self,
        store: RecordStore,
        source: str,
        updated_by: str = "system",
        collection: str | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.updated_by = updated_by
        self.collection = collection or settings.migration_log_collection

    async def record(
        self,
        entity_type: str,
        entity_id: str,
        action: MigrationLogAction,
        *,
        previous_legacy_status: str | None = None,
        new_legacy_status: str | None = None,
        previous_unified_status: str | None = None,
        new_unified_status: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        entry = {
            "entityType": entity_type,
            "entityId": entity_id,
            "action": action.value,
            "previousLegacyStatus": previous_legacy_status,
            "newLegacyStatus": new_legacy_status,
            "previousUnifiedStatus": previous_unified_status,
            "newUnifiedStatus": new_unified_status,
            "source": self.source,
            "updatedBy": self.updated_by,
            "timestamp": datetime.now(UTC),
            "metadata": metadata or {},
        }
        await self.store.insert_one(self.collection, entry)

    async def start(self, metadata: dict[str, Any]) -> None:
        logger.info("Migration %s started", self.source)
        await self.record(
            "System", SYSTEM_ENTITY_ID, MigrationLogAction.MIGRATION_START, metadata=metadata
        )

    async def complete(self, metadata: dict[str, Any]) -> None:
        logger.info("Migration %s complete", self.source)
        await self.record(
            "System", SYSTEM_ENTITY_ID, MigrationLogAction.MIGRATION_COMPLETE, metadata=metadata
        )
