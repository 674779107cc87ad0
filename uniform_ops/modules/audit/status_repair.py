"""Fill in missing unified statuses where the legacy status maps unambiguously.

Only records without a unified status are touched, and legacy fields are
never modified, so repeated runs converge.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from uniform_ops.database.store import RecordStore
from uniform_ops.exceptions import RecordStoreUnavailableException
from uniform_ops.models.enums import MigrationLogAction, MigrationMode, RepairAction
from uniform_ops.modules.audit.constants import (
    REPAIR_SOURCE,
    STATUS_ENTITIES,
    StatusEntityConfig,
)
from uniform_ops.modules.audit.schemas import (
    EntityRepairReport,
    RepairDetail,
    StatusRepairReport,
)
from uniform_ops.modules.audit.status_consistency import has_unified_status
from uniform_ops.modules.identifiers.codes import document_identity
from uniform_ops.modules.migration.migration_log import MigrationLog

logger = logging.getLogger(__name__)


class StatusRepairService:
    """Infer and (in APPLY mode) persist unified statuses from legacy ones."""

    def __init__(
        self,
        store: RecordStore,
        migration_log: MigrationLog | None = None,
        entities: Sequence[StatusEntityConfig] = STATUS_ENTITIES,
        updated_by: str = REPAIR_SOURCE,
    ) -> None:
        self.store = store
        self.migration_log = migration_log
        self.entities = entities
        self.updated_by = updated_by

    async def repair(self, mode: MigrationMode) -> StatusRepairReport:
        report = StatusRepairReport(generated_at=datetime.now(UTC), mode=mode)
        for config in self.entities:
            report.entities.append(await self.repair_entity(config, mode))
        return report

    async def repair_entity(
        self, config: StatusEntityConfig, mode: MigrationMode
    ) -> EntityRepairReport:
        result = EntityRepairReport(entity=config.kind, collection=config.collection, mode=mode)
        documents = [
            doc
            for doc in await self.store.find_all(config.collection)
            if config.selector(doc) and not has_unified_status(config, doc)
        ]
        result.total = len(documents)

        for document in documents:
            result.add(await self._repair_document(config, document, mode))

        logger.info(
            "%s repair (%s): %d candidates, %d repaired, %d skipped, %d errors",
            config.kind.value,
            mode.value,
            result.total,
            result.repaired,
            result.skipped,
            result.errors,
        )
        return result

    async def _repair_document(
        self,
        config: StatusEntityConfig,
        document: dict[str, Any],
        mode: MigrationMode,
    ) -> RepairDetail:
        document_id = document_identity(document, config.id_field)
        legacy = config.legacy_value(document)
        unified = config.expected_unified(document)
        if unified is None:
            return RepairDetail(
                document_id=document_id,
                action=RepairAction.SKIPPED,
                legacy_status=legacy,
                reason=f"Unknown legacy status: {legacy}",
            )

        if mode == MigrationMode.APPLY:
            try:
                await self.store.update_one(
                    config.collection,
                    {"_id": document["_id"]},
                    {
                        config.unified_field: unified,
                        config.updated_at_field: datetime.now(UTC),
                        config.updated_by_field: self.updated_by,
                    },
                )
            except RecordStoreUnavailableException:
                raise
            except Exception as exc:
                logger.warning(
                    "Failed to repair %s %s: %s", config.kind.value, document_id, exc, exc_info=True
                )
                return RepairDetail(
                    document_id=document_id,
                    action=RepairAction.ERROR,
                    legacy_status=legacy,
                    reason=str(exc),
                )
            if self.migration_log is not None:
                await self.migration_log.record(
                    config.kind.value,
                    document_id,
                    MigrationLogAction.STATUS_REPAIR,
                    previous_legacy_status=None if legacy is None else str(legacy),
                    new_legacy_status=None if legacy is None else str(legacy),
                    previous_unified_status=None,
                    new_unified_status=unified,
                    metadata={"collection": config.collection, "field": config.unified_field},
                )

        return RepairDetail(
            document_id=document_id,
            action=RepairAction.REPAIRED,
            legacy_status=legacy,
            new_unified_status=unified,
        )
