"""Opt-in deletion of records carrying orphaned references."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from bson import json_util

from uniform_ops.database.store import RecordStore
from uniform_ops.models.enums import MigrationLogAction
from uniform_ops.modules.identifiers.codes import document_identity
from uniform_ops.modules.migration.migration_log import MigrationLog
from uniform_ops.modules.migration.schemas import OrphanCleanupReport

logger = logging.getLogger(__name__)


def select_records(
    documents: Iterable[dict[str, Any]],
    document_ids: Iterable[str],
    id_field: str = "id",
) -> list[dict[str, Any]]:
    """Pick the documents whose report label is in ``document_ids``.

    The ``_id`` is accepted too, since a run that assigns canonical ids
    labels a document by ``_id`` before it has one.
    """
    wanted = set(document_ids)
    return [
        doc
        for doc in documents
        if document_identity(doc, id_field) in wanted or str(doc.get("_id")) in wanted
    ]


class OrphanCleaner:
    """Deletes orphaned records only when explicitly confirmed.

    Without confirmation the candidates are reported and left in place.
    With a backup directory, the full documents are exported as Extended
    JSON before anything is deleted.
    """

    def __init__(
        self,
        store: RecordStore,
        backup_dir: str | Path | None = None,
        migration_log: MigrationLog | None = None,
    ) -> None:
        self.store = store
        self.backup_dir = Path(backup_dir) if backup_dir else None
        self.migration_log = migration_log

    async def delete_orphaned(
        self,
        collection: str,
        records: Sequence[dict[str, Any]],
        confirm: bool,
        id_field: str = "id",
    ) -> OrphanCleanupReport:
        report = OrphanCleanupReport(
            collection=collection,
            confirmed=confirm,
            candidates=len(records),
            document_ids=[document_identity(r, id_field) for r in records],
        )
        if not records:
            return report

        if not confirm:
            logger.info(
                "%d orphaned %s records left in place (deletion not confirmed)",
                len(records),
                collection,
            )
            return report

        if self.backup_dir is not None:
            report.backup_path = str(self._backup(collection, records))

        internal_ids = [r["_id"] for r in records if "_id" in r]
        report.deleted = await self.store.delete_many(collection, {"_id": {"$in": internal_ids}})
        logger.info("Deleted %d orphaned %s records", report.deleted, collection)

        if self.migration_log is not None:
            for record in records:
                await self.migration_log.record(
                    collection,
                    document_identity(record, id_field),
                    MigrationLogAction.ORPHAN_DELETE,
                    metadata={"_id": str(record.get("_id")), "backup": report.backup_path},
                )
        return report

    def _backup(self, collection: str, records: Sequence[dict[str, Any]]) -> Path:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        path = self.backup_dir / f"orphaned-{collection}-{stamp}.json"
        path.write_text(json_util.dumps(list(records), indent=2), encoding="utf-8")
        logger.info("Exported %d orphaned %s records to %s", len(records), collection, path)
        return path
