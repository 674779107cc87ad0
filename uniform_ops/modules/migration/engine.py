"""MigrationEngine — resolve legacy identifier references to canonical codes."""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from uniform_ops.database.store import RecordStore
from uniform_ops.exceptions import MalformedDocumentException, RecordStoreUnavailableException
from uniform_ops.models.enums import FieldOutcome, MigrationLogAction, MigrationMode, RunState
from uniform_ops.modules.identifiers.classifier import (
    CanonicalCode,
    LegacyReference,
    inspect_reference,
    is_canonical_code,
)
from uniform_ops.modules.identifiers.codes import CodeAllocator, document_identity
from uniform_ops.modules.identifiers.lookup import LookupCache, ReferenceLookup
from uniform_ops.modules.identifiers.paths import (
    Address,
    assign,
    render_address,
    update_key,
    value_at,
)
from uniform_ops.modules.migration.migration_log import MigrationLog
from uniform_ops.modules.migration.schemas import (
    DocumentFailure,
    FieldChange,
    MigrationPlan,
    MigrationReport,
    OrphanedReference,
    ReferenceFieldConfig,
    UnresolvedReference,
)

logger = logging.getLogger(__name__)


class MigrationEngine:
    """Scan a collection and rewrite legacy references as canonical codes.

    In DRY_RUN mode the store is never written; the report lists every change
    that APPLY would make. Running APPLY twice is a no-op the second time.
    """

    def __init__(
        self,
        store: RecordStore,
        lookups: LookupCache,
        migration_log: MigrationLog | None = None,
    ) -> None:
        self.store = store
        self.lookups = lookups
        self.migration_log = migration_log

    async def run_plan(self, plan: MigrationPlan, mode: MigrationMode) -> MigrationReport:
        return await self.scan_collection(
            plan.collection,
            plan.references,
            mode,
            id_field=plan.id_field,
            assign_missing_ids=plan.assign_missing_ids,
        )

    async def scan_collection(
        self,
        collection: str,
        field_configs: Sequence[ReferenceFieldConfig],
        mode: MigrationMode = MigrationMode.DRY_RUN,
        *,
        id_field: str = "id",
        assign_missing_ids: bool = False,
    ) -> MigrationReport:
        report = MigrationReport(
            collection=collection, mode=mode, started_at=datetime.now(UTC)
        )

        report.state = RunState.BUILDING_LOOKUP
        lookups: dict[str, ReferenceLookup] = {}
        for config in field_configs:
            lookups[config.path] = await self.lookups.get(
                config.target_collection, config.code_fields
            )

        report.state = RunState.SCANNING
        documents = await self.store.find_all(collection)
        allocator = (
            CodeAllocator.from_documents(documents, id_field) if assign_missing_ids else None
        )
        logger.info(
            "Scanning %d %s documents (%s, %d reference fields)",
            len(documents),
            collection,
            mode.value,
            len(field_configs),
        )

        for document in documents:
            report.scanned += 1
            try:
                await self._process_document(
                    collection, document, field_configs, lookups, mode, report, id_field, allocator
                )
            except RecordStoreUnavailableException:
                raise
            except Exception as exc:
                report.documents_failed += 1
                self._record_failure(
                    report, collection, document_identity(document, id_field), str(exc)
                )

        if mode == MigrationMode.APPLY and report.ids_assigned:
            self.lookups.invalidate(collection)

        report.state = RunState.APPLIED if mode == MigrationMode.APPLY else RunState.DRY_RUN_COMPLETE
        report.finished_at = datetime.now(UTC)
        logger.info(
            "%s %s: scanned=%d valid=%d resolved=%d orphaned=%d errors=%d",
            collection,
            report.state.value,
            report.scanned,
            report.already_valid,
            report.resolved,
            report.orphaned,
            report.errors,
        )
        return report

    # ------------------------------------------------------------------
    # Per-document processing
    # ------------------------------------------------------------------

    async def _process_document(
        self,
        collection: str,
        document: dict[str, Any],
        field_configs: Sequence[ReferenceFieldConfig],
        lookups: dict[str, ReferenceLookup],
        mode: MigrationMode,
        report: MigrationReport,
        id_field: str,
        allocator: CodeAllocator | None,
    ) -> None:
        document_id = document_identity(document, id_field)
        working = copy.deepcopy(document)
        changed: list[Address] = []
        staged: list[FieldChange] = []
        id_assigned = False
        failed = False

        if allocator is not None and not is_canonical_code(working.get(id_field)):
            working[id_field] = allocator.allocate()
            changed.append((id_field,))
            id_assigned = True

        for config in field_configs:
            try:
                changed.extend(
                    self._resolve_field(
                        working, document_id, config, lookups[config.path], report, staged
                    )
                )
            except MalformedDocumentException as exc:
                failed = True
                self._record_failure(report, collection, document_id, f"{config.path}: {exc.message}")

        if changed and mode == MigrationMode.APPLY:
            try:
                await self._write(collection, document, working, changed)
            except RecordStoreUnavailableException:
                raise
            except Exception as exc:
                failed = True
                changed = []
                self._record_failure(report, collection, document_id, str(exc))
            else:
                await self._log_change(collection, document_id, changed)

        # Resolutions only count once they are written, or would be in a dry run
        if changed:
            report.documents_changed += 1
            report.ids_assigned += int(id_assigned)
            report.resolved += len(staged)
            report.changes.extend(staged)

        if failed:
            report.documents_failed += 1

    def _resolve_field(
        self,
        working: dict[str, Any],
        document_id: str,
        config: ReferenceFieldConfig,
        lookup: ReferenceLookup,
        report: MigrationReport,
        staged: list[FieldChange],
    ) -> list[Address]:
        """Resolve every element the field path reaches; return changed addresses.

        Resolutions are staged rather than counted so a failed write can
        drop them.
        """
        slots = config.field_path.slots(working)
        if not slots:
            report.count(FieldOutcome.SKIPPED)
            return []

        changed: list[Address] = []
        for slot in slots:
            reference = inspect_reference(slot.value)
            if isinstance(reference, CanonicalCode):
                report.count(FieldOutcome.ALREADY_VALID)
            elif isinstance(reference, LegacyReference):
                code = lookup.resolve(reference.key)
                location = render_address(slot.address)
                if code is not None:
                    assign(working, slot.address, code)
                    changed.append(slot.address)
                    staged.append(
                        FieldChange(
                            document_id=document_id,
                            field=config.path,
                            location=location,
                            old_value=reference.key,
                            new_value=code,
                        )
                    )
                    continue
                unresolved = dict(
                    document_id=document_id,
                    field=config.path,
                    location=location,
                    value=reference.key,
                    target_collection=config.target_collection,
                )
                if lookup.awaits_code(reference.key):
                    report.count(FieldOutcome.AWAITING_CODE)
                    report.awaiting.append(UnresolvedReference(**unresolved))
                else:
                    report.count(FieldOutcome.ORPHANED)
                    report.orphans.append(OrphanedReference(**unresolved))
            else:
                report.count(FieldOutcome.SKIPPED)
        return changed

    async def _write(
        self,
        collection: str,
        original: dict[str, Any],
        working: dict[str, Any],
        changed: list[Address],
    ) -> None:
        if "_id" not in original:
            raise MalformedDocumentException("Document has no _id; cannot update in place")
        keys = dict.fromkeys(update_key(address) for address in changed)
        updates = {key: value_at(working, key) for key in keys}
        await self.store.update_one(collection, {"_id": original["_id"]}, updates)

    async def _log_change(self, collection: str, document_id: str, changed: list[Address]) -> None:
        if self.migration_log is None:
            return
        await self.migration_log.record(
            collection,
            document_id,
            MigrationLogAction.REFERENCE_MIGRATION,
            metadata={"fields": [render_address(a) for a in changed]},
        )

    @staticmethod
    def _record_failure(
        report: MigrationReport, collection: str, document_id: str, error: str
    ) -> None:
        report.errors += 1
        report.failures.append(DocumentFailure(document_id=document_id, error=error))
        logger.warning(
            "Failed to migrate %s document %s: %s", collection, document_id, error, exc_info=True
        )
