"""Duplicate detection by normalized natural key; the oldest record survives."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId

from uniform_ops.database.store import RecordStore
from uniform_ops.exceptions import MalformedDocumentException
from uniform_ops.models.enums import MigrationLogAction, MigrationMode
from uniform_ops.modules.identifiers.classifier import (
    CanonicalCode,
    LegacyReference,
    inspect_reference,
)
from uniform_ops.modules.identifiers.codes import document_identity
from uniform_ops.modules.identifiers.lookup import LookupCache, ReferenceLookup
from uniform_ops.modules.identifiers.paths import FieldPath
from uniform_ops.modules.migration.migration_log import MigrationLog
from uniform_ops.modules.migration.schemas import (
    DuplicateGroupSummary,
    DuplicateReport,
    MigrationPlan,
)

logger = logging.getLogger(__name__)

NaturalKeyFn = Callable[[Mapping[str, Any]], Hashable | None]

CREATED_AT_FIELDS: tuple[str, ...] = ("createdAt", "created_at")

_LATEST = datetime.max.replace(tzinfo=UTC)


@dataclass
class DuplicateGroup:
    """Records sharing one natural key: ``keep`` survives, ``delete`` goes."""

    key: Hashable
    keep: dict[str, Any]
    delete: list[dict[str, Any]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return 1 + len(self.delete)


def _as_aware(value: datetime) -> datetime:
    # pymongo returns naive UTC datetimes unless tz_aware is set
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def creation_time(record: Mapping[str, Any]) -> datetime | None:
    """Creation timestamp, falling back to the time embedded in an ObjectId ``_id``."""
    for name in CREATED_AT_FIELDS:
        value = record.get(name)
        if isinstance(value, datetime):
            return _as_aware(value)
        if isinstance(value, str):
            try:
                return _as_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
            except ValueError:
                pass

    internal = inspect_reference(record.get("_id"))
    if isinstance(internal, LegacyReference):
        return ObjectId(internal.key).generation_time
    return None


def _age_order(record: Mapping[str, Any]) -> tuple[datetime, str]:
    # Records without any timestamp sort after every dated record
    return (creation_time(record) or _LATEST, str(record.get("_id")))


def detect_duplicates(
    records: Iterable[dict[str, Any]],
    natural_key_fn: NaturalKeyFn,
) -> list[DuplicateGroup]:
    """Group records by natural key and return only groups of size > 1.

    Records whose key is ``None`` cannot be compared and are ignored.
    """
    groups: dict[Hashable, list[dict[str, Any]]] = {}
    for record in records:
        key = natural_key_fn(record)
        if key is None:
            continue
        groups.setdefault(key, []).append(record)

    duplicates: list[DuplicateGroup] = []
    for key, members in groups.items():
        if len(members) < 2:
            continue
        ordered = sorted(members, key=_age_order)
        duplicates.append(DuplicateGroup(key=key, keep=ordered[0], delete=ordered[1:]))
    return duplicates


def natural_key_from_references(
    paths: Sequence[str],
    lookups: Mapping[str, ReferenceLookup] | None = None,
) -> NaturalKeyFn:
    """Build a key function over reference fields, normalized to canonical codes.

    Legacy references resolve through ``lookups[path]``; unresolvable ones
    keep their hex key so identical orphans still group together.
    """
    field_paths = [FieldPath(p) for p in paths]
    lookups = lookups or {}

    def natural_key(record: Mapping[str, Any]) -> tuple[str, ...] | None:
        parts: list[str] = []
        for path in field_paths:
            try:
                reference = inspect_reference(path.get(dict(record)))
            except MalformedDocumentException:
                return None
            if isinstance(reference, CanonicalCode):
                parts.append(reference.code)
            elif isinstance(reference, LegacyReference):
                lookup = lookups.get(path.raw)
                resolved = lookup.resolve(reference.key) if lookup is not None else None
                parts.append(resolved or reference.key)
            else:
                return None
        return tuple(parts)

    return natural_key


class DuplicateResolver:
    """Find and (in APPLY mode) delete duplicate records of a migration plan."""

    def __init__(
        self,
        store: RecordStore,
        lookups: LookupCache,
        migration_log: MigrationLog | None = None,
    ) -> None:
        self.store = store
        self.lookups = lookups
        self.migration_log = migration_log

    async def run_plan(self, plan: MigrationPlan, mode: MigrationMode) -> DuplicateReport:
        if not plan.natural_key:
            return DuplicateReport(collection=plan.collection, mode=mode)

        targets = {ref.path: ref for ref in plan.references}
        lookups: dict[str, ReferenceLookup] = {}
        for path in plan.natural_key:
            ref = targets.get(path)
            if ref is not None:
                lookups[path] = await self.lookups.get(ref.target_collection, ref.code_fields)

        records = await self.store.find_all(plan.collection)
        key_fn = natural_key_from_references(plan.natural_key, lookups)
        groups = detect_duplicates(records, key_fn)

        report = DuplicateReport(
            collection=plan.collection,
            mode=mode,
            scanned=len(records),
            unkeyed=sum(1 for r in records if key_fn(r) is None),
        )
        report.deleted = await self.resolve(plan.collection, groups, mode, plan.id_field)
        report.groups = [
            DuplicateGroupSummary(
                natural_key=list(g.key),
                keep_id=document_identity(g.keep, plan.id_field),
                delete_ids=[document_identity(r, plan.id_field) for r in g.delete],
            )
            for g in groups
        ]
        logger.info(
            "%s: %d duplicate groups, %d records marked for deletion, %d deleted",
            plan.collection,
            len(report.groups),
            report.marked_for_deletion,
            report.deleted,
        )
        return report

    async def resolve(
        self,
        collection: str,
        groups: Sequence[DuplicateGroup],
        mode: MigrationMode,
        id_field: str = "id",
    ) -> int:
        """Delete every non-surviving record; returns the number deleted."""
        if mode != MigrationMode.APPLY:
            return 0

        deleted = 0
        for group in groups:
            internal_ids = [r["_id"] for r in group.delete if "_id" in r]
            if not internal_ids:
                continue
            deleted += await self.store.delete_many(collection, {"_id": {"$in": internal_ids}})
            if self.migration_log is not None:
                await self.migration_log.record(
                    collection,
                    document_identity(group.keep, id_field),
                    MigrationLogAction.DUPLICATE_DELETE,
                    metadata={
                        "kept": str(group.keep.get("_id")),
                        "deleted": [str(i) for i in internal_ids],
                    },
                )
        return deleted
