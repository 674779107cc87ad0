"""Pydantic v2 report schemas for the status and relationship audits."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from uniform_ops.models.enums import ConsistencyBucket, EntityKind, MigrationMode, RepairAction

# ── Status consistency ───────────────────────────────────────────────────


class StatusSample(BaseModel):
    """One sampled record in a consistency bucket."""

    document_id: str
    legacy_status: Any = None
    unified_status: Any = None
    expected_status: str | None = None


class BucketSummary(BaseModel):
    count: int = 0
    samples: list[StatusSample] = Field(default_factory=list)


class EntityConsistencyReport(BaseModel):
    """Consistent / null / inconsistent counts for one entity kind."""

    entity: EntityKind
    collection: str
    legacy_field: str
    unified_field: str
    total: int = 0
    consistent: BucketSummary = Field(default_factory=BucketSummary)
    null: BucketSummary = Field(default_factory=BucketSummary)
    inconsistent: BucketSummary = Field(default_factory=BucketSummary)

    def bucket(self, bucket: ConsistencyBucket) -> BucketSummary:
        if bucket == ConsistencyBucket.CONSISTENT:
            return self.consistent
        if bucket == ConsistencyBucket.NULL:
            return self.null
        return self.inconsistent

    @property
    def is_consistent(self) -> bool:
        return self.null.count == 0 and self.inconsistent.count == 0


class StatusAuditReport(BaseModel):
    generated_at: datetime
    preview_size: int
    entities: list[EntityConsistencyReport] = Field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return sum(e.null.count + e.inconsistent.count for e in self.entities)


# ── Status repair ────────────────────────────────────────────────────────


class RepairDetail(BaseModel):
    document_id: str
    action: RepairAction
    legacy_status: Any = None
    new_unified_status: str | None = None
    reason: str | None = None


class EntityRepairReport(BaseModel):
    entity: EntityKind
    collection: str
    mode: MigrationMode
    total: int = 0
    repaired: int = 0
    skipped: int = 0
    errors: int = 0
    details: list[RepairDetail] = Field(default_factory=list)

    def add(self, detail: RepairDetail) -> None:
        if detail.action == RepairAction.REPAIRED:
            self.repaired += 1
        elif detail.action == RepairAction.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1
        self.details.append(detail)


class StatusRepairReport(BaseModel):
    generated_at: datetime
    mode: MigrationMode
    entities: list[EntityRepairReport] = Field(default_factory=list)

    @property
    def repaired(self) -> int:
        return sum(e.repaired for e in self.entities)

    @property
    def total(self) -> int:
        return sum(e.total for e in self.entities)


# ── Relationships ────────────────────────────────────────────────────────


class OrphanedRecord(BaseModel):
    """A source record with at least one dangling link."""

    document_id: str
    values: dict[str, Any] = Field(default_factory=dict)
    issues: list[str] = Field(default_factory=list)


class RelationshipCheckReport(BaseModel):
    name: str
    collection: str
    total: int = 0
    orphaned: list[OrphanedRecord] = Field(default_factory=list)

    @property
    def orphaned_count(self) -> int:
        return len(self.orphaned)


class RelationshipAuditReport(BaseModel):
    generated_at: datetime
    checks: list[RelationshipCheckReport] = Field(default_factory=list)

    @property
    def total_orphaned(self) -> int:
        return sum(c.orphaned_count for c in self.checks)
