"""Pydantic v2 schemas for reference-migration plans and run reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from uniform_ops.models.enums import FieldOutcome, MigrationMode, RunState
from uniform_ops.modules.identifiers.paths import FieldPath

# ── Plan schemas ─────────────────────────────────────────────────────────


class ReferenceFieldConfig(BaseModel):
    """One identifier-reference field and the collection it points into."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Dotted path, e.g. 'companyId' or 'items.uniformId'")
    target_collection: str
    code_fields: tuple[str, ...] = Field(
        default=("id",),
        description="Candidate canonical-code fields on the target, in priority order",
    )

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        FieldPath(v)
        return v

    @field_validator("code_fields")
    @classmethod
    def validate_code_fields(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("At least one canonical-code field is required")
        return v

    @property
    def field_path(self) -> FieldPath:
        return FieldPath(self.path)


class MigrationPlan(BaseModel):
    """A named reference migration over one source collection."""

    model_config = ConfigDict(frozen=True)

    name: str
    collection: str
    references: tuple[ReferenceFieldConfig, ...]
    id_field: str = "id"
    assign_missing_ids: bool = False
    natural_key: tuple[str, ...] = Field(
        default=(),
        description="Reference paths whose resolved values identify duplicates",
    )
    description: str = ""


# ── Report schemas ───────────────────────────────────────────────────────


class FieldChange(BaseModel):
    """A reference element that was (or would be) rewritten."""

    document_id: str
    field: str
    location: str
    old_value: str
    new_value: str


class UnresolvedReference(BaseModel):
    """A legacy reference that could not be rewritten to a canonical code."""

    document_id: str
    field: str
    location: str
    value: str
    target_collection: str


class OrphanedReference(UnresolvedReference):
    """A legacy reference with no matching record in the target collection."""

    @property
    def identity(self) -> tuple[str, str]:
        return (self.document_id, self.location)


class DocumentFailure(BaseModel):
    document_id: str
    error: str


class MigrationReport(BaseModel):
    """Outcome of one scan over a source collection."""

    collection: str
    mode: MigrationMode
    state: RunState = RunState.INITIAL
    scanned: int = 0
    already_valid: int = 0
    resolved: int = 0
    orphaned: int = 0
    awaiting_code: int = 0
    skipped: int = 0
    errors: int = 0
    ids_assigned: int = 0
    documents_changed: int = 0
    documents_failed: int = 0
    changes: list[FieldChange] = Field(default_factory=list)
    orphans: list[OrphanedReference] = Field(default_factory=list)
    # Targets that exist but have no canonical code yet; never orphans
    awaiting: list[UnresolvedReference] = Field(default_factory=list)
    failures: list[DocumentFailure] = Field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def count(self, outcome: FieldOutcome) -> None:
        if outcome == FieldOutcome.ALREADY_VALID:
            self.already_valid += 1
        elif outcome == FieldOutcome.RESOLVED:
            self.resolved += 1
        elif outcome == FieldOutcome.ORPHANED:
            self.orphaned += 1
        elif outcome == FieldOutcome.AWAITING_CODE:
            self.awaiting_code += 1
        else:
            self.skipped += 1

    @property
    def orphaned_document_ids(self) -> list[str]:
        return list(dict.fromkeys(o.document_id for o in self.orphans))

    def newly_orphaned(self, previous: MigrationReport) -> list[OrphanedReference]:
        """Orphans not already reported by ``previous``."""
        known = {o.identity for o in previous.orphans}
        return [o for o in self.orphans if o.identity not in known]


class DuplicateGroupSummary(BaseModel):
    natural_key: list[str]
    keep_id: str
    delete_ids: list[str]


class DuplicateReport(BaseModel):
    collection: str
    mode: MigrationMode
    scanned: int = 0
    groups: list[DuplicateGroupSummary] = Field(default_factory=list)
    unkeyed: int = 0
    deleted: int = 0

    @property
    def marked_for_deletion(self) -> int:
        return sum(len(g.delete_ids) for g in self.groups)


class OrphanCleanupReport(BaseModel):
    collection: str
    confirmed: bool
    candidates: int = 0
    deleted: int = 0
    document_ids: list[str] = Field(default_factory=list)
    backup_path: str | None = None
