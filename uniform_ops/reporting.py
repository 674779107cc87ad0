"""Console summary tables and JSON report files for every run."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from uniform_ops.models.enums import MigrationMode
from uniform_ops.modules.audit.schemas import (
    RelationshipAuditReport,
    StatusAuditReport,
    StatusRepairReport,
)
from uniform_ops.modules.migration.schemas import (
    DuplicateReport,
    MigrationReport,
    OrphanCleanupReport,
)

logger = logging.getLogger(__name__)


def render_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """Plain-text table; numeric columns right-aligned."""
    cells = [[str(c) for c in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    numeric = [
        all(isinstance(row[i], int) for row in rows) and bool(rows)
        for i in range(len(headers))
    ]

    def fmt(values: Sequence[str]) -> str:
        parts = [
            v.rjust(widths[i]) if numeric[i] else v.ljust(widths[i])
            for i, v in enumerate(values)
        ]
        return "| " + " | ".join(parts) + " |"

    rule = "+-" + "-+-".join("-" * w for w in widths) + "-+"
    lines = [rule, fmt(list(headers)), rule]
    lines.extend(fmt(row) for row in cells)
    lines.append(rule)
    return "\n".join(lines)


# ── Summaries ────────────────────────────────────────────────────────────


def migration_summary(reports: Sequence[MigrationReport]) -> str:
    rows = [
        (
            r.collection,
            r.scanned,
            r.already_valid,
            r.resolved,
            r.orphaned,
            r.awaiting_code,
            r.skipped,
            r.errors,
            r.documents_changed,
        )
        for r in reports
    ]
    table = render_table(
        ("Collection", "Scanned", "Valid", "Resolved", "Orphaned", "Awaiting", "Skipped", "Errors", "Changed"),
        rows,
    )
    scanned = sum(r.scanned for r in reports)
    changed = sum(r.documents_changed for r in reports)
    applied = any(r.mode == MigrationMode.APPLY for r in reports)
    if applied:
        footer = f"Applied: {changed} of {scanned} documents changed."
    else:
        footer = f"Dry run: {changed} of {scanned} documents would change. Re-run with --apply to write."
    return f"{table}\n{footer}"


def duplicate_summary(reports: Sequence[DuplicateReport]) -> str:
    rows = [
        (r.collection, r.scanned, len(r.groups), r.marked_for_deletion, r.deleted, r.unkeyed)
        for r in reports
    ]
    return render_table(
        ("Collection", "Scanned", "Groups", "Marked", "Deleted", "Unkeyed"), rows
    )


def orphan_cleanup_summary(reports: Sequence[OrphanCleanupReport]) -> str:
    rows = [
        (r.collection, r.candidates, r.deleted, "yes" if r.confirmed else "no", r.backup_path or "-")
        for r in reports
    ]
    return render_table(("Collection", "Orphans", "Deleted", "Confirmed", "Backup"), rows)


def status_audit_summary(report: StatusAuditReport) -> str:
    rows = [
        (e.entity.value, e.collection, e.total, e.consistent.count, e.null.count, e.inconsistent.count)
        for e in report.entities
    ]
    table = render_table(
        ("Entity", "Collection", "Total", "Consistent", "Null", "Inconsistent"), rows
    )
    lines = [table]
    for entity in report.entities:
        for name, bucket in (("null", entity.null), ("inconsistent", entity.inconsistent)):
            if not bucket.samples:
                continue
            lines.append(f"\n{entity.entity.value} {name} ({bucket.count}):")
            for sample in bucket.samples:
                lines.append(
                    f"  {sample.document_id}: {entity.legacy_field}={sample.legacy_status} "
                    f"{entity.unified_field}={sample.unified_status} "
                    f"expected={sample.expected_status}"
                )
            if bucket.count > len(bucket.samples):
                lines.append(f"  ... and {bucket.count - len(bucket.samples)} more")
    return "\n".join(lines)


def status_repair_summary(report: StatusRepairReport) -> str:
    rows = [
        (e.entity.value, e.collection, e.total, e.repaired, e.skipped, e.errors)
        for e in report.entities
    ]
    table = render_table(("Entity", "Collection", "Missing", "Repaired", "Skipped", "Errors"), rows)
    if report.mode == MigrationMode.APPLY:
        footer = f"Applied: {report.repaired} of {report.total} records repaired."
    else:
        footer = f"Dry run: {report.repaired} of {report.total} records would be repaired."
    return f"{table}\n{footer}"


def relationship_summary(report: RelationshipAuditReport, preview_size: int) -> str:
    rows = [(c.name, c.collection, c.total, c.orphaned_count) for c in report.checks]
    lines = [render_table(("Check", "Collection", "Checked", "Orphaned"), rows)]
    for check in report.checks:
        if not check.orphaned:
            continue
        lines.append(f"\n{check.name}:")
        for record in check.orphaned[:preview_size]:
            lines.append(f"  {record.document_id}: {', '.join(record.issues)}")
        if check.orphaned_count > preview_size:
            lines.append(f"  ... and {check.orphaned_count - preview_size} more")
    return "\n".join(lines)


# ── JSON reports ─────────────────────────────────────────────────────────


def to_jsonable(payload: BaseModel | Sequence[BaseModel] | dict[str, Any]) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    if isinstance(payload, dict):
        return {k: to_jsonable(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [to_jsonable(item) for item in payload]
    return payload


def write_json_report(path: str | Path, payload: Any) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(to_jsonable(payload), indent=2), encoding="utf-8")
    logger.info("Wrote report to %s", target)
    return target
