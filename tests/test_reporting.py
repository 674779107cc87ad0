"""Tests for summary tables, JSON reports and the scheduled audit tasks."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from uniform_ops.models.enums import EntityKind, MigrationMode
from uniform_ops.modules.audit.schemas import (
    EntityConsistencyReport,
    StatusAuditReport,
    StatusSample,
)
from uniform_ops.modules.migration.schemas import MigrationReport
from uniform_ops.reporting import (
    migration_summary,
    render_table,
    status_audit_summary,
    write_json_report,
)


class TestRenderTable:
    def test_aligns_columns(self):
        table = render_table(("Name", "Count"), [("orders", 3), ("grns", 120)])
        lines = table.splitlines()

        assert lines[1] == "| Name   | Count |"
        assert lines[3] == "| orders |     3 |"
        assert lines[4] == "| grns   |   120 |"
        assert len({len(line) for line in lines}) == 1

    def test_empty_rows(self):
        assert "Name" in render_table(("Name",), [])


class TestSummaries:
    def test_dry_run_footer(self):
        report = MigrationReport(collection="employees", mode=MigrationMode.DRY_RUN, scanned=4, documents_changed=1)
        assert "Dry run: 1 of 4 documents would change" in migration_summary([report])

    def test_apply_footer(self):
        report = MigrationReport(collection="employees", mode=MigrationMode.APPLY, scanned=4, documents_changed=3)
        assert "Applied: 3 of 4 documents changed" in migration_summary([report])

    def test_status_audit_lists_samples_and_overflow(self):
        entity = EntityConsistencyReport(
            entity=EntityKind.SHIPMENT,
            collection="shipments",
            legacy_field="shipmentStatus",
            unified_field="unified_shipment_status",
            total=3,
        )
        entity.null.count = 3
        entity.null.samples.append(StatusSample(document_id="SHIP_1", legacy_status="CREATED"))
        report = StatusAuditReport(generated_at=datetime.now(UTC), preview_size=1, entities=[entity])

        text = status_audit_summary(report)

        assert "SHIP_1" in text
        assert "... and 2 more" in text


def test_write_json_report(tmp_path):
    report = MigrationReport(collection="employees", mode=MigrationMode.APPLY, started_at=datetime.now(UTC))

    path = write_json_report(tmp_path / "nested" / "report.json", {"migrations": [report]})

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["migrations"][0]["collection"] == "employees"
    assert payload["migrations"][0]["mode"] == "APPLY"


class TestScheduledTasks:
    @pytest.mark.asyncio
    async def test_reference_scan_is_dry_run(self):
        from uniform_ops.modules.migration import tasks

        with patch.object(tasks, "MongoRecordStore") as store_cls, patch.object(
            tasks, "MigrationEngine"
        ) as engine_cls:
            store_cls.return_value.connect = AsyncMock()
            engine_cls.return_value.run_plan = AsyncMock(
                return_value=MigrationReport(collection="x", mode=MigrationMode.DRY_RUN, resolved=2)
            )

            stats = await tasks._scan_references_async()

        modes = {call.args[1] for call in engine_cls.return_value.run_plan.await_args_list}
        assert modes == {MigrationMode.DRY_RUN}
        assert stats["orders"]["pending"] == 2
        store_cls.return_value.close.assert_called_once()
