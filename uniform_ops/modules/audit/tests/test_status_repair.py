"""Tests for StatusRepairService."""

from __future__ import annotations

import copy
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from uniform_ops.database.snapshot import SnapshotRecordStore
from uniform_ops.models.enums import EntityKind, MigrationMode, RepairAction
from uniform_ops.modules.audit.status_repair import StatusRepairService
from uniform_ops.modules.migration.migration_log import MigrationLog


@pytest.fixture
def store():
    return SnapshotRecordStore(
        {
            "orders": [
                {"_id": ObjectId(), "id": "400001", "status": "Dispatched"},
                {"_id": ObjectId(), "id": "400002", "status": "Lost in transit"},
                {"_id": ObjectId(), "id": "400003", "status": "Delivered", "unified_status": "DELIVERED"},
            ],
            "grns": [
                {"_id": ObjectId(), "id": "800001", "status": "CREATED", "grnStatus": "APPROVED"},
            ],
        }
    )


def _entity(report, kind):
    return next(e for e in report.entities if e.entity == kind)


class TestRepair:
    @pytest.mark.asyncio
    async def test_dry_run_reports_without_writing(self, store):
        before = copy.deepcopy(store.documents("orders"))

        report = await StatusRepairService(store).repair(MigrationMode.DRY_RUN)

        orders = _entity(report, EntityKind.ORDER)
        assert (orders.total, orders.repaired, orders.skipped) == (2, 1, 1)
        assert store.documents("orders") == before

    @pytest.mark.asyncio
    async def test_apply_sets_unified_status_and_audit_fields(self, store):
        log = MigrationLog(store, source="test", collection="logs")

        report = await StatusRepairService(store, migration_log=log).repair(MigrationMode.APPLY)

        order = store.documents("orders")[0]
        assert order["unified_status"] == "DISPATCHED"
        assert order["unified_status_updated_by"] == "status-repair"
        assert "unified_status_updated_at" in order
        assert order["status"] == "Dispatched"
        assert "unified_status" not in store.documents("orders")[1]
        assert store.documents("grns")[0]["unified_grn_status"] == "APPROVED"
        assert report.repaired == 2

        entries = store.documents("logs")
        assert {e["entityType"] for e in entries} == {"Order", "GRN"}
        assert all(e["action"] == "STATUS_REPAIR" for e in entries)

    @pytest.mark.asyncio
    async def test_second_apply_finds_nothing_new(self, store):
        service = StatusRepairService(store)
        await service.repair(MigrationMode.APPLY)

        report = await service.repair(MigrationMode.APPLY)

        assert report.repaired == 0
        assert _entity(report, EntityKind.ORDER).skipped == 1

    @pytest.mark.asyncio
    async def test_write_failure_recorded_as_error(self, store):
        store.update_one = AsyncMock(side_effect=ValueError("rejected"))

        report = await StatusRepairService(store).repair(MigrationMode.APPLY)

        orders = _entity(report, EntityKind.ORDER)
        assert orders.errors == 1
        error = next(d for d in orders.details if d.action == RepairAction.ERROR)
        assert error.document_id == "400001"
        assert error.reason == "rejected"
