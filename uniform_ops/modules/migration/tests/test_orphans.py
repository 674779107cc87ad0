"""Tests for confirmed orphan deletion."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from bson import ObjectId

from uniform_ops.database.snapshot import SnapshotRecordStore
from uniform_ops.modules.migration.migration_log import MigrationLog
from uniform_ops.modules.migration.orphans import OrphanCleaner, select_records


def _make_store():
    return SnapshotRecordStore(
        {
            "employees": [
                {"_id": ObjectId(), "id": "300001", "companyId": "507f1f77bcf86cd7994390ff"},
                {"_id": ObjectId(), "id": "300002", "companyId": "100004"},
            ]
        }
    )


class TestSelectRecords:
    def test_selects_by_report_label(self):
        docs = [{"id": "300001"}, {"id": "300002"}]
        assert select_records(docs, ["300002"]) == [{"id": "300002"}]


class TestDeleteOrphaned:
    @pytest.mark.asyncio
    async def test_unconfirmed_only_reports(self):
        store = _make_store()
        orphans = store.documents("employees")[:1]

        report = await OrphanCleaner(store).delete_orphaned("employees", orphans, confirm=False)

        assert report.candidates == 1
        assert report.deleted == 0
        assert report.document_ids == ["300001"]
        assert len(store.documents("employees")) == 2

    @pytest.mark.asyncio
    async def test_confirmed_deletes_and_backs_up(self, tmp_path):
        store = _make_store()
        orphans = [dict(store.documents("employees")[0])]
        log = MigrationLog(store, source="test", collection="logs")

        report = await OrphanCleaner(store, backup_dir=tmp_path, migration_log=log).delete_orphaned(
            "employees", orphans, confirm=True
        )

        assert report.deleted == 1
        assert [d["id"] for d in store.documents("employees")] == ["300002"]
        backup = json.loads(Path(report.backup_path).read_text(encoding="utf-8"))
        assert backup[0]["id"] == "300001"
        assert "$oid" in backup[0]["_id"]
        assert store.documents("logs")[0]["action"] == "ORPHAN_DELETE"

    @pytest.mark.asyncio
    async def test_nothing_to_delete(self):
        store = _make_store()
        report = await OrphanCleaner(store).delete_orphaned("employees", [], confirm=True)
        assert report.deleted == 0
        assert report.candidates == 0
