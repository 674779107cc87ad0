"""Tests for duplicate detection and resolution."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from bson import ObjectId

from uniform_ops.database.snapshot import SnapshotRecordStore
from uniform_ops.models.enums import MigrationMode
from uniform_ops.modules.identifiers.lookup import LookupCache, ReferenceLookup
from uniform_ops.modules.migration.duplicates import (
    DuplicateResolver,
    creation_time,
    detect_duplicates,
    natural_key_from_references,
)
from uniform_ops.modules.migration.migration_log import MigrationLog
from uniform_ops.modules.migration.schemas import MigrationPlan, ReferenceFieldConfig

VENDOR = ObjectId("507f1f77bcf86cd799439011")


def _by_pair(record):
    return (record.get("vendorId"), record.get("uniformId"))


class TestDetectDuplicates:
    def test_two_newer_records_marked_for_deletion(self):
        records = [
            {"_id": "b", "vendorId": "1", "uniformId": "9", "createdAt": datetime(2025, 2, 1, tzinfo=UTC)},
            {"_id": "a", "vendorId": "1", "uniformId": "9", "createdAt": datetime(2025, 1, 1, tzinfo=UTC)},
            {"_id": "c", "vendorId": "1", "uniformId": "9", "createdAt": datetime(2025, 3, 1, tzinfo=UTC)},
        ]

        groups = detect_duplicates(records, _by_pair)

        assert len(groups) == 1
        assert groups[0].keep["_id"] == "a"
        assert [r["_id"] for r in groups[0].delete] == ["b", "c"]
        assert groups[0].size == 3

    def test_unique_records_form_no_group(self):
        records = [{"vendorId": "1", "uniformId": "9"}, {"vendorId": "2", "uniformId": "9"}]
        assert detect_duplicates(records, _by_pair) == []

    def test_records_without_key_are_ignored(self):
        records = [{"_id": 1}, {"_id": 2}]
        assert detect_duplicates(records, lambda r: None) == []

    def test_falls_back_to_object_id_timestamp(self):
        older = ObjectId.from_datetime(datetime(2024, 1, 1, tzinfo=UTC))
        newer = ObjectId.from_datetime(datetime(2024, 6, 1, tzinfo=UTC))
        records = [{"_id": newer, "k": 1}, {"_id": older, "k": 1}]

        groups = detect_duplicates(records, lambda r: r["k"])

        assert groups[0].keep["_id"] == older

    def test_undated_records_lose_to_dated_ones(self):
        records = [
            {"_id": "x", "k": 1},
            {"_id": "y", "k": 1, "createdAt": "2025-01-01T00:00:00Z"},
        ]

        groups = detect_duplicates(records, lambda r: r["k"])

        assert groups[0].keep["_id"] == "y"

    def test_creation_time_accepts_iso_strings(self):
        assert creation_time({"created_at": "2025-01-01T10:00:00"}) == datetime(2025, 1, 1, 10, tzinfo=UTC)


class TestNaturalKeyFromReferences:
    def test_legacy_and_canonical_forms_share_a_key(self):
        lookups = {"vendorId": ReferenceLookup("vendors", {str(VENDOR): "100010"})}
        key_fn = natural_key_from_references(["vendorId", "uniformId"], lookups)

        assert key_fn({"vendorId": str(VENDOR), "uniformId": "200001"}) == ("100010", "200001")
        assert key_fn({"vendorId": "100010", "uniformId": "200001"}) == ("100010", "200001")

    def test_missing_component_gives_no_key(self):
        key_fn = natural_key_from_references(["vendorId", "uniformId"])
        assert key_fn({"vendorId": "100010"}) is None

    def test_unresolved_reference_keeps_hex_key(self):
        key_fn = natural_key_from_references(["vendorId"], {})
        assert key_fn({"vendorId": VENDOR}) == (str(VENDOR),)


class TestDuplicateResolver:
    @pytest.fixture
    def plan(self):
        return MigrationPlan(
            name="productvendors",
            collection="productvendors",
            references=(
                ReferenceFieldConfig(path="vendorId", target_collection="vendors"),
                ReferenceFieldConfig(path="uniformId", target_collection="uniforms"),
            ),
            natural_key=("vendorId", "uniformId"),
        )

    @pytest.fixture
    def store(self):
        return SnapshotRecordStore(
            {
                "vendors": [{"_id": VENDOR, "id": "100010"}],
                "uniforms": [],
                "productvendors": [
                    {"_id": ObjectId(), "id": "600001", "vendorId": "100010", "uniformId": "200001",
                     "createdAt": datetime(2025, 1, 1, tzinfo=UTC)},
                    {"_id": ObjectId(), "id": "600002", "vendorId": str(VENDOR), "uniformId": "200001",
                     "createdAt": datetime(2025, 2, 1, tzinfo=UTC)},
                    {"_id": ObjectId(), "id": "600003", "vendorId": "100010", "uniformId": "200002",
                     "createdAt": datetime(2025, 3, 1, tzinfo=UTC)},
                ],
            }
        )

    @pytest.mark.asyncio
    async def test_dry_run_marks_but_keeps(self, plan, store):
        report = await DuplicateResolver(store, LookupCache(store)).run_plan(plan, MigrationMode.DRY_RUN)

        assert report.scanned == 3
        assert report.marked_for_deletion == 1
        assert report.groups[0].keep_id == "600001"
        assert report.groups[0].delete_ids == ["600002"]
        assert report.deleted == 0
        assert len(store.documents("productvendors")) == 3

    @pytest.mark.asyncio
    async def test_apply_deletes_newer_duplicate(self, plan, store):
        log = MigrationLog(store, source="test", collection="logs")

        report = await DuplicateResolver(store, LookupCache(store), log).run_plan(plan, MigrationMode.APPLY)

        assert report.deleted == 1
        assert [d["id"] for d in store.documents("productvendors")] == ["600001", "600003"]
        assert store.documents("logs")[0]["action"] == "DUPLICATE_DELETE"

    @pytest.mark.asyncio
    async def test_plan_without_natural_key_is_empty(self, store):
        plan = MigrationPlan(name="x", collection="productvendors", references=())
        report = await DuplicateResolver(store, LookupCache(store)).run_plan(plan, MigrationMode.APPLY)
        assert report.groups == []
