"""Tests for the orphaned-relationship audit."""

from __future__ import annotations

import pytest
from bson import ObjectId

from uniform_ops.database.snapshot import SnapshotRecordStore
from uniform_ops.modules.audit.relationships import (
    RELATIONSHIP_CHECK_BY_NAME,
    RelationshipAuditor,
)


@pytest.fixture
def store():
    return SnapshotRecordStore(
        {
            "orders": [
                {"_id": ObjectId(), "id": "400001", "pr_number": "PR-1", "dispatchStatus": "SHIPPED"},
                {"_id": ObjectId(), "id": "400002", "pr_number": "PR-2", "deliveryStatus": "DELIVERED"},
                {"_id": ObjectId(), "id": "400003", "pr_number": "PR-3"},
            ],
            "shipments": [
                {"_id": ObjectId(), "shipmentId": "SHIP_1", "prNumber": "PR-1"},
                {"_id": ObjectId(), "shipmentId": "SHIP_2", "prNumber": "PR-404"},
            ],
            "vendors": [{"_id": ObjectId(), "id": "100010"}],
            "uniforms": [{"_id": ObjectId(), "id": "200001"}],
            "productvendors": [
                {"_id": ObjectId(), "id": "600001", "vendorId": "100010", "uniformId": "200001"},
                {"_id": ObjectId(), "id": "600002", "vendorId": "100010"},
                {"_id": ObjectId(), "id": "600003", "vendorId": "100099", "uniformId": "200099"},
            ],
        }
    )


class TestRelationshipAuditor:
    @pytest.mark.asyncio
    async def test_orphaned_shipments(self, store):
        auditor = RelationshipAuditor(store, [RELATIONSHIP_CHECK_BY_NAME["shipments-to-requisitions"]])

        report = await auditor.audit()

        check = report.checks[0]
        assert check.total == 2
        assert [o.document_id for o in check.orphaned] == ["SHIP_2"]
        assert check.orphaned[0].issues == ["PR PR-404 not found"]

    @pytest.mark.asyncio
    async def test_requisitions_claiming_shipment(self, store):
        auditor = RelationshipAuditor(store, [RELATIONSHIP_CHECK_BY_NAME["requisitions-without-shipments"]])

        report = await auditor.audit()

        check = report.checks[0]
        assert check.total == 2
        assert [o.document_id for o in check.orphaned] == ["400002"]

    @pytest.mark.asyncio
    async def test_optional_link_only_checked_when_set(self, store):
        auditor = RelationshipAuditor(store, [RELATIONSHIP_CHECK_BY_NAME["productvendors"]])

        report = await auditor.audit()

        check = report.checks[0]
        assert [o.document_id for o in check.orphaned] == ["600003"]
        assert check.orphaned[0].issues == ["Vendor 100099 not found", "Uniform 200099 not found"]
        assert [d["id"] for d in auditor.orphaned_documents["productvendors"]] == ["600003"]

    @pytest.mark.asyncio
    async def test_missing_required_link_is_reported(self):
        store = SnapshotRecordStore({"invoices": [{"_id": ObjectId(), "id": "900001"}], "grns": []})
        auditor = RelationshipAuditor(store, [RELATIONSHIP_CHECK_BY_NAME["invoices-to-grns"]])

        report = await auditor.audit()

        assert report.checks[0].orphaned[0].issues == ["grnId is missing"]

    @pytest.mark.asyncio
    async def test_full_audit_is_read_only(self, store):
        before = {name: list(store.documents(name)) for name in ("orders", "shipments", "productvendors")}

        report = await RelationshipAuditor(store).audit()

        assert report.total_orphaned == 3
        for name, docs in before.items():
            assert store.documents(name) == docs
