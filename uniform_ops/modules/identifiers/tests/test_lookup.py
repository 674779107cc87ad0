"""Tests for reference lookups, the lookup cache and code allocation."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from uniform_ops.exceptions import ConfigurationException
from uniform_ops.modules.identifiers.codes import CodeAllocator, document_identity
from uniform_ops.modules.identifiers.lookup import LookupCache, ReferenceLookup

OID_A = ObjectId("507f1f77bcf86cd799439011")
OID_B = ObjectId("507f1f77bcf86cd799439012")
OID_C = ObjectId("507f1f77bcf86cd799439013")


class TestReferenceLookup:
    def test_maps_internal_reference_to_canonical_code(self):
        lookup = ReferenceLookup.from_documents("companies", [{"_id": OID_A, "id": "100004"}])
        assert lookup.resolve(str(OID_A)) == "100004"
        assert str(OID_A) in lookup
        assert len(lookup) == 1

    def test_falls_back_through_candidate_fields(self):
        docs = [{"_id": OID_A, "id": str(OID_A), "employeeId": "300001"}]
        lookup = ReferenceLookup.from_documents("employees", docs, ("id", "employeeId"))
        assert lookup.resolve(str(OID_A)) == "300001"

    def test_records_targets_without_canonical_code(self):
        lookup = ReferenceLookup.from_documents("companies", [{"_id": OID_B, "name": "Acme"}])
        assert lookup.resolve(str(OID_B)) is None
        assert lookup.unmapped == {str(OID_B)}
        assert lookup.awaits_code(str(OID_B))
        assert not lookup.awaits_code(str(OID_A))

    def test_unknown_key(self):
        lookup = ReferenceLookup("companies", {})
        assert lookup.resolve(str(OID_C)) is None


class TestLookupCache:
    @pytest.mark.asyncio
    async def test_builds_each_target_once(self):
        store = AsyncMock()
        store.find_all.return_value = [{"_id": OID_A, "id": "100004"}]
        cache = LookupCache(store)

        first = await cache.get("companies")
        second = await cache.get("companies")

        assert first is second
        store.find_all.assert_awaited_once_with("companies")

    @pytest.mark.asyncio
    async def test_invalidate_forces_rebuild(self):
        store = AsyncMock()
        store.find_all.return_value = []
        cache = LookupCache(store)

        await cache.get("companies")
        cache.invalidate("companies")
        await cache.get("companies")

        assert store.find_all.await_count == 2

    @pytest.mark.asyncio
    async def test_separate_caches_do_not_share_state(self):
        store = AsyncMock()
        store.find_all.return_value = []
        await LookupCache(store).get("companies")
        await LookupCache(store).get("companies")
        assert store.find_all.await_count == 2


class TestCodeAllocator:
    def test_starts_after_highest_existing_code(self):
        docs = [{"id": "100007"}, {"id": "100003"}, {"id": str(OID_A)}]
        allocator = CodeAllocator.from_documents(docs)
        assert allocator.allocate() == "100008"
        assert allocator.allocate() == "100009"

    def test_starts_at_configured_floor(self):
        allocator = CodeAllocator.from_documents([], start=100001)
        assert allocator.allocate() == "100001"

    def test_exhausted_code_space(self):
        allocator = CodeAllocator(1_000_000, width=6)
        with pytest.raises(ConfigurationException):
            allocator.allocate()

    def test_zero_padding(self):
        assert CodeAllocator(42, width=6).allocate() == "000042"


class TestDocumentIdentity:
    def test_prefers_canonical_id(self):
        assert document_identity({"_id": OID_A, "id": "100004"}) == "100004"

    def test_uses_any_business_id(self):
        assert document_identity({"_id": OID_A, "shipmentId": "SHIP_1"}, "shipmentId") == "SHIP_1"

    def test_falls_back_to_internal_id(self):
        assert document_identity({"_id": OID_A}) == str(OID_A)
        assert document_identity({"_id": OID_A, "id": ""}) == str(OID_A)
        assert document_identity({"_id": OID_A, "id": None}) == str(OID_A)

    def test_no_id(self):
        assert document_identity({}) == "<no-id>"
