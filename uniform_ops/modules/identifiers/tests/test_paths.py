"""Tests for dotted field-path access."""

from __future__ import annotations

import pytest

from uniform_ops.exceptions import ConfigurationException, MalformedDocumentException
from uniform_ops.modules.identifiers.paths import (
    FieldPath,
    assign,
    render_address,
    update_key,
    value_at,
)


class TestFieldPathParsing:
    @pytest.mark.parametrize("raw", ["", ".", "items.", ".uniformId", "items..uniformId"])
    def test_invalid_paths_rejected(self, raw):
        with pytest.raises(ConfigurationException):
            FieldPath(raw)

    def test_segments(self):
        path = FieldPath("items.uniformId")
        assert path.segments == ("items", "uniformId")
        assert path.is_nested is True
        assert FieldPath("companyId").is_nested is False

    def test_equality(self):
        assert FieldPath("companyId") == FieldPath("companyId")
        assert len({FieldPath("a.b"), FieldPath("a.b")}) == 1


class TestSlots:
    def test_scalar_field(self):
        slots = FieldPath("companyId").slots({"companyId": "100001"})
        assert [(s.address, s.value) for s in slots] == [(("companyId",), "100001")]

    def test_missing_field_yields_nothing(self):
        assert FieldPath("companyId").slots({}) == []

    def test_array_field_fans_out(self):
        slots = FieldPath("vendorIds").slots({"vendorIds": ["a", "b"]})
        assert [s.address for s in slots] == [("vendorIds", 0), ("vendorIds", 1)]
        assert all(s.in_array for s in slots)

    def test_nested_array_of_sub_documents(self):
        doc = {"items": [{"uniformId": "x"}, {"qty": 2}, {"uniformId": "y"}]}
        slots = FieldPath("items.uniformId").slots(doc)
        assert [(render_address(s.address), s.value) for s in slots] == [
            ("items[0].uniformId", "x"),
            ("items[2].uniformId", "y"),
        ]

    def test_nested_sub_document(self):
        slots = FieldPath("address.cityId").slots({"address": {"cityId": "c"}})
        assert slots[0].address == ("address", "cityId")
        assert slots[0].in_array is False

    def test_null_intermediate_yields_nothing(self):
        assert FieldPath("items.uniformId").slots({"items": None}) == []

    def test_scalar_intermediate_is_malformed(self):
        with pytest.raises(MalformedDocumentException):
            FieldPath("items.uniformId").slots({"items": "oops"})

    def test_get_returns_scalar_or_list(self):
        assert FieldPath("a").get({"a": 1}) == 1
        assert FieldPath("a.b").get({"a": [{"b": 1}, {"b": 2}]}) == [1, 2]
        assert FieldPath("a").get({}, default="none") == "none"


class TestAddressHelpers:
    def test_update_key_stops_at_array_index(self):
        assert update_key(("items", 2, "uniformId")) == "items"
        assert update_key(("address", "cityId")) == "address.cityId"
        assert update_key(("companyId",)) == "companyId"

    def test_assign_and_value_at(self):
        doc = {"items": [{"uniformId": "x"}], "address": {"cityId": "c"}}
        assign(doc, ("items", 0, "uniformId"), "100001")
        assign(doc, ("address", "cityId"), "100002")
        assert value_at(doc, "items") == [{"uniformId": "100001"}]
        assert value_at(doc, "address.cityId") == "100002"
