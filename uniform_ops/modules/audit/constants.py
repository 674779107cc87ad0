"""Legacy → unified status tables and the entity kinds they apply to.

The tables are maintained by hand; a legacy value missing from a table means
the unified status cannot be inferred safely.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from uniform_ops.models.enums import EntityKind

LEGACY_TO_UNIFIED_ORDER_STATUS: dict[str, str] = {
    "Awaiting approval": "PENDING_APPROVAL",
    "Awaiting fulfilment": "IN_FULFILMENT",
    "Dispatched": "DISPATCHED",
    "Delivered": "DELIVERED",
}

LEGACY_TO_UNIFIED_PR_STATUS: dict[str, str] = {
    "DRAFT": "DRAFT",
    "SUBMITTED": "PENDING_SITE_ADMIN_APPROVAL",
    "PENDING_SITE_ADMIN_APPROVAL": "PENDING_SITE_ADMIN_APPROVAL",
    "SITE_ADMIN_APPROVED": "SITE_ADMIN_APPROVED",
    "PENDING_COMPANY_ADMIN_APPROVAL": "PENDING_COMPANY_ADMIN_APPROVAL",
    "COMPANY_ADMIN_APPROVED": "COMPANY_ADMIN_APPROVED",
    "REJECTED_BY_SITE_ADMIN": "REJECTED",
    "REJECTED_BY_COMPANY_ADMIN": "REJECTED",
    "PO_CREATED": "LINKED_TO_PO",
    "FULLY_DELIVERED": "FULLY_DELIVERED",
}

LEGACY_TO_UNIFIED_PO_STATUS: dict[str, str] = {
    "CREATED": "CREATED",
    "SENT_TO_VENDOR": "SENT_TO_VENDOR",
    "ACKNOWLEDGED": "ACKNOWLEDGED",
    "IN_FULFILMENT": "IN_FULFILMENT",
    "COMPLETED": "FULLY_DELIVERED",
    "CANCELLED": "CANCELLED",
}

LEGACY_TO_UNIFIED_SHIPMENT_STATUS: dict[str, str] = {
    "CREATED": "CREATED",
    "IN_TRANSIT": "IN_TRANSIT",
    "DELIVERED": "DELIVERED",
    "FAILED": "FAILED",
}

LEGACY_TO_UNIFIED_GRN_STATUS: dict[str, str] = {
    "CREATED": "RAISED",
    "ACKNOWLEDGED": "APPROVED",
    "INVOICED": "INVOICED",
    "RECEIVED": "APPROVED",
    "CLOSED": "CLOSED",
}

# grnStatus values that are taken over unchanged before consulting the table
GRN_PREFERRED_STATUSES: dict[str, str] = {
    "APPROVED": "APPROVED",
    "RAISED": "RAISED",
}

LEGACY_TO_UNIFIED_INVOICE_STATUS: dict[str, str] = {
    "RAISED": "RAISED",
    "APPROVED": "APPROVED",
}

REPAIR_SOURCE = "status-repair"


def _is_requisition(document: Mapping[str, Any]) -> bool:
    return document.get("pr_number") is not None


def _is_plain_order(document: Mapping[str, Any]) -> bool:
    return "pr_number" not in document


def _any(document: Mapping[str, Any]) -> bool:
    return True


@dataclass(frozen=True)
class StatusEntityConfig:
    """Where one entity kind keeps its legacy and unified status."""

    kind: EntityKind
    collection: str
    legacy_field: str
    unified_field: str
    mapping: Mapping[str, str]
    id_field: str = "id"
    selector: Callable[[Mapping[str, Any]], bool] = _any
    # Optional second legacy field consulted first, with its own table
    preferred_field: str | None = None
    preferred_mapping: Mapping[str, str] = field(default_factory=dict)

    @property
    def updated_at_field(self) -> str:
        return f"{self.unified_field}_updated_at"

    @property
    def updated_by_field(self) -> str:
        return f"{self.unified_field}_updated_by"

    def legacy_value(self, document: Mapping[str, Any]) -> Any:
        if self.preferred_field is not None:
            preferred = document.get(self.preferred_field)
            if preferred is not None:
                return f"{document.get(self.legacy_field)}/{preferred}"
        return document.get(self.legacy_field)

    def expected_unified(self, document: Mapping[str, Any]) -> str | None:
        """Unified status implied by the legacy fields, or None when ambiguous."""
        if self.preferred_field is not None:
            preferred = document.get(self.preferred_field)
            if isinstance(preferred, str) and preferred in self.preferred_mapping:
                return self.preferred_mapping[preferred]
        legacy = document.get(self.legacy_field)
        if not isinstance(legacy, str):
            return None
        return self.mapping.get(legacy)


STATUS_ENTITIES: tuple[StatusEntityConfig, ...] = (
    StatusEntityConfig(
        kind=EntityKind.ORDER,
        collection="orders",
        legacy_field="status",
        unified_field="unified_status",
        mapping=LEGACY_TO_UNIFIED_ORDER_STATUS,
        selector=_is_plain_order,
    ),
    StatusEntityConfig(
        kind=EntityKind.PURCHASE_REQUISITION,
        collection="orders",
        legacy_field="pr_status",
        unified_field="unified_pr_status",
        mapping=LEGACY_TO_UNIFIED_PR_STATUS,
        selector=_is_requisition,
    ),
    StatusEntityConfig(
        kind=EntityKind.PURCHASE_ORDER,
        collection="purchaseorders",
        legacy_field="po_status",
        unified_field="unified_po_status",
        mapping=LEGACY_TO_UNIFIED_PO_STATUS,
    ),
    StatusEntityConfig(
        kind=EntityKind.SHIPMENT,
        collection="shipments",
        legacy_field="shipmentStatus",
        unified_field="unified_shipment_status",
        mapping=LEGACY_TO_UNIFIED_SHIPMENT_STATUS,
        id_field="shipmentId",
    ),
    StatusEntityConfig(
        kind=EntityKind.GOODS_RECEIPT,
        collection="grns",
        legacy_field="status",
        unified_field="unified_grn_status",
        mapping=LEGACY_TO_UNIFIED_GRN_STATUS,
        preferred_field="grnStatus",
        preferred_mapping=GRN_PREFERRED_STATUSES,
    ),
    StatusEntityConfig(
        kind=EntityKind.INVOICE,
        collection="invoices",
        legacy_field="invoiceStatus",
        unified_field="unified_invoice_status",
        mapping=LEGACY_TO_UNIFIED_INVOICE_STATUS,
    ),
)

STATUS_ENTITY_BY_KIND: dict[EntityKind, StatusEntityConfig] = {
    config.kind: config for config in STATUS_ENTITIES
}
