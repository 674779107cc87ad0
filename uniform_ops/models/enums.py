import enum


# ── Order status ──────────────────────────────────────────────────────────


class SplitOrderStatus(str, enum.Enum):
    AWAITING_APPROVAL = "Awaiting approval"
    AWAITING_FULFILMENT = "Awaiting fulfilment"
    DISPATCHED = "Dispatched"
    DELIVERED = "Delivered"


class CompositeOrderStatus(str, enum.Enum):
    AWAITING_APPROVAL = "Awaiting approval"
    AWAITING_DISPATCH = "Awaiting Dispatch"
    PARTIALLY_DISPATCHED = "Partially Dispatched"
    AWAITING_DELIVERY = "Awaiting Delivery"
    PARTIALLY_DELIVERED = "Partially Delivered"
    DELIVERED = "Delivered"


# ── Identifier migration ──────────────────────────────────────────────────


class ReferenceKind(str, enum.Enum):
    VALID = "VALID"
    LEGACY_REF = "LEGACY_REF"
    NOT_A_REFERENCE = "NOT_A_REFERENCE"


class FieldOutcome(str, enum.Enum):
    ALREADY_VALID = "ALREADY_VALID"
    RESOLVED = "RESOLVED"
    ORPHANED = "ORPHANED"
    AWAITING_CODE = "AWAITING_CODE"
    SKIPPED = "SKIPPED"


class MigrationMode(str, enum.Enum):
    DRY_RUN = "DRY_RUN"
    APPLY = "APPLY"


class RunState(str, enum.Enum):
    INITIAL = "INITIAL"
    BUILDING_LOOKUP = "BUILDING_LOOKUP"
    SCANNING = "SCANNING"
    DRY_RUN_COMPLETE = "DRY_RUN_COMPLETE"
    APPLIED = "APPLIED"


# ── Status audit ──────────────────────────────────────────────────────────


class EntityKind(str, enum.Enum):
    ORDER = "Order"
    PURCHASE_REQUISITION = "PR"
    PURCHASE_ORDER = "PO"
    SHIPMENT = "Shipment"
    GOODS_RECEIPT = "GRN"
    INVOICE = "Invoice"


class ConsistencyBucket(str, enum.Enum):
    CONSISTENT = "CONSISTENT"
    NULL = "NULL"
    INCONSISTENT = "INCONSISTENT"


class RepairAction(str, enum.Enum):
    REPAIRED = "REPAIRED"
    SKIPPED = "SKIPPED"
    ERROR = "ERROR"


class MigrationLogAction(str, enum.Enum):
    STATUS_REPAIR = "STATUS_REPAIR"
    REFERENCE_MIGRATION = "REFERENCE_MIGRATION"
    DUPLICATE_DELETE = "DUPLICATE_DELETE"
    ORPHAN_DELETE = "ORPHAN_DELETE"
    MIGRATION_START = "MIGRATION_START"
    MIGRATION_COMPLETE = "MIGRATION_COMPLETE"
