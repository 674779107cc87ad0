"""Split-order statuses and where requisition membership is stored."""

from __future__ import annotations

from uniform_ops.models.enums import SplitOrderStatus

KNOWN_SPLIT_STATUSES: frozenset[str] = frozenset(s.value for s in SplitOrderStatus)

DEFAULT_SPLIT_STATUS = SplitOrderStatus.AWAITING_APPROVAL

# Order documents that belong to a multi-vendor requisition carry this field
PARENT_ORDER_FIELD = "parentOrderId"
