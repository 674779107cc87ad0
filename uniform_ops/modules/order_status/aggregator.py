"""Composite status of a purchase requisition split across several vendors."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from uniform_ops.models.enums import CompositeOrderStatus, SplitOrderStatus
from uniform_ops.modules.order_status.constants import (
    DEFAULT_SPLIT_STATUS,
    KNOWN_SPLIT_STATUSES,
    PARENT_ORDER_FIELD,
)


def _raw_status(split: Any) -> Any:
    if isinstance(split, Mapping):
        return split.get("status")
    return getattr(split, "status", None)


def split_status(split: Any) -> SplitOrderStatus:
    """Return the counted status of one split.

    Absent or unrecognized values count as ``Awaiting approval``.
    """
    raw = _raw_status(split)
    if isinstance(raw, SplitOrderStatus):
        return raw
    if isinstance(raw, str) and raw in KNOWN_SPLIT_STATUSES:
        return SplitOrderStatus(raw)
    return DEFAULT_SPLIT_STATUS


def aggregate(splits: Sequence[Any]) -> str:
    """Compute the display status for a requisition from its split orders.

    A requisition with a single split shows that split's status verbatim,
    whatever it is. Otherwise the first matching rule wins:

    1. any split delivered: ``Delivered`` when all are, else ``Partially Delivered``
    2. any split awaiting approval: ``Awaiting approval``
    3. dispatched count: none ``Awaiting Dispatch``, all ``Awaiting Delivery``,
       otherwise ``Partially Dispatched``
    """
    splits = list(splits)
    if not splits:
        return CompositeOrderStatus.AWAITING_APPROVAL.value

    if len(splits) == 1:
        raw = _raw_status(splits[0])
        if raw is None:
            return DEFAULT_SPLIT_STATUS.value
        return raw.value if isinstance(raw, SplitOrderStatus) else raw

    statuses = [split_status(s) for s in splits]
    total = len(statuses)

    delivered = statuses.count(SplitOrderStatus.DELIVERED)
    if delivered > 0:
        if delivered == total:
            return CompositeOrderStatus.DELIVERED.value
        return CompositeOrderStatus.PARTIALLY_DELIVERED.value

    if SplitOrderStatus.AWAITING_APPROVAL in statuses:
        return CompositeOrderStatus.AWAITING_APPROVAL.value

    dispatched = statuses.count(SplitOrderStatus.DISPATCHED)
    if dispatched == 0:
        return CompositeOrderStatus.AWAITING_DISPATCH.value
    if dispatched == total:
        return CompositeOrderStatus.AWAITING_DELIVERY.value
    return CompositeOrderStatus.PARTIALLY_DISPATCHED.value


@dataclass
class RequisitionRollup:
    """Composite view of one requisition and its vendor splits."""

    requisition_id: str
    split_ids: list[str] = field(default_factory=list)
    status: str = CompositeOrderStatus.AWAITING_APPROVAL.value
    total: int = 0
    delivered: int = 0
    dispatched: int = 0

    @property
    def vendor_count(self) -> int:
        return len(self.split_ids)

    @property
    def shipped(self) -> int:
        return self.delivered + self.dispatched

    @property
    def is_split(self) -> bool:
        return self.vendor_count > 1


def _order_id(order: Mapping[str, Any]) -> str:
    return str(order.get("id") or order.get("_id"))


def roll_up_requisitions(orders: Iterable[Mapping[str, Any]]) -> list[RequisitionRollup]:
    """Group order documents by requisition and aggregate each group.

    Orders sharing a ``parentOrderId`` are splits of one requisition; an order
    without a parent is a requisition on its own. Groups keep first-seen order.
    """
    groups: dict[str, list[Mapping[str, Any]]] = {}
    for order in orders:
        parent = order.get(PARENT_ORDER_FIELD)
        key = str(parent) if parent else _order_id(order)
        groups.setdefault(key, []).append(order)

    rollups: list[RequisitionRollup] = []
    for requisition_id, splits in groups.items():
        counted = [split_status(s) for s in splits]
        rollups.append(
            RequisitionRollup(
                requisition_id=requisition_id,
                split_ids=[_order_id(s) for s in splits],
                status=aggregate(splits),
                total=len(splits),
                delivered=counted.count(SplitOrderStatus.DELIVERED),
                dispatched=counted.count(SplitOrderStatus.DISPATCHED),
            )
        )
    return rollups
