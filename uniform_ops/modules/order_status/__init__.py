from uniform_ops.modules.order_status.aggregator import (
    RequisitionRollup,
    aggregate,
    roll_up_requisitions,
    split_status,
)

__all__ = [
    "RequisitionRollup",
    "aggregate",
    "roll_up_requisitions",
    "split_status",
]
