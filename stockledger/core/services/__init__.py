"""Core domain services."""

from stockledger.core.services.fifo_allocation import (
    FifoAllocation,
    FifoPlan,
    fifo_sort_key,
    order_for_fifo,
    plan_fifo_allocation,
)
from stockledger.core.services.fifo_engine import FIFOEngine, UnitOfWorkFactory

__all__ = [
    "FIFOEngine",
    "UnitOfWorkFactory",
    "FifoAllocation",
    "FifoPlan",
    "fifo_sort_key",
    "order_for_fifo",
    "plan_fifo_allocation",
]
