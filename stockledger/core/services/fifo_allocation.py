"""
FIFO allocation planning.

Splits a requested quantity across batches, oldest receipt first. Pure
functions over entities: no storage access, so the allocation rules can be
exercised without a database. The engine applies the resulting plan.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from stockledger.core.entities.inventory import ZERO, StockBatch


def fifo_sort_key(batch: StockBatch) -> tuple[date, int]:
    """Receipt date first, then creation order (row id)."""
    return (batch.receipt_date, batch.id or 0)


def order_for_fifo(batches: Iterable[StockBatch]) -> list[StockBatch]:
    """Return the eligible batches in consumption order."""
    return sorted((b for b in batches if b.is_eligible), key=fifo_sort_key)


@dataclass(frozen=True)
class FifoAllocation:
    """Quantity to take from a single batch."""

    batch: StockBatch
    quantity: Decimal

    @property
    def quantity_before(self) -> Decimal:
        return self.batch.remaining_quantity

    @property
    def quantity_after(self) -> Decimal:
        return self.batch.remaining_quantity - self.quantity

    @property
    def depletes_batch(self) -> bool:
        return self.quantity_after == ZERO


@dataclass(frozen=True)
class FifoPlan:
    """Ordered allocations for one consumption request."""

    requested: Decimal
    allocations: list[FifoAllocation] = field(default_factory=list)

    @property
    def total_allocated(self) -> Decimal:
        return sum((a.quantity for a in self.allocations), ZERO)

    @property
    def shortfall(self) -> Decimal:
        return self.requested - self.total_allocated

    @property
    def fully_allocated(self) -> bool:
        return self.shortfall == ZERO

    def breakdown(self) -> list[dict[str, str | int | None]]:
        """Batch-level detail for error reporting."""
        return [
            {
                "batch_id": a.batch.id,
                "quantity": str(a.quantity),
                "unit_cost": str(a.batch.unit_cost),
            }
            for a in self.allocations
        ]


def plan_fifo_allocation(batches: Sequence[StockBatch], quantity: Decimal) -> FifoPlan:
    """
    Allocate quantity across batches in FIFO order.

    Ineligible batches (depleted, expired, empty) are skipped. Each batch
    gives min(remaining, still needed); walking stops as soon as the request
    is covered. Never allocates more than a batch holds nor more than
    requested.

    Args:
        batches: Candidate batches, any order.
        quantity: Requested quantity, must be positive.

    Returns:
        FifoPlan whose shortfall is whatever the batches could not cover.
    """
    if quantity <= ZERO:
        raise ValueError("quantity must be positive")

    left = quantity
    allocations: list[FifoAllocation] = []

    for batch in order_for_fifo(batches):
        if left <= ZERO:
            break
        take = min(batch.remaining_quantity, left)
        if take > ZERO:
            allocations.append(FifoAllocation(batch=batch, quantity=take))
            left -= take

    return FifoPlan(requested=quantity, allocations=allocations)
