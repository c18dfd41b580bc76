"""Stock batch and movement ledger entities."""

from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

ZERO = Decimal("0")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in SQLite."""
    return datetime.now(UTC).replace(tzinfo=None)


class MovementType(str, Enum):
    """Types of stock movements recorded in the ledger."""

    RECEIPT = "receipt"
    SALE = "sale"
    CONSUMPTION = "consumption"
    ADJUSTMENT = "adjustment"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"
    RETURN = "return"
    AUDIT = "audit"


class ConsumptionReason(str, Enum):
    """Reason codes for manual stock write-offs."""

    SAMPLE = "sample"
    DEMO = "demo"
    WASTAGE = "wastage"
    DAMAGED = "damaged"
    EXPIRED = "expired"
    OTHER = "other"


class AdjustmentType(str, Enum):
    """Direction of a manual stock adjustment."""

    INCREASE = "increase"
    DECREASE = "decrease"


class SourceRef(BaseModel):
    """Link from a batch to the operation that created it."""

    source_type: str  # goods_receipt_item, transfer, adjustment, audit
    source_id: str


class StockBatch(BaseModel):
    """One physical receipt lot of a product at a location."""

    id: int | None = None
    tenant_id: str
    location_id: str
    product_id: str
    batch_number: str | None = None
    quantity: Decimal  # original quantity, immutable
    remaining_quantity: Decimal
    unit_cost: Decimal  # fixed at receipt
    receipt_date: date
    expiry_date: date | None = None
    is_expired: bool = False
    is_depleted: bool = False
    source_type: str | None = None
    source_id: str | None = None
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def total_value(self) -> Decimal:
        """Receipt value = original quantity * unit cost."""
        return self.quantity * self.unit_cost

    @property
    def remaining_value(self) -> Decimal:
        return self.remaining_quantity * self.unit_cost

    @property
    def consumed_quantity(self) -> Decimal:
        return self.quantity - self.remaining_quantity

    @property
    def is_eligible(self) -> bool:
        """Consumable by FIFO: not depleted, not expired, stock left."""
        return (
            not self.is_depleted
            and not self.is_expired
            and self.remaining_quantity > ZERO
        )

    def has_expired_as_of(self, as_of: date) -> bool:
        """True once the expiry date lies strictly before as_of."""
        return self.expiry_date is not None and self.expiry_date < as_of


class StockMovement(BaseModel):
    """Immutable ledger entry for one quantity change against one batch."""

    id: int | None = None
    tenant_id: str
    location_id: str
    product_id: str
    batch_id: int | None = None
    movement_type: MovementType
    quantity: Decimal  # signed: negative for outflow, positive for inflow
    quantity_before: Decimal
    quantity_after: Decimal
    reference_type: str | None = None  # invoice, transfer, audit, adjustment, ...
    reference_id: str | None = None
    reason: str | None = None
    notes: str | None = None
    actor_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_outflow(self) -> bool:
        return self.quantity < ZERO


class BatchReceipt(BaseModel):
    """A newly created batch together with the movement that recorded it."""

    batch: StockBatch
    movement: StockMovement


class ConsumedBatch(BaseModel):
    """Quantity taken from one batch during a consumption."""

    batch_id: int
    quantity: Decimal
    unit_cost: Decimal

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_cost


class ConsumptionResult(BaseModel):
    """Outcome of a FIFO consumption. A shortfall is a normal outcome."""

    success: bool
    consumed_batches: list[ConsumedBatch] = Field(default_factory=list)
    total_consumed: Decimal = ZERO
    shortfall: Decimal = ZERO
    movements: list[StockMovement] = Field(default_factory=list)

    @property
    def total_cost(self) -> Decimal:
        """Cost basis of everything consumed, lot by lot."""
        return sum((b.value for b in self.consumed_batches), ZERO)


class AvailabilityResult(BaseModel):
    """Eligible stock compared against a requested quantity."""

    available: bool
    current_stock: Decimal
    shortfall: Decimal


class MovementFilters(BaseModel):
    """Filters for the movement log."""

    tenant_id: str | None = None
    product_id: str | None = None
    movement_type: MovementType | list[MovementType] | None = None
    date_from: date | None = None
    date_to: date | None = None  # inclusive
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    sort_order: Literal["asc", "desc"] = "desc"

    @property
    def movement_types(self) -> list[MovementType]:
        if self.movement_type is None:
            return []
        if isinstance(self.movement_type, list):
            return self.movement_type
        return [self.movement_type]

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class MovementPage(BaseModel):
    """One page of the movement log."""

    items: list[StockMovement]
    total: int
    page: int
    limit: int


class BatchReconciliation(BaseModel):
    """Batch depletion compared against the ledger outflows recorded for it."""

    batch_id: int
    expected_outflow: Decimal  # quantity - remaining
    ledger_outflow: Decimal  # -sum of negative deltas

    @property
    def balanced(self) -> bool:
        return self.expected_outflow == self.ledger_outflow


class StockSummary(BaseModel):
    """Stock position of a product at a location."""

    location_id: str
    product_id: str
    quantity_on_hand: Decimal  # remaining across non-depleted batches, expired included
    available_quantity: Decimal  # eligible batches only
    average_cost: Decimal
    total_value: Decimal  # eligible stock at lot cost
    earliest_expiry: date | None = None
    has_near_expiry: bool = False
    has_expired: bool = False
