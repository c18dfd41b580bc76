"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
Decimal values serialize as strings so no precision is lost on the wire.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# --- Ledger entities ---


class StockBatchResponse(BaseModel):
    """Stock batch response DTO."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: str
    location_id: str
    product_id: str
    batch_number: str | None = None
    quantity: Decimal
    remaining_quantity: Decimal
    unit_cost: Decimal
    total_value: Decimal
    receipt_date: date
    expiry_date: date | None = None
    is_expired: bool
    is_depleted: bool
    source_type: str | None = None
    source_id: str | None = None
    created_at: datetime
    updated_at: datetime


class StockMovementResponse(BaseModel):
    """Stock movement response DTO."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    batch_id: int | None = None
    product_id: str
    location_id: str
    movement_type: str
    quantity: Decimal
    quantity_before: Decimal
    quantity_after: Decimal
    reference_type: str | None = None
    reference_id: str | None = None
    reason: str | None = None
    notes: str | None = None
    actor_id: str | None = None
    created_at: datetime


class ConsumedBatchResponse(BaseModel):
    """Quantity taken from one batch."""

    model_config = ConfigDict(from_attributes=True)

    batch_id: int
    quantity: Decimal
    unit_cost: Decimal
    value: Decimal


class ConsumptionResponse(BaseModel):
    """FIFO consumption outcome."""

    model_config = ConfigDict(from_attributes=True)

    success: bool
    consumed_batches: list[ConsumedBatchResponse]
    total_consumed: Decimal
    shortfall: Decimal
    total_cost: Decimal
    movements: list[StockMovementResponse] = Field(default_factory=list)


# --- Operations ---


class ReceiveGoodsResponse(BaseModel):
    """Response for a confirmed goods receipt."""

    goods_receipt_id: str
    batches: list[StockBatchResponse]
    total_value: Decimal
    skipped_lines: int = 0


class ConsumeStockResponse(BaseModel):
    """Response for a manual write-off."""

    product_id: str
    reason: str
    consumption: ConsumptionResponse


class AdjustStockResponse(BaseModel):
    """Response for a manual adjustment."""

    product_id: str
    adjustment_type: str
    quantity: Decimal
    unit_cost: Decimal | None = None  # increase only
    batch: StockBatchResponse | None = None  # increase only
    consumption: ConsumptionResponse | None = None  # decrease only


class SaleLineResponse(BaseModel):
    """Cost of goods for one invoice line."""

    product_id: str
    quantity: Decimal
    cost_of_goods: Decimal
    consumption: ConsumptionResponse


class RecordSaleResponse(BaseModel):
    """Response for invoice stock deduction."""

    invoice_id: str
    lines: list[SaleLineResponse]
    total_cost_of_goods: Decimal


class AuditLineResponse(BaseModel):
    """Posted variance of one audited product."""

    product_id: str
    system_quantity: Decimal
    physical_quantity: Decimal
    variance: Decimal
    average_cost: Decimal
    variance_value: Decimal
    action: str  # none, consumed, received
    batch_id: int | None = None
    consumption: ConsumptionResponse | None = None


class PostAuditVarianceResponse(BaseModel):
    """Response for audit variance posting."""

    audit_id: str
    lines: list[AuditLineResponse]
    total_variance_value: Decimal
    total_shrinkage_value: Decimal


class TransferLineResponse(BaseModel):
    """One product moved between locations."""

    product_id: str
    quantity: Decimal
    total_cost: Decimal
    consumption: ConsumptionResponse
    destination_batches: list[StockBatchResponse]


class TransferStockResponse(BaseModel):
    """Response for a stock transfer."""

    transfer_id: str
    from_location_id: str
    to_location_id: str
    lines: list[TransferLineResponse]


# --- Reads ---


class BatchListResponse(BaseModel):
    """Batches of a product at a location."""

    batches: list[StockBatchResponse]
    total: int


class AvailabilityResponse(BaseModel):
    """Eligible stock compared against a requested quantity."""

    location_id: str
    product_id: str
    requested: Decimal
    available: bool
    current_stock: Decimal
    shortfall: Decimal


class ValuationResponse(BaseModel):
    """Weighted average cost of eligible stock."""

    location_id: str
    product_id: str
    average_cost: Decimal


class StockSummaryResponse(BaseModel):
    """Stock position of a product at a location."""

    model_config = ConfigDict(from_attributes=True)

    location_id: str
    product_id: str
    quantity_on_hand: Decimal
    available_quantity: Decimal
    average_cost: Decimal
    total_value: Decimal
    earliest_expiry: date | None = None
    has_near_expiry: bool
    has_expired: bool


class MovementListResponse(BaseModel):
    """Paginated movement log."""

    items: list[StockMovementResponse]
    total: int
    page: int
    limit: int
    has_more: bool


class ReconciliationResponse(BaseModel):
    """Batch depletion versus ledger outflows."""

    model_config = ConfigDict(from_attributes=True)

    batch_id: int
    expected_outflow: Decimal
    ledger_outflow: Decimal
    balanced: bool


class StockAlertsResponse(BaseModel):
    """Near-expiry and expired stock at a location."""

    location_id: str
    days: int
    near_expiry: list[StockBatchResponse]
    expired: list[StockBatchResponse]
    near_expiry_value: Decimal
    expired_value: Decimal


# --- Health / errors ---


class ProviderHealthResponse(BaseModel):
    """Dependency health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict | None = Field(default=None, description="Structured error context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


class ExpirySweepResponse(BaseModel):
    """Result of flagging expired batches."""

    location_id: str
    product_id: str | None = None
    as_of: date
    expired_count: int
