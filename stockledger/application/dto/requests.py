"""Request DTOs for API endpoints.

Pydantic v2 models for request validation. Quantities and costs are
Decimal; JSON numbers and numeric strings are both accepted.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from stockledger.core.entities.inventory import AdjustmentType, ConsumptionReason


class StockScopeRequest(BaseModel):
    """Tenant and location every stock operation is scoped to."""

    tenant_id: str = Field(..., min_length=1, description="Tenant identifier")
    location_id: str = Field(..., min_length=1, description="Stock location (branch)")
    actor_id: str | None = Field(default=None, description="User performing the operation")


# --- Goods receipt ---


class ReceiveGoodsLineRequest(BaseModel):
    """One line of a goods receipt."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    accepted_quantity: Decimal = Field(
        ...,
        ge=0,
        description="Accepted quantity; lines with 0 are skipped",
    )
    unit_cost: Decimal = Field(..., ge=0, description="Cost per unit at receipt")
    batch_number: str | None = Field(default=None, description="Supplier lot number")
    expiry_date: date | None = Field(default=None, description="Lot expiry date")
    line_id: str | None = Field(
        default=None,
        description="Goods receipt line id, stored as the batch source",
    )


class ReceiveGoodsRequest(StockScopeRequest):
    """Request to confirm a goods receipt into stock."""

    goods_receipt_id: str = Field(..., min_length=1, description="Goods receipt reference")
    receipt_date: date | None = Field(
        default=None,
        description="Receipt date (defaults to today)",
    )
    lines: list[ReceiveGoodsLineRequest] = Field(..., min_length=1)
    notes: str | None = Field(default=None, description="Additional notes")


# --- Manual consumption ---


class ConsumeStockRequest(StockScopeRequest):
    """Request to write off stock (samples, wastage, damage, ...)."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: Decimal = Field(..., gt=0, description="Quantity to write off")
    reason: ConsumptionReason = Field(..., description="Reason code")
    description: str | None = Field(
        default=None,
        description="Free text; required when reason is 'other'",
    )


# --- Adjustments ---


class AdjustStockRequest(StockScopeRequest):
    """Request for a manual stock adjustment."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    adjustment_type: AdjustmentType = Field(..., description="increase or decrease")
    quantity: Decimal = Field(..., gt=0, description="Quantity to add or remove")
    reason: str = Field(..., min_length=1, description="Why the stock is adjusted")
    default_unit_cost: Decimal | None = Field(
        default=None,
        ge=0,
        description="Unit cost for an increase when no stock exists to average",
    )
    batch_number: str | None = Field(default=None, description="Batch number for an increase")
    expiry_date: date | None = Field(default=None, description="Expiry for an increase")
    notes: str | None = Field(default=None, description="Additional notes")


# --- Sales ---


class SaleLineRequest(BaseModel):
    """A single line of a finalized invoice."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: Decimal = Field(..., gt=0, description="Quantity sold")


class RecordSaleRequest(StockScopeRequest):
    """Request to deduct stock for a finalized invoice."""

    invoice_id: str = Field(..., min_length=1, description="Invoice reference")
    lines: list[SaleLineRequest] = Field(..., min_length=1)


# --- Audits ---


class AuditLineRequest(BaseModel):
    """Counted line of a stock audit."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    system_quantity: Decimal = Field(..., ge=0, description="Quantity on record at audit start")
    physical_quantity: Decimal = Field(..., ge=0, description="Quantity counted")
    average_cost: Decimal | None = Field(
        default=None,
        ge=0,
        description="Average cost snapshot; current weighted average when omitted",
    )


class PostAuditVarianceRequest(StockScopeRequest):
    """Request to post the variances of a completed audit."""

    audit_id: str = Field(..., min_length=1, description="Audit reference")
    lines: list[AuditLineRequest] = Field(..., min_length=1)


# --- Transfers ---


class TransferLineRequest(BaseModel):
    """Product and quantity dispatched in a transfer."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: Decimal = Field(..., gt=0, description="Quantity to transfer")


class TransferStockRequest(BaseModel):
    """Request to move stock between two locations."""

    tenant_id: str = Field(..., min_length=1, description="Tenant identifier")
    from_location_id: str = Field(..., min_length=1, description="Source location")
    to_location_id: str = Field(..., min_length=1, description="Destination location")
    transfer_id: str = Field(..., min_length=1, description="Transfer reference")
    lines: list[TransferLineRequest] = Field(..., min_length=1)
    actor_id: str | None = Field(default=None, description="User performing the transfer")
    notes: str | None = Field(default=None, description="Additional notes")


# --- Alerts ---


class StockAlertsRequest(BaseModel):
    """Request for near-expiry and expired stock alerts."""

    location_id: str = Field(..., min_length=1, description="Stock location")
    tenant_id: str | None = Field(default=None, description="Restrict to one tenant")
    days: int | None = Field(
        default=None,
        ge=0,
        description="Near-expiry horizon in days (defaults to settings)",
    )
