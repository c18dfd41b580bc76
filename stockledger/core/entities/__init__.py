"""Core domain entities."""

from stockledger.core.entities.inventory import (
    AdjustmentType,
    AvailabilityResult,
    BatchReceipt,
    BatchReconciliation,
    ConsumedBatch,
    ConsumptionReason,
    ConsumptionResult,
    MovementFilters,
    MovementPage,
    MovementType,
    SourceRef,
    StockBatch,
    StockMovement,
    StockSummary,
)

__all__ = [
    # Ledger entities
    "StockBatch",
    "StockMovement",
    "SourceRef",
    "BatchReceipt",
    # Enums
    "MovementType",
    "ConsumptionReason",
    "AdjustmentType",
    # Results
    "ConsumedBatch",
    "ConsumptionResult",
    "AvailabilityResult",
    "BatchReconciliation",
    "StockSummary",
    # Movement log
    "MovementFilters",
    "MovementPage",
]
