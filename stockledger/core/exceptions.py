"""
Domain exceptions for the stock ledger.

Provides specific exception types for different error scenarios.
A FIFO shortfall is not an exception: it is reported on the
ConsumptionResult. InsufficientStockError is raised only when a caller
asks for all-or-nothing consumption.
"""

from decimal import Decimal
from typing import Any


class StockLedgerError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(StockLedgerError):
    """Base exception for storage operations."""

    pass


class BatchNotFoundError(StorageError):
    """Stock batch not found in storage."""

    def __init__(self, batch_id: int):
        super().__init__(
            f"Stock batch not found: {batch_id}",
            code="BATCH_NOT_FOUND",
            details={"batch_id": batch_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConcurrencyConflictError(StorageError):
    """A batch changed between selection and write.

    Retryable: re-reading the eligible batches and allocating again is safe.
    """

    def __init__(self, batch_id: int, expected_version: int, attempts: int = 1):
        super().__init__(
            f"Stock batch {batch_id} was modified concurrently "
            f"(expected version {expected_version})",
            code="CONCURRENCY_CONFLICT",
            details={
                "batch_id": batch_id,
                "expected_version": expected_version,
                "attempts": attempts,
                "retryable": True,
            },
        )
        self.batch_id = batch_id
        self.expected_version = expected_version


# Inventory Exceptions
class InventoryError(StockLedgerError):
    """Base exception for inventory operations."""

    pass


class InsufficientStockError(InventoryError):
    """Requested quantity exceeds eligible stock and partial fulfillment is not allowed."""

    def __init__(
        self,
        product_id: str,
        location_id: str,
        requested: Decimal,
        available: Decimal,
        consumed_batches: list[dict[str, Any]] | None = None,
    ):
        shortfall = max(Decimal("0"), requested - available)
        super().__init__(
            f"Insufficient stock for product {product_id} at {location_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "location_id": location_id,
                "requested": str(requested),
                "current_stock": str(available),
                "shortfall": str(shortfall),
                "consumed_batches": consumed_batches or [],
            },
        )
        self.product_id = product_id
        self.location_id = location_id
        self.requested = requested
        self.available = available
        self.shortfall = shortfall


# Validation Exceptions
class ValidationError(StockLedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class ConfigurationError(StockLedgerError):
    """Configuration error."""

    pass
