"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.stock_store import (
    IBatchRepository,
    IMovementRepository,
    IUnitOfWork,
)

__all__ = [
    # Storage interfaces
    "IBatchRepository",
    "IMovementRepository",
    "IUnitOfWork",
]
