"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates the stock engine by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases for the operations that move stock
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers that change stock.
"""

from stockledger.application.services import get_fifo_engine, reset_services
from stockledger.application.use_cases import (
    AdjustStockUseCase,
    ConsumeStockUseCase,
    GetStockAlertsUseCase,
    PostAuditVarianceUseCase,
    ReceiveGoodsUseCase,
    RecordSaleUseCase,
    TransferStockUseCase,
)

__all__ = [
    # Use Cases
    "AdjustStockUseCase",
    "ConsumeStockUseCase",
    "GetStockAlertsUseCase",
    "PostAuditVarianceUseCase",
    "ReceiveGoodsUseCase",
    "RecordSaleUseCase",
    "TransferStockUseCase",
    # Service factories
    "get_fifo_engine",
    "reset_services",
]
