"""
Dependency injection container for FastAPI.

Provides the engine and use case instances to route handlers.
"""

from stockledger.application.services import get_fifo_engine
from stockledger.application.use_cases import (
    AdjustStockUseCase,
    ConsumeStockUseCase,
    GetStockAlertsUseCase,
    PostAuditVarianceUseCase,
    ReceiveGoodsUseCase,
    RecordSaleUseCase,
    TransferStockUseCase,
)
from stockledger.config import Settings, get_settings
from stockledger.core.services import FIFOEngine


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


# Engine dependency
def get_engine() -> FIFOEngine:
    """Get FIFO stock engine."""
    return get_fifo_engine()


# Stock use case dependencies
def get_receive_goods_use_case() -> ReceiveGoodsUseCase:
    """Get receive goods use case."""
    return ReceiveGoodsUseCase()


def get_record_sale_use_case() -> RecordSaleUseCase:
    """Get record sale use case."""
    return RecordSaleUseCase()


def get_consume_stock_use_case() -> ConsumeStockUseCase:
    """Get manual consumption use case."""
    return ConsumeStockUseCase()


def get_adjust_stock_use_case() -> AdjustStockUseCase:
    """Get stock adjustment use case."""
    return AdjustStockUseCase()


def get_post_audit_variance_use_case() -> PostAuditVarianceUseCase:
    """Get audit posting use case."""
    return PostAuditVarianceUseCase()


def get_transfer_stock_use_case() -> TransferStockUseCase:
    """Get stock transfer use case."""
    return TransferStockUseCase()


def get_stock_alerts_use_case() -> GetStockAlertsUseCase:
    """Get stock alerts use case."""
    return GetStockAlertsUseCase()
