"""Application use cases."""

from stockledger.application.use_cases.adjust_stock import AdjustStockResult, AdjustStockUseCase
from stockledger.application.use_cases.consume_stock import (
    ConsumeStockResult,
    ConsumeStockUseCase,
)
from stockledger.application.use_cases.get_stock_alerts import (
    GetStockAlertsUseCase,
    StockAlertsResult,
)
from stockledger.application.use_cases.post_audit_variance import (
    PostAuditVarianceResult,
    PostAuditVarianceUseCase,
)
from stockledger.application.use_cases.receive_goods import (
    ReceiveGoodsResult,
    ReceiveGoodsUseCase,
)
from stockledger.application.use_cases.record_sale import RecordSaleResult, RecordSaleUseCase
from stockledger.application.use_cases.transfer_stock import (
    TransferStockResult,
    TransferStockUseCase,
)

__all__ = [
    "AdjustStockUseCase",
    "AdjustStockResult",
    "ConsumeStockUseCase",
    "ConsumeStockResult",
    "GetStockAlertsUseCase",
    "StockAlertsResult",
    "PostAuditVarianceUseCase",
    "PostAuditVarianceResult",
    "ReceiveGoodsUseCase",
    "ReceiveGoodsResult",
    "RecordSaleUseCase",
    "RecordSaleResult",
    "TransferStockUseCase",
    "TransferStockResult",
]
