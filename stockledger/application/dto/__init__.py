"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from stockledger.application.dto.requests import (
    AdjustStockRequest,
    AuditLineRequest,
    ConsumeStockRequest,
    PostAuditVarianceRequest,
    ReceiveGoodsLineRequest,
    ReceiveGoodsRequest,
    RecordSaleRequest,
    SaleLineRequest,
    StockAlertsRequest,
    TransferLineRequest,
    TransferStockRequest,
)
from stockledger.application.dto.responses import (
    AdjustStockResponse,
    AuditLineResponse,
    AvailabilityResponse,
    BatchListResponse,
    ConsumedBatchResponse,
    ConsumeStockResponse,
    ConsumptionResponse,
    ErrorResponse,
    ExpirySweepResponse,
    HealthResponse,
    MovementListResponse,
    PostAuditVarianceResponse,
    ProviderHealthResponse,
    ReceiveGoodsResponse,
    ReconciliationResponse,
    RecordSaleResponse,
    SaleLineResponse,
    StockAlertsResponse,
    StockBatchResponse,
    StockMovementResponse,
    StockSummaryResponse,
    TransferLineResponse,
    TransferStockResponse,
    ValuationResponse,
)

__all__ = [
    # Requests
    "AdjustStockRequest",
    "AuditLineRequest",
    "ConsumeStockRequest",
    "PostAuditVarianceRequest",
    "ReceiveGoodsLineRequest",
    "ReceiveGoodsRequest",
    "RecordSaleRequest",
    "SaleLineRequest",
    "StockAlertsRequest",
    "TransferLineRequest",
    "TransferStockRequest",
    # Responses
    "AdjustStockResponse",
    "AuditLineResponse",
    "AvailabilityResponse",
    "BatchListResponse",
    "ConsumedBatchResponse",
    "ConsumeStockResponse",
    "ConsumptionResponse",
    "ErrorResponse",
    "ExpirySweepResponse",
    "HealthResponse",
    "MovementListResponse",
    "PostAuditVarianceResponse",
    "ProviderHealthResponse",
    "ReceiveGoodsResponse",
    "ReconciliationResponse",
    "RecordSaleResponse",
    "SaleLineResponse",
    "StockAlertsResponse",
    "StockBatchResponse",
    "StockMovementResponse",
    "StockSummaryResponse",
    "TransferLineResponse",
    "TransferStockResponse",
    "ValuationResponse",
]
