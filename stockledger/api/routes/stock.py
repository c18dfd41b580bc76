"""Stock ledger endpoints."""

from datetime import date
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_adjust_stock_use_case,
    get_app_settings,
    get_consume_stock_use_case,
    get_engine,
    get_post_audit_variance_use_case,
    get_receive_goods_use_case,
    get_record_sale_use_case,
    get_stock_alerts_use_case,
    get_transfer_stock_use_case,
)
from stockledger.application.dto.requests import (
    AdjustStockRequest,
    ConsumeStockRequest,
    PostAuditVarianceRequest,
    ReceiveGoodsRequest,
    RecordSaleRequest,
    StockAlertsRequest,
    TransferStockRequest,
)
from stockledger.application.dto.responses import (
    AdjustStockResponse,
    AvailabilityResponse,
    BatchListResponse,
    ConsumeStockResponse,
    ErrorResponse,
    ExpirySweepResponse,
    MovementListResponse,
    PostAuditVarianceResponse,
    ReceiveGoodsResponse,
    ReconciliationResponse,
    RecordSaleResponse,
    StockAlertsResponse,
    StockBatchResponse,
    StockMovementResponse,
    StockSummaryResponse,
    TransferStockResponse,
    ValuationResponse,
)
from stockledger.application.use_cases import (
    AdjustStockUseCase,
    ConsumeStockUseCase,
    GetStockAlertsUseCase,
    PostAuditVarianceUseCase,
    ReceiveGoodsUseCase,
    RecordSaleUseCase,
    TransferStockUseCase,
)
from stockledger.config import Settings
from stockledger.core.entities.inventory import MovementFilters, MovementType
from stockledger.core.services import FIFOEngine

router = APIRouter(prefix="/api/stock", tags=["stock"])

CONFLICT_RESPONSES = {
    400: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# --- Operations that move stock ---


@router.post(
    "/receipts",
    response_model=ReceiveGoodsResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def receive_goods(
    request: ReceiveGoodsRequest,
    use_case: ReceiveGoodsUseCase = Depends(get_receive_goods_use_case),
) -> ReceiveGoodsResponse:
    """Confirm a goods receipt: one batch per accepted line."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/sales",
    response_model=RecordSaleResponse,
    responses=CONFLICT_RESPONSES,
)
async def record_sale(
    request: RecordSaleRequest,
    use_case: RecordSaleUseCase = Depends(get_record_sale_use_case),
) -> RecordSaleResponse:
    """Deduct stock for a finalized invoice. All lines or nothing."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/consumptions",
    response_model=ConsumeStockResponse,
    responses=CONFLICT_RESPONSES,
)
async def consume_stock(
    request: ConsumeStockRequest,
    use_case: ConsumeStockUseCase = Depends(get_consume_stock_use_case),
) -> ConsumeStockResponse:
    """Write off stock with a reason code. Partial fulfillment is reported."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/adjustments",
    response_model=AdjustStockResponse,
    responses=CONFLICT_RESPONSES,
)
async def adjust_stock(
    request: AdjustStockRequest,
    use_case: AdjustStockUseCase = Depends(get_adjust_stock_use_case),
) -> AdjustStockResponse:
    """Manual increase or decrease."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/audits",
    response_model=PostAuditVarianceResponse,
    responses=CONFLICT_RESPONSES,
)
async def post_audit_variance(
    request: PostAuditVarianceRequest,
    use_case: PostAuditVarianceUseCase = Depends(get_post_audit_variance_use_case),
) -> PostAuditVarianceResponse:
    """Post the variances of a completed stock audit."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/transfers",
    response_model=TransferStockResponse,
    responses=CONFLICT_RESPONSES,
)
async def transfer_stock(
    request: TransferStockRequest,
    use_case: TransferStockUseCase = Depends(get_transfer_stock_use_case),
) -> TransferStockResponse:
    """Move stock between locations, lot by lot."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post("/expire", response_model=ExpirySweepResponse)
async def mark_expired(
    location_id: str,
    product_id: str | None = None,
    as_of: date | None = None,
    engine: FIFOEngine = Depends(get_engine),
) -> ExpirySweepResponse:
    """Flag expired batches for one product, or the whole location."""
    as_of = as_of or date.today()
    if product_id:
        count = await engine.mark_expired(location_id, product_id, as_of)
    else:
        count = await engine.mark_expired_for_location(location_id, as_of)
    return ExpirySweepResponse(
        location_id=location_id,
        product_id=product_id,
        as_of=as_of,
        expired_count=count,
    )


# --- Reads ---


@router.get("/batches", response_model=BatchListResponse)
async def list_batches(
    location_id: str,
    product_id: str,
    engine: FIFOEngine = Depends(get_engine),
) -> BatchListResponse:
    """All batches of a product at a location, oldest receipt first."""
    batches = await engine.list_batches(location_id, product_id)
    return BatchListResponse(
        batches=[StockBatchResponse.model_validate(b) for b in batches],
        total=len(batches),
    )


@router.get(
    "/batches/{batch_id}",
    response_model=StockBatchResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_batch(
    batch_id: int,
    engine: FIFOEngine = Depends(get_engine),
) -> StockBatchResponse:
    """Get one batch by ID."""
    return StockBatchResponse.model_validate(await engine.get_batch(batch_id))


@router.get(
    "/batches/{batch_id}/reconciliation",
    response_model=ReconciliationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def reconcile_batch(
    batch_id: int,
    engine: FIFOEngine = Depends(get_engine),
) -> ReconciliationResponse:
    """Compare a batch's depletion with its ledger outflows."""
    return ReconciliationResponse.model_validate(await engine.reconcile_batch(batch_id))


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    location_id: str,
    product_id: str,
    quantity: Decimal = Query(..., gt=0),
    tenant_id: str | None = None,
    engine: FIFOEngine = Depends(get_engine),
) -> AvailabilityResponse:
    """Check eligible stock against a requested quantity."""
    result = await engine.check_availability(
        location_id, product_id, quantity, tenant_id=tenant_id
    )
    return AvailabilityResponse(
        location_id=location_id,
        product_id=product_id,
        requested=quantity,
        available=result.available,
        current_stock=result.current_stock,
        shortfall=result.shortfall,
    )


@router.get("/valuation", response_model=ValuationResponse)
async def get_valuation(
    location_id: str,
    product_id: str,
    engine: FIFOEngine = Depends(get_engine),
) -> ValuationResponse:
    """Weighted average unit cost of eligible stock."""
    average_cost = await engine.calculate_weighted_average_cost(location_id, product_id)
    return ValuationResponse(
        location_id=location_id,
        product_id=product_id,
        average_cost=average_cost,
    )


@router.get("/summary", response_model=StockSummaryResponse)
async def get_stock_summary(
    location_id: str,
    product_id: str,
    engine: FIFOEngine = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
) -> StockSummaryResponse:
    """Stock position of a product at a location."""
    summary = await engine.get_stock_summary(
        location_id,
        product_id,
        near_expiry_days=settings.inventory.near_expiry_days,
    )
    return StockSummaryResponse.model_validate(summary)


@router.get("/movements", response_model=MovementListResponse)
async def list_movements(
    location_id: str,
    product_id: str | None = None,
    tenant_id: str | None = None,
    movement_type: list[MovementType] | None = Query(default=None),
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    sort_order: Literal["asc", "desc"] = "desc",
    engine: FIFOEngine = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
) -> MovementListResponse:
    """Filtered, paginated movement log. Newest first by default."""
    filters = MovementFilters(
        tenant_id=tenant_id,
        product_id=product_id,
        movement_type=movement_type or None,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit or settings.inventory.default_page_size,
        sort_order=sort_order,
    )
    result = await engine.list_movements(location_id, filters)
    return MovementListResponse(
        items=[StockMovementResponse.model_validate(m) for m in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        has_more=result.page * result.limit < result.total,
    )


@router.get("/alerts", response_model=StockAlertsResponse)
async def get_stock_alerts(
    location_id: str,
    tenant_id: str | None = None,
    days: int | None = Query(default=None, ge=0),
    use_case: GetStockAlertsUseCase = Depends(get_stock_alerts_use_case),
) -> StockAlertsResponse:
    """Near-expiry batches and expired batches still holding stock."""
    result = await use_case.execute(
        StockAlertsRequest(location_id=location_id, tenant_id=tenant_id, days=days)
    )
    return use_case.to_response(result)
