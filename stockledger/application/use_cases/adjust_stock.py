"""Adjust Stock Use Case: manual increase or decrease with a reason."""

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from stockledger.application.dto.requests import AdjustStockRequest
from stockledger.application.dto.responses import AdjustStockResponse
from stockledger.application.use_cases.base import (
    StockUseCase,
    batch_to_response,
    consumption_to_response,
)
from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    ZERO,
    AdjustmentType,
    BatchReceipt,
    ConsumptionResult,
    MovementType,
    SourceRef,
)

logger = get_logger(__name__)


@dataclass
class AdjustStockResult:
    """Result of a manual adjustment."""

    adjustment_id: str
    product_id: str
    adjustment_type: AdjustmentType
    quantity: Decimal
    unit_cost: Decimal | None = None
    receipt: BatchReceipt | None = None
    consumption: ConsumptionResult | None = None


class AdjustStockUseCase(StockUseCase):
    """
    Manual stock adjustment.

    Increase creates a batch at the current weighted average cost, falling
    back to the request's default unit cost (else 0) when there is no
    stock to average. Decrease consumes FIFO and refuses partial results.
    """

    async def execute(self, request: AdjustStockRequest) -> AdjustStockResult:
        """Execute adjust stock use case."""
        adjustment_id = uuid.uuid4().hex
        logger.info(
            "adjust_stock_started",
            adjustment_id=adjustment_id,
            product_id=request.product_id,
            adjustment_type=request.adjustment_type.value,
            quantity=request.quantity,
        )

        engine = self._get_engine()
        result = AdjustStockResult(
            adjustment_id=adjustment_id,
            product_id=request.product_id,
            adjustment_type=request.adjustment_type,
            quantity=request.quantity,
        )

        async with engine.unit_of_work() as uow:
            if request.adjustment_type == AdjustmentType.INCREASE:
                unit_cost = await engine.calculate_weighted_average_cost(
                    request.location_id, request.product_id, uow=uow
                )
                if unit_cost == ZERO:
                    unit_cost = request.default_unit_cost or ZERO
                result.unit_cost = unit_cost
                result.receipt = await engine.receive_batch(
                    request.tenant_id,
                    request.location_id,
                    request.product_id,
                    request.quantity,
                    unit_cost,
                    date.today(),
                    request.expiry_date,
                    SourceRef(source_type="adjustment", source_id=adjustment_id),
                    batch_number=request.batch_number,
                    movement_type=MovementType.ADJUSTMENT,
                    reference_type="adjustment",
                    reference_id=adjustment_id,
                    reason=request.reason,
                    actor_id=request.actor_id,
                    notes=request.notes,
                    uow=uow,
                )
            else:
                result.consumption = await engine.consume(
                    request.tenant_id,
                    request.location_id,
                    request.product_id,
                    request.quantity,
                    MovementType.ADJUSTMENT,
                    reference_type="adjustment",
                    reference_id=adjustment_id,
                    actor_id=request.actor_id,
                    notes=request.notes,
                    allow_partial=False,
                    reason=request.reason,
                    uow=uow,
                )

        logger.info(
            "adjust_stock_complete",
            adjustment_id=adjustment_id,
            product_id=request.product_id,
        )
        return result

    def to_response(self, result: AdjustStockResult) -> AdjustStockResponse:
        """Convert result to API response."""
        return AdjustStockResponse(
            product_id=result.product_id,
            adjustment_type=result.adjustment_type.value,
            quantity=result.quantity,
            unit_cost=result.unit_cost,
            batch=batch_to_response(result.receipt.batch) if result.receipt else None,
            consumption=(
                consumption_to_response(result.consumption)
                if result.consumption
                else None
            ),
        )
