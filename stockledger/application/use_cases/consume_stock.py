"""Consume Stock Use Case: manual write-off with a reason code."""

from dataclasses import dataclass

from stockledger.application.dto.requests import ConsumeStockRequest
from stockledger.application.dto.responses import ConsumeStockResponse
from stockledger.application.use_cases.base import StockUseCase, consumption_to_response
from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    ConsumptionReason,
    ConsumptionResult,
    MovementType,
)
from stockledger.core.exceptions import ValidationError

logger = get_logger(__name__)


@dataclass
class ConsumeStockResult:
    """Result of a manual write-off."""

    product_id: str
    reason: ConsumptionReason
    consumption: ConsumptionResult


class ConsumeStockUseCase(StockUseCase):
    """Write off stock (samples, demos, wastage, damage) in FIFO order.

    Partial fulfillment is accepted; the shortfall is reported.
    """

    async def execute(self, request: ConsumeStockRequest) -> ConsumeStockResult:
        """Execute consume stock use case."""
        description = (request.description or "").strip()
        if request.reason == ConsumptionReason.OTHER and not description:
            raise ValidationError(
                "description",
                "description is required when reason is 'other'",
            )

        logger.info(
            "consume_stock_started",
            product_id=request.product_id,
            quantity=request.quantity,
            reason=request.reason.value,
        )

        consumption = await self._get_engine().consume(
            request.tenant_id,
            request.location_id,
            request.product_id,
            request.quantity,
            MovementType.CONSUMPTION,
            reference_type="manual_consumption",
            actor_id=request.actor_id,
            notes=description or None,
            reason=request.reason.value,
        )

        logger.info(
            "consume_stock_complete",
            product_id=request.product_id,
            total_consumed=consumption.total_consumed,
            shortfall=consumption.shortfall,
        )
        return ConsumeStockResult(
            product_id=request.product_id,
            reason=request.reason,
            consumption=consumption,
        )

    def to_response(self, result: ConsumeStockResult) -> ConsumeStockResponse:
        """Convert result to API response."""
        return ConsumeStockResponse(
            product_id=result.product_id,
            reason=result.reason.value,
            consumption=consumption_to_response(result.consumption),
        )
