"""Transfer Stock Use Case: move lots between locations at their original cost."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from stockledger.application.dto.requests import TransferStockRequest
from stockledger.application.dto.responses import (
    TransferLineResponse,
    TransferStockResponse,
)
from stockledger.application.use_cases.base import (
    StockUseCase,
    batch_to_response,
    consumption_to_response,
)
from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    BatchReceipt,
    ConsumptionResult,
    MovementType,
    SourceRef,
)
from stockledger.core.exceptions import ValidationError

logger = get_logger(__name__)


@dataclass
class TransferLineResult:
    """One product moved between locations."""

    product_id: str
    quantity: Decimal
    consumption: ConsumptionResult
    receipts: list[BatchReceipt] = field(default_factory=list)


@dataclass
class TransferStockResult:
    """Result of a stock transfer."""

    transfer_id: str
    from_location_id: str
    to_location_id: str
    lines: list[TransferLineResult] = field(default_factory=list)


class TransferStockUseCase(StockUseCase):
    """
    Dispatch stock from one location and receive it at another.

    Each lot consumed at the source becomes its own batch at the
    destination with the same unit cost, batch number and expiry date, so
    cost layers survive the move. Dispatch refuses partial fulfillment and
    the whole transfer commits in one unit of work.
    """

    async def execute(self, request: TransferStockRequest) -> TransferStockResult:
        """Execute transfer stock use case."""
        if request.from_location_id == request.to_location_id:
            raise ValidationError(
                "to_location_id",
                "source and destination locations must differ",
                request.to_location_id,
            )

        logger.info(
            "transfer_stock_started",
            transfer_id=request.transfer_id,
            from_location_id=request.from_location_id,
            to_location_id=request.to_location_id,
            lines=len(request.lines),
        )

        engine = self._get_engine()
        result = TransferStockResult(
            transfer_id=request.transfer_id,
            from_location_id=request.from_location_id,
            to_location_id=request.to_location_id,
        )
        received_on = date.today()

        async with engine.unit_of_work() as uow:
            for line in request.lines:
                consumption = await engine.consume(
                    request.tenant_id,
                    request.from_location_id,
                    line.product_id,
                    line.quantity,
                    MovementType.TRANSFER_OUT,
                    reference_type="transfer",
                    reference_id=request.transfer_id,
                    actor_id=request.actor_id,
                    notes=request.notes,
                    allow_partial=False,
                    uow=uow,
                )
                line_result = TransferLineResult(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    consumption=consumption,
                )

                for consumed in consumption.consumed_batches:
                    source = await engine.get_batch(consumed.batch_id, uow=uow)
                    receipt = await engine.receive_batch(
                        request.tenant_id,
                        request.to_location_id,
                        line.product_id,
                        consumed.quantity,
                        consumed.unit_cost,
                        received_on,
                        source.expiry_date,
                        SourceRef(source_type="transfer", source_id=request.transfer_id),
                        batch_number=source.batch_number,
                        movement_type=MovementType.TRANSFER_IN,
                        reference_type="transfer",
                        reference_id=request.transfer_id,
                        actor_id=request.actor_id,
                        notes=request.notes,
                        uow=uow,
                    )
                    line_result.receipts.append(receipt)

                result.lines.append(line_result)

        logger.info(
            "transfer_stock_complete",
            transfer_id=request.transfer_id,
            lines=len(result.lines),
        )
        return result

    def to_response(self, result: TransferStockResult) -> TransferStockResponse:
        """Convert result to API response."""
        return TransferStockResponse(
            transfer_id=result.transfer_id,
            from_location_id=result.from_location_id,
            to_location_id=result.to_location_id,
            lines=[
                TransferLineResponse(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    total_cost=line.consumption.total_cost,
                    consumption=consumption_to_response(line.consumption),
                    destination_batches=[batch_to_response(r.batch) for r in line.receipts],
                )
                for line in result.lines
            ],
        )
