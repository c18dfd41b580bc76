"""Record Sale Use Case: FIFO stock deduction for a finalized invoice."""

from dataclasses import dataclass, field
from decimal import Decimal

from stockledger.application.dto.requests import RecordSaleRequest
from stockledger.application.dto.responses import RecordSaleResponse, SaleLineResponse
from stockledger.application.use_cases.base import StockUseCase, consumption_to_response
from stockledger.config import get_logger
from stockledger.core.entities.inventory import ZERO, ConsumptionResult, MovementType

logger = get_logger(__name__)


@dataclass
class SaleLineResult:
    """Stock consumed for one invoice line."""

    product_id: str
    quantity: Decimal
    consumption: ConsumptionResult

    @property
    def cost_of_goods(self) -> Decimal:
        return self.consumption.total_cost


@dataclass
class RecordSaleResult:
    """Result of recording a sale."""

    invoice_id: str
    lines: list[SaleLineResult] = field(default_factory=list)

    @property
    def total_cost_of_goods(self) -> Decimal:
        return sum((line.cost_of_goods for line in self.lines), ZERO)


class RecordSaleUseCase(StockUseCase):
    """
    Deduct stock for every line of an invoice.

    All lines run in one unit of work without partial fulfillment, so a
    shortfall on any line raises InsufficientStockError and rolls back the
    lines already consumed.
    """

    async def execute(self, request: RecordSaleRequest) -> RecordSaleResult:
        """Execute record sale use case."""
        logger.info(
            "record_sale_started",
            invoice_id=request.invoice_id,
            location_id=request.location_id,
            lines=len(request.lines),
        )

        engine = self._get_engine()
        result = RecordSaleResult(invoice_id=request.invoice_id)

        async with engine.unit_of_work() as uow:
            for line in request.lines:
                consumption = await engine.consume(
                    request.tenant_id,
                    request.location_id,
                    line.product_id,
                    line.quantity,
                    MovementType.SALE,
                    reference_type="invoice",
                    reference_id=request.invoice_id,
                    actor_id=request.actor_id,
                    allow_partial=False,
                    uow=uow,
                )
                result.lines.append(
                    SaleLineResult(
                        product_id=line.product_id,
                        quantity=line.quantity,
                        consumption=consumption,
                    )
                )

        logger.info(
            "record_sale_complete",
            invoice_id=request.invoice_id,
            total_cost_of_goods=result.total_cost_of_goods,
        )
        return result

    def to_response(self, result: RecordSaleResult) -> RecordSaleResponse:
        """Convert result to API response."""
        return RecordSaleResponse(
            invoice_id=result.invoice_id,
            lines=[
                SaleLineResponse(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    cost_of_goods=line.cost_of_goods,
                    consumption=consumption_to_response(line.consumption),
                )
                for line in result.lines
            ],
            total_cost_of_goods=result.total_cost_of_goods,
        )
