"""Receive Goods Use Case: one stock batch per accepted goods receipt line."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from stockledger.application.dto.requests import ReceiveGoodsRequest
from stockledger.application.dto.responses import ReceiveGoodsResponse
from stockledger.application.use_cases.base import StockUseCase, batch_to_response
from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    ZERO,
    BatchReceipt,
    MovementType,
    SourceRef,
)
from stockledger.core.exceptions import ValidationError

logger = get_logger(__name__)


@dataclass
class ReceiveGoodsResult:
    """Result of confirming a goods receipt."""

    goods_receipt_id: str
    receipts: list[BatchReceipt] = field(default_factory=list)
    skipped_lines: int = 0

    @property
    def total_value(self) -> Decimal:
        return sum((r.batch.total_value for r in self.receipts), ZERO)


class ReceiveGoodsUseCase(StockUseCase):
    """Confirm a goods receipt: create batches and receipt movements atomically."""

    async def execute(self, request: ReceiveGoodsRequest) -> ReceiveGoodsResult:
        """Execute receive goods use case."""
        logger.info(
            "receive_goods_started",
            goods_receipt_id=request.goods_receipt_id,
            location_id=request.location_id,
            lines=len(request.lines),
        )

        accepted = [line for line in request.lines if line.accepted_quantity > ZERO]
        if not accepted:
            raise ValidationError("lines", "no line has an accepted quantity")

        engine = self._get_engine()
        receipt_date = request.receipt_date or date.today()
        result = ReceiveGoodsResult(
            goods_receipt_id=request.goods_receipt_id,
            skipped_lines=len(request.lines) - len(accepted),
        )

        async with engine.unit_of_work() as uow:
            for line in accepted:
                receipt = await engine.receive_batch(
                    request.tenant_id,
                    request.location_id,
                    line.product_id,
                    line.accepted_quantity,
                    line.unit_cost,
                    receipt_date,
                    line.expiry_date,
                    SourceRef(
                        source_type="goods_receipt_item",
                        source_id=line.line_id or request.goods_receipt_id,
                    ),
                    batch_number=line.batch_number,
                    movement_type=MovementType.RECEIPT,
                    reference_type="goods_receipt",
                    reference_id=request.goods_receipt_id,
                    actor_id=request.actor_id,
                    notes=request.notes,
                    uow=uow,
                )
                result.receipts.append(receipt)

        logger.info(
            "receive_goods_complete",
            goods_receipt_id=request.goods_receipt_id,
            batches=len(result.receipts),
            skipped=result.skipped_lines,
            total_value=result.total_value,
        )
        return result

    def to_response(self, result: ReceiveGoodsResult) -> ReceiveGoodsResponse:
        """Convert result to API response."""
        return ReceiveGoodsResponse(
            goods_receipt_id=result.goods_receipt_id,
            batches=[batch_to_response(r.batch) for r in result.receipts],
            total_value=result.total_value,
            skipped_lines=result.skipped_lines,
        )
