"""Post Audit Variance Use Case: turn counted differences into stock changes."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from stockledger.application.dto.requests import PostAuditVarianceRequest
from stockledger.application.dto.responses import (
    AuditLineResponse,
    PostAuditVarianceResponse,
)
from stockledger.application.use_cases.base import StockUseCase, consumption_to_response
from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    ZERO,
    BatchReceipt,
    ConsumptionResult,
    MovementType,
    SourceRef,
)

logger = get_logger(__name__)


@dataclass
class AuditLineResult:
    """Variance posted for one audited product."""

    product_id: str
    system_quantity: Decimal
    physical_quantity: Decimal
    average_cost: Decimal
    receipt: BatchReceipt | None = None
    consumption: ConsumptionResult | None = None

    @property
    def variance(self) -> Decimal:
        return self.physical_quantity - self.system_quantity

    @property
    def variance_value(self) -> Decimal:
        return self.variance * self.average_cost

    @property
    def action(self) -> str:
        if self.receipt is not None:
            return "received"
        if self.consumption is not None:
            return "consumed"
        return "none"


@dataclass
class PostAuditVarianceResult:
    """Result of posting an audit."""

    audit_id: str
    lines: list[AuditLineResult] = field(default_factory=list)

    @property
    def total_variance_value(self) -> Decimal:
        return sum((line.variance_value for line in self.lines), ZERO)

    @property
    def total_shrinkage_value(self) -> Decimal:
        return sum(
            (-line.variance_value for line in self.lines if line.variance < ZERO),
            ZERO,
        )


class PostAuditVarianceUseCase(StockUseCase):
    """
    Post audit variances (physical - system) for every counted line.

    Shortage consumes FIFO with no partial fulfillment. Surplus creates a
    batch at the line's average cost snapshot. All lines commit together.
    """

    async def execute(self, request: PostAuditVarianceRequest) -> PostAuditVarianceResult:
        """Execute post audit variance use case."""
        logger.info(
            "post_audit_variance_started",
            audit_id=request.audit_id,
            location_id=request.location_id,
            lines=len(request.lines),
        )

        engine = self._get_engine()
        result = PostAuditVarianceResult(audit_id=request.audit_id)

        async with engine.unit_of_work() as uow:
            for line in request.lines:
                average_cost = line.average_cost
                if average_cost is None:
                    average_cost = await engine.calculate_weighted_average_cost(
                        request.location_id, line.product_id, uow=uow
                    )

                line_result = AuditLineResult(
                    product_id=line.product_id,
                    system_quantity=line.system_quantity,
                    physical_quantity=line.physical_quantity,
                    average_cost=average_cost,
                )
                variance = line_result.variance

                if variance < ZERO:
                    line_result.consumption = await engine.consume(
                        request.tenant_id,
                        request.location_id,
                        line.product_id,
                        -variance,
                        MovementType.AUDIT,
                        reference_type="audit",
                        reference_id=request.audit_id,
                        actor_id=request.actor_id,
                        allow_partial=False,
                        reason=f"Audit adjustment: found {-variance} less than expected",
                        uow=uow,
                    )
                elif variance > ZERO:
                    line_result.receipt = await engine.receive_batch(
                        request.tenant_id,
                        request.location_id,
                        line.product_id,
                        variance,
                        average_cost,
                        date.today(),
                        source_ref=SourceRef(source_type="audit", source_id=request.audit_id),
                        movement_type=MovementType.AUDIT,
                        reference_type="audit",
                        reference_id=request.audit_id,
                        reason=f"Audit adjustment: found {variance} more than expected",
                        actor_id=request.actor_id,
                        uow=uow,
                    )

                result.lines.append(line_result)

        logger.info(
            "post_audit_variance_complete",
            audit_id=request.audit_id,
            total_variance_value=result.total_variance_value,
            total_shrinkage_value=result.total_shrinkage_value,
        )
        return result

    def to_response(self, result: PostAuditVarianceResult) -> PostAuditVarianceResponse:
        """Convert result to API response."""
        return PostAuditVarianceResponse(
            audit_id=result.audit_id,
            lines=[
                AuditLineResponse(
                    product_id=line.product_id,
                    system_quantity=line.system_quantity,
                    physical_quantity=line.physical_quantity,
                    variance=line.variance,
                    average_cost=line.average_cost,
                    variance_value=line.variance_value,
                    action=line.action,
                    batch_id=line.receipt.batch.id if line.receipt else None,
                    consumption=(
                        consumption_to_response(line.consumption)
                        if line.consumption
                        else None
                    ),
                )
                for line in result.lines
            ],
            total_variance_value=result.total_variance_value,
            total_shrinkage_value=result.total_shrinkage_value,
        )
