"""Get Stock Alerts Use Case: near-expiry and expired stock at a location."""

from dataclasses import dataclass, field
from decimal import Decimal

from stockledger.application.dto.requests import StockAlertsRequest
from stockledger.application.dto.responses import StockAlertsResponse
from stockledger.application.use_cases.base import StockUseCase, batch_to_response
from stockledger.config import get_logger, get_settings
from stockledger.core.entities.inventory import ZERO, StockBatch

logger = get_logger(__name__)


@dataclass
class StockAlertsResult:
    """Batches needing attention at a location."""

    location_id: str
    days: int
    near_expiry: list[StockBatch] = field(default_factory=list)
    expired: list[StockBatch] = field(default_factory=list)

    @property
    def near_expiry_value(self) -> Decimal:
        return sum((b.remaining_value for b in self.near_expiry), ZERO)

    @property
    def expired_value(self) -> Decimal:
        return sum((b.remaining_value for b in self.expired), ZERO)


class GetStockAlertsUseCase(StockUseCase):
    """List batches expiring soon and expired batches still holding stock."""

    async def execute(self, request: StockAlertsRequest) -> StockAlertsResult:
        """Execute stock alerts use case."""
        days = request.days
        if days is None:
            days = get_settings().inventory.near_expiry_days

        engine = self._get_engine()
        expired = await engine.list_expired_batches(
            request.location_id, tenant_id=request.tenant_id
        )
        near_expiry = await engine.list_near_expiry_batches(
            request.location_id, days=days, tenant_id=request.tenant_id
        )

        result = StockAlertsResult(
            location_id=request.location_id,
            days=days,
            near_expiry=near_expiry,
            expired=expired,
        )
        if expired or near_expiry:
            logger.info(
                "stock_alerts_found",
                location_id=request.location_id,
                near_expiry=len(near_expiry),
                expired=len(expired),
            )
        return result

    def to_response(self, result: StockAlertsResult) -> StockAlertsResponse:
        """Convert result to API response."""
        return StockAlertsResponse(
            location_id=result.location_id,
            days=result.days,
            near_expiry=[batch_to_response(b) for b in result.near_expiry],
            expired=[batch_to_response(b) for b in result.expired],
            near_expiry_value=result.near_expiry_value,
            expired_value=result.expired_value,
        )
