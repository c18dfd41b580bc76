"""Shared plumbing for stock use cases."""

from stockledger.application.dto.responses import ConsumptionResponse, StockBatchResponse
from stockledger.core.entities.inventory import ConsumptionResult, StockBatch
from stockledger.core.services import FIFOEngine


class StockUseCase:
    """Base for use cases driven by the FIFO engine."""

    def __init__(self, engine: FIFOEngine | None = None):
        self._engine = engine

    def _get_engine(self) -> FIFOEngine:
        if self._engine is None:
            from stockledger.application.services import get_fifo_engine

            self._engine = get_fifo_engine()
        return self._engine


def consumption_to_response(result: ConsumptionResult) -> ConsumptionResponse:
    return ConsumptionResponse.model_validate(result)


def batch_to_response(batch: StockBatch) -> StockBatchResponse:
    return StockBatchResponse.model_validate(batch)
