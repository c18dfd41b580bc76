"""Fixtures for use case tests: a mocked FIFO engine."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from stockledger.core.entities import (
    BatchReceipt,
    ConsumedBatch,
    ConsumptionResult,
    MovementType,
    StockBatch,
    StockMovement,
)


@pytest.fixture
def mock_uow():
    return MagicMock(name="uow")


@pytest.fixture
def mock_engine(mock_uow):
    """AsyncMock engine whose unit_of_work() works with ``async with``."""
    engine = AsyncMock()
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=mock_uow)
    ctx.__aexit__ = AsyncMock(return_value=None)
    engine.unit_of_work = MagicMock(return_value=ctx)
    return engine


@pytest.fixture
def make_consumption():
    def _make(*lots: tuple[int, str, str], shortfall: str = "0") -> ConsumptionResult:
        consumed = [
            ConsumedBatch(batch_id=batch_id, quantity=Decimal(qty), unit_cost=Decimal(cost))
            for batch_id, qty, cost in lots
        ]
        return ConsumptionResult(
            success=Decimal(shortfall) == 0,
            consumed_batches=consumed,
            total_consumed=sum((c.quantity for c in consumed), Decimal("0")),
            shortfall=Decimal(shortfall),
        )

    return _make


@pytest.fixture
def make_receipt():
    counter = {"id": 100}

    def _make(
        quantity: str,
        unit_cost: str,
        location_id: str = "L1",
        product_id: str = "P1",
        movement_type: MovementType = MovementType.RECEIPT,
        **batch_fields,
    ) -> BatchReceipt:
        counter["id"] += 1
        batch = StockBatch(
            id=counter["id"],
            tenant_id="T1",
            location_id=location_id,
            product_id=product_id,
            quantity=Decimal(quantity),
            remaining_quantity=Decimal(quantity),
            unit_cost=Decimal(unit_cost),
            receipt_date=date(2025, 6, 1),
            **batch_fields,
        )
        movement = StockMovement(
            id=counter["id"],
            tenant_id="T1",
            location_id=location_id,
            product_id=product_id,
            batch_id=batch.id,
            movement_type=movement_type,
            quantity=batch.quantity,
            quantity_before=Decimal("0"),
            quantity_after=batch.quantity,
        )
        return BatchReceipt(batch=batch, movement=movement)

    return _make
