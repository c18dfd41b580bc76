"""Pytest configuration and fixtures."""

from collections.abc import Callable, Generator
from datetime import date
from decimal import Decimal

import pytest

from stockledger.application.services import reset_services
from stockledger.core.entities import StockBatch

TODAY = date(2025, 6, 1)


@pytest.fixture(autouse=True)
def _reset_service_singletons() -> Generator[None, None, None]:
    """Drop cached engine instances between tests."""
    yield
    reset_services()


@pytest.fixture
def today() -> date:
    """Fixed clock for expiry decisions."""
    return TODAY


@pytest.fixture
def make_batch() -> Callable[..., StockBatch]:
    """Factory for in-memory StockBatch entities."""
    counter = {"id": 0}

    def _make(
        remaining: str | int = "10",
        unit_cost: str | int = "5",
        receipt_date: date = date(2025, 1, 1),
        **overrides,
    ) -> StockBatch:
        counter["id"] += 1
        qty = Decimal(str(overrides.pop("quantity", remaining)))
        fields = {
            "id": counter["id"],
            "tenant_id": "T1",
            "location_id": "L1",
            "product_id": "P1",
            "quantity": qty,
            "remaining_quantity": Decimal(str(remaining)),
            "unit_cost": Decimal(str(unit_cost)),
            "receipt_date": receipt_date,
        }
        fields.update(overrides)
        return StockBatch(**fields)

    return _make
