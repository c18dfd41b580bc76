"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from stockledger.core.entities import MovementType, StockBatch, StockMovement
from stockledger.infrastructure.storage.sqlite import ConnectionPool
from stockledger.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> Path:
    """Temporary database with all migrations applied."""
    await initialize_database(temp_db_path, create_backup_before=False)
    return temp_db_path


@pytest.fixture
async def pool(initialized_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over the migrated test database."""
    pool = ConnectionPool(initialized_db, pool_size=2, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def sample_batch() -> StockBatch:
    """Create a sample batch for testing."""
    return StockBatch(
        tenant_id="T1",
        location_id="L1",
        product_id="P1",
        batch_number="LOT-001",
        quantity=Decimal("10"),
        remaining_quantity=Decimal("10"),
        unit_cost=Decimal("5.25"),
        receipt_date=date(2025, 1, 10),
        expiry_date=date(2025, 12, 31),
        source_type="goods_receipt_item",
        source_id="GRN-1-1",
    )


@pytest.fixture
def make_movement():
    """Factory for ledger entries against a batch."""

    def _make(batch_id: int | None, quantity: str, before: str, **overrides) -> StockMovement:
        qty = Decimal(quantity)
        fields = {
            "tenant_id": "T1",
            "location_id": "L1",
            "product_id": "P1",
            "batch_id": batch_id,
            "movement_type": MovementType.SALE if qty < 0 else MovementType.RECEIPT,
            "quantity": qty,
            "quantity_before": Decimal(before),
            "quantity_after": Decimal(before) + qty,
        }
        fields.update(overrides)
        return StockMovement(**fields)

    return _make


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock
