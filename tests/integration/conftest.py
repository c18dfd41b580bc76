"""Fixtures for integration tests against a migrated SQLite database."""

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from stockledger.core.entities import StockBatch
from stockledger.core.services import FIFOEngine
from stockledger.infrastructure.storage.sqlite import ConnectionPool, sqlite_uow_factory
from stockledger.infrastructure.storage.sqlite.migrations import initialize_database

TODAY = date(2025, 6, 1)


@pytest.fixture
async def pool(tmp_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    db_path = tmp_path / "ledger.db"
    await initialize_database(db_path, create_backup_before=False)
    pool = ConnectionPool(db_path, pool_size=2, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def engine(pool: ConnectionPool) -> FIFOEngine:
    """Engine on the test database with a fixed clock."""
    return FIFOEngine(sqlite_uow_factory(pool), today=lambda: TODAY)


@pytest.fixture
def receive(engine: FIFOEngine):
    """Receive a batch of P1 at L1 unless told otherwise."""

    async def _receive(
        quantity: str,
        unit_cost: str,
        receipt_date: date = date(2025, 1, 1),
        expiry_date: date | None = None,
        location_id: str = "L1",
        product_id: str = "P1",
        batch_number: str | None = None,
        tenant_id: str = "T1",
    ) -> StockBatch:
        receipt = await engine.receive_batch(
            tenant_id,
            location_id,
            product_id,
            Decimal(quantity),
            Decimal(unit_cost),
            receipt_date,
            expiry_date,
            batch_number=batch_number,
            reference_type="goods_receipt",
            reference_id="GRN-TEST",
        )
        return receipt.batch

    return _receive
