"""SQLite implementation of stock batch storage."""

from datetime import date, datetime
from decimal import Decimal

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.inventory import ZERO, StockBatch, utcnow
from stockledger.core.exceptions import (
    BatchNotFoundError,
    ConcurrencyConflictError,
    ValidationError,
)
from stockledger.core.interfaces.stock_store import IBatchRepository

logger = get_logger(__name__)

FIFO_ORDER = "ORDER BY receipt_date ASC, id ASC"


class SQLiteBatchRepository(IBatchRepository):
    """
    Stock batch storage bound to one connection.

    The connection belongs to the caller's unit of work; this class never
    commits or rolls back.
    """

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def add(self, batch: StockBatch) -> StockBatch:
        now = utcnow()
        batch.created_at = now
        batch.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_batches (
                tenant_id, location_id, product_id, batch_number,
                quantity, remaining_quantity, unit_cost, total_value,
                receipt_date, expiry_date, is_expired, is_depleted,
                source_type, source_id, version, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                batch.tenant_id,
                batch.location_id,
                batch.product_id,
                batch.batch_number,
                str(batch.quantity),
                str(batch.remaining_quantity),
                str(batch.unit_cost),
                str(batch.total_value),
                batch.receipt_date.isoformat(),
                batch.expiry_date.isoformat() if batch.expiry_date else None,
                int(batch.is_expired),
                int(batch.is_depleted),
                batch.source_type,
                batch.source_id,
                batch.version,
                batch.created_at.isoformat(),
                batch.updated_at.isoformat(),
            ),
        )
        batch.id = cursor.lastrowid
        logger.debug("stock_batch_inserted", batch_id=batch.id)
        return batch

    async def get(self, batch_id: int) -> StockBatch | None:
        cursor = await self._conn.execute(
            "SELECT * FROM stock_batches WHERE id = ?", (batch_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_batch(row)

    async def list_for_product(
        self, location_id: str, product_id: str
    ) -> list[StockBatch]:
        cursor = await self._conn.execute(
            f"""
            SELECT * FROM stock_batches
            WHERE location_id = ? AND product_id = ?
            {FIFO_ORDER}
            """,
            (location_id, product_id),
        )
        rows = await cursor.fetchall()
        return [self._row_to_batch(row) for row in rows]

    async def list_eligible(
        self, location_id: str, product_id: str, tenant_id: str | None = None
    ) -> list[StockBatch]:
        query = """
            SELECT * FROM stock_batches
            WHERE location_id = ? AND product_id = ?
              AND is_depleted = 0 AND is_expired = 0
        """
        params: list = [location_id, product_id]
        if tenant_id:
            query += " AND tenant_id = ?"
            params.append(tenant_id)
        cursor = await self._conn.execute(f"{query} {FIFO_ORDER}", params)
        rows = await cursor.fetchall()
        # remaining is decimal TEXT, compared here rather than in SQL
        return [b for b in map(self._row_to_batch, rows) if b.remaining_quantity > ZERO]

    async def list_unexpired(
        self, location_id: str, product_id: str, as_of: date
    ) -> list[StockBatch]:
        cursor = await self._conn.execute(
            f"""
            SELECT * FROM stock_batches
            WHERE location_id = ? AND product_id = ?
              AND is_depleted = 0 AND is_expired = 0
              AND (expiry_date IS NULL OR expiry_date >= ?)
            {FIFO_ORDER}
            """,
            (location_id, product_id, as_of.isoformat()),
        )
        rows = await cursor.fetchall()
        return [b for b in map(self._row_to_batch, rows) if b.remaining_quantity > ZERO]

    async def mark_expired(
        self, location_id: str, product_id: str, as_of: date
    ) -> int:
        cursor = await self._conn.execute(
            """
            UPDATE stock_batches
            SET is_expired = 1, version = version + 1, updated_at = ?
            WHERE location_id = ? AND product_id = ?
              AND is_expired = 0
              AND expiry_date IS NOT NULL AND expiry_date < ?
            """,
            (utcnow().isoformat(), location_id, product_id, as_of.isoformat()),
        )
        return cursor.rowcount

    async def mark_expired_for_location(
        self, location_id: str, as_of: date, tenant_id: str | None = None
    ) -> int:
        query = """
            UPDATE stock_batches
            SET is_expired = 1, version = version + 1, updated_at = ?
            WHERE location_id = ?
              AND is_expired = 0
              AND expiry_date IS NOT NULL AND expiry_date < ?
        """
        params: list = [utcnow().isoformat(), location_id, as_of.isoformat()]
        if tenant_id:
            query += " AND tenant_id = ?"
            params.append(tenant_id)
        cursor = await self._conn.execute(query, params)
        return cursor.rowcount

    async def decrement_remaining(
        self, batch_id: int, amount: Decimal, expected_version: int
    ) -> StockBatch:
        current = await self.get(batch_id)
        if current is None:
            raise BatchNotFoundError(batch_id)
        if current.version != expected_version:
            raise ConcurrencyConflictError(batch_id, expected_version)

        remaining = current.remaining_quantity - amount
        if remaining < ZERO:
            raise ValidationError(
                "amount",
                f"exceeds remaining quantity {current.remaining_quantity}",
                amount,
            )

        now = utcnow()
        cursor = await self._conn.execute(
            """
            UPDATE stock_batches
            SET remaining_quantity = ?, is_depleted = ?,
                version = version + 1, updated_at = ?
            WHERE id = ? AND version = ?
            """,
            (
                str(remaining),
                int(remaining == ZERO),
                now.isoformat(),
                batch_id,
                expected_version,
            ),
        )
        if cursor.rowcount == 0:
            raise ConcurrencyConflictError(batch_id, expected_version)

        current.remaining_quantity = remaining
        current.is_depleted = remaining == ZERO
        current.version = expected_version + 1
        current.updated_at = now
        return current

    async def list_near_expiry(
        self,
        location_id: str,
        as_of: date,
        until: date,
        tenant_id: str | None = None,
    ) -> list[StockBatch]:
        query = """
            SELECT * FROM stock_batches
            WHERE location_id = ?
              AND is_depleted = 0 AND is_expired = 0
              AND expiry_date IS NOT NULL
              AND expiry_date >= ? AND expiry_date <= ?
        """
        params: list = [location_id, as_of.isoformat(), until.isoformat()]
        if tenant_id:
            query += " AND tenant_id = ?"
            params.append(tenant_id)
        query += " ORDER BY expiry_date ASC, id ASC"
        cursor = await self._conn.execute(query, params)
        rows = await cursor.fetchall()
        return [b for b in map(self._row_to_batch, rows) if b.remaining_quantity > ZERO]

    async def list_expired_with_stock(
        self, location_id: str, tenant_id: str | None = None
    ) -> list[StockBatch]:
        query = """
            SELECT * FROM stock_batches
            WHERE location_id = ? AND is_expired = 1 AND is_depleted = 0
        """
        params: list = [location_id]
        if tenant_id:
            query += " AND tenant_id = ?"
            params.append(tenant_id)
        query += " ORDER BY expiry_date ASC, id ASC"
        cursor = await self._conn.execute(query, params)
        rows = await cursor.fetchall()
        return [b for b in map(self._row_to_batch, rows) if b.remaining_quantity > ZERO]

    @staticmethod
    def _row_to_batch(row: aiosqlite.Row) -> StockBatch:
        """Convert a database row to a StockBatch entity."""
        return StockBatch(
            id=row["id"],
            tenant_id=row["tenant_id"],
            location_id=row["location_id"],
            product_id=row["product_id"],
            batch_number=row["batch_number"],
            quantity=Decimal(row["quantity"]),
            remaining_quantity=Decimal(row["remaining_quantity"]),
            unit_cost=Decimal(row["unit_cost"]),
            receipt_date=date.fromisoformat(row["receipt_date"]),
            expiry_date=date.fromisoformat(row["expiry_date"]) if row["expiry_date"] else None,
            is_expired=bool(row["is_expired"]),
            is_depleted=bool(row["is_depleted"]),
            source_type=row["source_type"],
            source_id=row["source_id"],
            version=row["version"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
