"""SQLite implementation of the stock movement ledger."""

from datetime import datetime, timedelta
from decimal import Decimal

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    MovementFilters,
    MovementPage,
    MovementType,
    StockMovement,
)
from stockledger.core.interfaces.stock_store import IMovementRepository

logger = get_logger(__name__)


class SQLiteMovementRepository(IMovementRepository):
    """Append-only movement ledger bound to one connection."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def add(self, movement: StockMovement) -> StockMovement:
        """Record a stock movement."""
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_movements (
                tenant_id, location_id, product_id, batch_id, movement_type,
                quantity, quantity_before, quantity_after,
                reference_type, reference_id, reason, notes, actor_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                movement.tenant_id,
                movement.location_id,
                movement.product_id,
                movement.batch_id,
                movement.movement_type.value,
                str(movement.quantity),
                str(movement.quantity_before),
                str(movement.quantity_after),
                movement.reference_type,
                movement.reference_id,
                movement.reason,
                movement.notes,
                movement.actor_id,
                movement.created_at.isoformat(),
            ),
        )
        movement.id = cursor.lastrowid
        logger.debug(
            "stock_movement_inserted",
            movement_id=movement.id,
            batch_id=movement.batch_id,
            type=movement.movement_type.value,
            qty=movement.quantity,
        )
        return movement

    async def list_for_location(
        self, location_id: str, filters: MovementFilters
    ) -> MovementPage:
        where = ["location_id = ?"]
        params: list = [location_id]

        if filters.tenant_id:
            where.append("tenant_id = ?")
            params.append(filters.tenant_id)
        if filters.product_id:
            where.append("product_id = ?")
            params.append(filters.product_id)
        if filters.movement_types:
            placeholders = ", ".join("?" for _ in filters.movement_types)
            where.append(f"movement_type IN ({placeholders})")
            params.extend(t.value for t in filters.movement_types)
        if filters.date_from:
            where.append("created_at >= ?")
            params.append(filters.date_from.isoformat())
        if filters.date_to:
            # whole day inclusive
            where.append("created_at < ?")
            params.append((filters.date_to + timedelta(days=1)).isoformat())

        clause = " AND ".join(where)
        direction = "ASC" if filters.sort_order == "asc" else "DESC"

        cursor = await self._conn.execute(
            f"SELECT COUNT(*) FROM stock_movements WHERE {clause}", params
        )
        total = (await cursor.fetchone())[0]

        cursor = await self._conn.execute(
            f"""
            SELECT * FROM stock_movements
            WHERE {clause}
            ORDER BY created_at {direction}, id {direction}
            LIMIT ? OFFSET ?
            """,
            [*params, filters.limit, filters.offset],
        )
        rows = await cursor.fetchall()

        return MovementPage(
            items=[self._row_to_movement(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
        )

    async def list_for_batch(self, batch_id: int) -> list[StockMovement]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM stock_movements
            WHERE batch_id = ?
            ORDER BY created_at ASC, id ASC
            """,
            (batch_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_movement(row) for row in rows]

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        return StockMovement(
            id=row["id"],
            tenant_id=row["tenant_id"],
            location_id=row["location_id"],
            product_id=row["product_id"],
            batch_id=row["batch_id"],
            movement_type=MovementType(row["movement_type"]),
            quantity=Decimal(row["quantity"]),
            quantity_before=Decimal(row["quantity_before"]),
            quantity_after=Decimal(row["quantity_after"]),
            reference_type=row["reference_type"],
            reference_id=row["reference_id"],
            reason=row["reason"],
            notes=row["notes"],
            actor_id=row["actor_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
