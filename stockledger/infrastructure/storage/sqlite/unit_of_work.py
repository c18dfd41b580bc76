"""
SQLite unit of work.

Binds the batch and movement repositories to a single pooled connection
inside one transaction. Write units open with BEGIN IMMEDIATE so the
database write lock is held from batch selection until commit.
"""

from contextlib import AsyncExitStack
from types import TracebackType

from stockledger.core.interfaces.stock_store import IUnitOfWork
from stockledger.infrastructure.storage.sqlite.batch_store import SQLiteBatchRepository
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from stockledger.infrastructure.storage.sqlite.movement_store import (
    SQLiteMovementRepository,
)


class SQLiteUnitOfWork(IUnitOfWork):
    """
    One SQLite transaction exposing the ledger repositories.

    Usage:
        async with SQLiteUnitOfWork() as uow:
            batch = await uow.batches.get(1)
            await uow.movements.add(...)
    """

    def __init__(self, pool: ConnectionPool | None = None, readonly: bool = False):
        self._pool = pool
        self.readonly = readonly
        self._stack: AsyncExitStack | None = None

    async def __aenter__(self) -> "SQLiteUnitOfWork":
        if self._stack is not None:
            raise RuntimeError("unit of work is already active")
        pool = self._pool or await get_pool()
        stack = AsyncExitStack()
        conn = await stack.enter_async_context(
            pool.transaction(immediate=not self.readonly)
        )
        self._stack = stack
        self.batches = SQLiteBatchRepository(conn)
        self.movements = SQLiteMovementRepository(conn)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        stack, self._stack = self._stack, None
        return await stack.__aexit__(exc_type, exc, tb)


def sqlite_uow_factory(pool: ConnectionPool | None = None):
    """Unit of work factory for FIFOEngine, optionally bound to a pool."""

    def factory(readonly: bool = False) -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(pool=pool, readonly=readonly)

    return factory
