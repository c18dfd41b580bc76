"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    SQLiteBatchRepository,
    SQLiteMovementRepository,
    SQLiteUnitOfWork,
    close_pool,
    get_pool,
    sqlite_uow_factory,
)

__all__ = [
    # SQLite repositories
    "SQLiteBatchRepository",
    "SQLiteMovementRepository",
    "SQLiteUnitOfWork",
    "sqlite_uow_factory",
    # Connection pool
    "get_pool",
    "close_pool",
]
