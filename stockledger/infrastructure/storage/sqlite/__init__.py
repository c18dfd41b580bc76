"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.batch_store import SQLiteBatchRepository
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from stockledger.infrastructure.storage.sqlite.movement_store import (
    SQLiteMovementRepository,
)
from stockledger.infrastructure.storage.sqlite.unit_of_work import (
    SQLiteUnitOfWork,
    sqlite_uow_factory,
)

# Type aliases for convenience
BatchRepository = SQLiteBatchRepository
MovementRepository = SQLiteMovementRepository
UnitOfWork = SQLiteUnitOfWork

__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Repositories
    "SQLiteBatchRepository",
    "SQLiteMovementRepository",
    "SQLiteUnitOfWork",
    "sqlite_uow_factory",
    # Type aliases
    "BatchRepository",
    "MovementRepository",
    "UnitOfWork",
]
