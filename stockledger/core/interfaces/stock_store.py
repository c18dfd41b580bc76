"""Abstract interfaces for batch, movement and transaction storage."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from types import TracebackType

from stockledger.core.entities.inventory import (
    MovementFilters,
    MovementPage,
    StockBatch,
    StockMovement,
)


class IBatchRepository(ABC):
    """Interface for stock batch persistence."""

    @abstractmethod
    async def add(self, batch: StockBatch) -> StockBatch:
        """Insert a new batch and return it with its id."""
        pass

    @abstractmethod
    async def get(self, batch_id: int) -> StockBatch | None:
        """Get batch by ID."""
        pass

    @abstractmethod
    async def list_for_product(
        self, location_id: str, product_id: str
    ) -> list[StockBatch]:
        """All batches regardless of state, receipt date ascending then creation order."""
        pass

    @abstractmethod
    async def list_eligible(
        self, location_id: str, product_id: str, tenant_id: str | None = None
    ) -> list[StockBatch]:
        """Non-depleted, non-expired batches with stock, in FIFO order."""
        pass

    @abstractmethod
    async def list_unexpired(
        self, location_id: str, product_id: str, as_of: date
    ) -> list[StockBatch]:
        """Eligible batches judged against as_of without touching expiry flags."""
        pass

    @abstractmethod
    async def mark_expired(
        self, location_id: str, product_id: str, as_of: date
    ) -> int:
        """Flag batches with expiry_date < as_of. Returns number newly flagged."""
        pass

    @abstractmethod
    async def mark_expired_for_location(
        self, location_id: str, as_of: date, tenant_id: str | None = None
    ) -> int:
        """Flag expired batches of every product at a location."""
        pass

    @abstractmethod
    async def decrement_remaining(
        self, batch_id: int, amount: Decimal, expected_version: int
    ) -> StockBatch:
        """
        Compare-and-set decrement of a batch's remaining quantity.

        Raises:
            ConcurrencyConflictError: If the batch version no longer matches.
            BatchNotFoundError: If the batch does not exist.
        """
        pass

    @abstractmethod
    async def list_near_expiry(
        self,
        location_id: str,
        as_of: date,
        until: date,
        tenant_id: str | None = None,
    ) -> list[StockBatch]:
        """Unexpired batches with stock whose expiry falls within [as_of, until]."""
        pass

    @abstractmethod
    async def list_expired_with_stock(
        self, location_id: str, tenant_id: str | None = None
    ) -> list[StockBatch]:
        """Batches flagged expired that still hold stock."""
        pass


class IMovementRepository(ABC):
    """Append-only interface for the stock movement ledger."""

    @abstractmethod
    async def add(self, movement: StockMovement) -> StockMovement:
        """Record a stock movement."""
        pass

    @abstractmethod
    async def list_for_location(
        self, location_id: str, filters: MovementFilters
    ) -> MovementPage:
        """Filtered, paginated movements at a location."""
        pass

    @abstractmethod
    async def list_for_batch(self, batch_id: int) -> list[StockMovement]:
        """All movements recorded against a batch, oldest first."""
        pass


class IUnitOfWork(ABC):
    """
    One atomic storage transaction.

    Exposes only the repositories bound to the transaction. Commits on
    normal exit and rolls back when the block raises.
    """

    batches: IBatchRepository
    movements: IMovementRepository

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        pass
