"""In-memory ledger storage for engine unit tests.

Lets the FIFO engine run without SQLite so retry and validation paths can
be driven directly.
"""

import copy
from datetime import date
from decimal import Decimal

import pytest

from stockledger.core.entities import (
    MovementFilters,
    MovementPage,
    StockBatch,
    StockMovement,
)
from stockledger.core.exceptions import (
    BatchNotFoundError,
    ConcurrencyConflictError,
    ValidationError,
)
from stockledger.core.interfaces import IBatchRepository, IMovementRepository, IUnitOfWork
from stockledger.core.services import FIFOEngine

TODAY = date(2025, 6, 1)


class InMemoryStore:
    """Shared state behind the fake repositories."""

    def __init__(self):
        self.batches: dict[int, StockBatch] = {}
        self.movements: list[StockMovement] = []
        self.forced_conflicts = 0
        self.commits = 0
        self.rollbacks = 0


class FakeBatchRepository(IBatchRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _fifo(self, batches):
        return sorted(batches, key=lambda b: (b.receipt_date, b.id))

    def _for(self, location_id, product_id):
        return [
            b
            for b in self.store.batches.values()
            if b.location_id == location_id and b.product_id == product_id
        ]

    async def add(self, batch):
        batch.id = len(self.store.batches) + 1
        self.store.batches[batch.id] = batch
        return batch

    async def get(self, batch_id):
        batch = self.store.batches.get(batch_id)
        return batch.model_copy() if batch else None

    async def list_for_product(self, location_id, product_id):
        return [b.model_copy() for b in self._fifo(self._for(location_id, product_id))]

    async def list_eligible(self, location_id, product_id, tenant_id=None):
        return [
            b.model_copy()
            for b in self._fifo(self._for(location_id, product_id))
            if b.is_eligible and (not tenant_id or b.tenant_id == tenant_id)
        ]

    async def list_unexpired(self, location_id, product_id, as_of):
        return [
            b
            for b in await self.list_eligible(location_id, product_id)
            if not b.has_expired_as_of(as_of)
        ]

    async def mark_expired(self, location_id, product_id, as_of):
        count = 0
        for b in self._for(location_id, product_id):
            if not b.is_expired and b.has_expired_as_of(as_of):
                b.is_expired = True
                b.version += 1
                count += 1
        return count

    async def mark_expired_for_location(self, location_id, as_of, tenant_id=None):
        count = 0
        for b in self.store.batches.values():
            if b.location_id != location_id or (tenant_id and b.tenant_id != tenant_id):
                continue
            if not b.is_expired and b.has_expired_as_of(as_of):
                b.is_expired = True
                b.version += 1
                count += 1
        return count

    async def decrement_remaining(self, batch_id, amount, expected_version):
        batch = self.store.batches.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        if self.store.forced_conflicts:
            self.store.forced_conflicts -= 1
            raise ConcurrencyConflictError(batch_id, expected_version)
        if batch.version != expected_version:
            raise ConcurrencyConflictError(batch_id, expected_version)
        if batch.remaining_quantity - amount < 0:
            raise ValidationError("amount", "exceeds remaining", amount)
        batch.remaining_quantity -= amount
        batch.is_depleted = batch.remaining_quantity == 0
        batch.version += 1
        return batch.model_copy()

    async def list_near_expiry(self, location_id, as_of, until, tenant_id=None):
        return [
            b.model_copy()
            for b in self.store.batches.values()
            if b.location_id == location_id
            and b.is_eligible
            and b.expiry_date is not None
            and as_of <= b.expiry_date <= until
            and (not tenant_id or b.tenant_id == tenant_id)
        ]

    async def list_expired_with_stock(self, location_id, tenant_id=None):
        return [
            b.model_copy()
            for b in self.store.batches.values()
            if b.location_id == location_id
            and b.is_expired
            and not b.is_depleted
            and b.remaining_quantity > 0
            and (not tenant_id or b.tenant_id == tenant_id)
        ]


class FakeMovementRepository(IMovementRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def add(self, movement):
        movement.id = len(self.store.movements) + 1
        self.store.movements.append(movement)
        return movement

    async def list_for_location(self, location_id, filters: MovementFilters):
        items = [m for m in self.store.movements if m.location_id == location_id]
        page = items[filters.offset : filters.offset + filters.limit]
        return MovementPage(items=page, total=len(items), page=filters.page, limit=filters.limit)

    async def list_for_batch(self, batch_id):
        return [m for m in self.store.movements if m.batch_id == batch_id]


class FakeUnitOfWork(IUnitOfWork):
    """Snapshots the store on entry and restores it when the block raises."""

    def __init__(self, store: InMemoryStore, readonly: bool = False):
        self.store = store
        self.readonly = readonly
        self.batches = FakeBatchRepository(store)
        self.movements = FakeMovementRepository(store)

    async def __aenter__(self):
        self._snapshot = (
            copy.deepcopy(self.store.batches),
            list(self.store.movements),
        )
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.store.commits += 1
        else:
            self.store.batches, self.store.movements = self._snapshot
            self.store.rollbacks += 1
        return None


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def engine(store: InMemoryStore) -> FIFOEngine:
    """Engine over the in-memory store with a fixed clock."""
    return FIFOEngine(
        lambda readonly=False: FakeUnitOfWork(store, readonly),
        max_conflict_retries=3,
        max_page_size=50,
        today=lambda: TODAY,
    )


@pytest.fixture
def seed(engine: FIFOEngine):
    """Receive a batch through the engine."""

    async def _seed(
        quantity: str,
        unit_cost: str,
        receipt_date: date = date(2025, 1, 1),
        expiry_date: date | None = None,
        product_id: str = "P1",
        tenant_id: str = "T1",
    ) -> StockBatch:
        receipt = await engine.receive_batch(
            tenant_id,
            "L1",
            product_id,
            Decimal(quantity),
            Decimal(unit_cost),
            receipt_date,
            expiry_date,
        )
        return receipt.batch

    return _seed
