"""
FIFO stock engine.

Owns batch creation, expiry marking, FIFO selection, consumption,
valuation and the movement ledger. Every operation runs inside a unit of
work; callers that need several operations to commit together pass their
own ``uow`` and the engine joins it instead of opening a new one.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    ZERO,
    AvailabilityResult,
    BatchReceipt,
    BatchReconciliation,
    ConsumedBatch,
    ConsumptionResult,
    MovementFilters,
    MovementPage,
    MovementType,
    SourceRef,
    StockBatch,
    StockMovement,
    StockSummary,
)
from stockledger.core.exceptions import (
    BatchNotFoundError,
    ConcurrencyConflictError,
    InsufficientStockError,
    ValidationError,
)
from stockledger.core.interfaces.stock_store import IUnitOfWork
from stockledger.core.services.fifo_allocation import plan_fifo_allocation

logger = get_logger(__name__)

UnitOfWorkFactory = Callable[..., IUnitOfWork]


def _to_decimal(value: Decimal | int | float | str, field: str) -> Decimal:
    """Coerce a numeric input to Decimal without going through binary float."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise ValidationError(field, "must be a number", value) from e
    if not result.is_finite():
        raise ValidationError(field, "must be a finite number", value)
    return result


def _require(value: str | None, field: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(field, "is required", value)
    return value


def _as_date(value: date) -> date:
    """Drop the time of day; expiry is decided on calendar dates only."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _movement_type(value: MovementType | str) -> MovementType:
    try:
        return MovementType(value)
    except ValueError as e:
        raise ValidationError("movement_type", "unknown movement type", value) from e


class FIFOEngine:
    """
    Batch ledger and FIFO consumption engine.

    Args:
        uow_factory: Callable returning a fresh unit of work. Called with
            ``readonly=True`` for pure reads.
        max_conflict_retries: Attempts for a consume that hits a version
            conflict before the conflict is surfaced.
        cost_precision: Decimal places of the weighted average cost.
        max_page_size: Upper bound for movement log pages.
        today: Clock used for expiry decisions.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        *,
        max_conflict_retries: int = 3,
        cost_precision: int = 4,
        max_page_size: int = 100,
        today: Callable[[], date] = date.today,
    ):
        self._uow_factory = uow_factory
        self.max_conflict_retries = max(1, max_conflict_retries)
        self.cost_quantum = Decimal(1).scaleb(-cost_precision)
        self.max_page_size = max_page_size
        self._today = today

    def unit_of_work(self, readonly: bool = False) -> IUnitOfWork:
        """Open a unit of work that callers can pass to several operations."""
        return self._uow_factory(readonly=readonly)

    @asynccontextmanager
    async def _scope(
        self, uow: IUnitOfWork | None, readonly: bool = False
    ) -> AsyncIterator[IUnitOfWork]:
        """Join the caller's unit of work or run in a new one."""
        if uow is not None:
            yield uow
            return
        async with self._uow_factory(readonly=readonly) as own:
            yield own

    # ------------------------------------------------------------------
    # Batch store
    # ------------------------------------------------------------------

    async def create_batch(
        self,
        tenant_id: str,
        location_id: str,
        product_id: str,
        quantity: Decimal | int | str,
        unit_cost: Decimal | int | str,
        receipt_date: date,
        expiry_date: date | None = None,
        source_ref: SourceRef | None = None,
        *,
        batch_number: str | None = None,
        uow: IUnitOfWork | None = None,
    ) -> StockBatch:
        """
        Create a batch with remaining = quantity. Does not write the ledger.

        Raises:
            ValidationError: quantity <= 0, negative unit cost or missing ids.
        """
        qty = _to_decimal(quantity, "quantity")
        cost = _to_decimal(unit_cost, "unit_cost")
        if qty <= ZERO:
            raise ValidationError("quantity", "quantity must be positive", qty)
        if cost < ZERO:
            raise ValidationError("unit_cost", "unit cost cannot be negative", cost)
        _require(tenant_id, "tenant_id")
        _require(location_id, "location_id")
        _require(product_id, "product_id")

        batch = StockBatch(
            tenant_id=tenant_id,
            location_id=location_id,
            product_id=product_id,
            batch_number=batch_number,
            quantity=qty,
            remaining_quantity=qty,
            unit_cost=cost,
            receipt_date=receipt_date,
            expiry_date=expiry_date,
            source_type=source_ref.source_type if source_ref else None,
            source_id=source_ref.source_id if source_ref else None,
        )

        async with self._scope(uow) as tx:
            batch = await tx.batches.add(batch)

        logger.info(
            "batch_created",
            batch_id=batch.id,
            location_id=location_id,
            product_id=product_id,
            quantity=qty,
            unit_cost=cost,
        )
        return batch

    async def receive_batch(
        self,
        tenant_id: str,
        location_id: str,
        product_id: str,
        quantity: Decimal | int | str,
        unit_cost: Decimal | int | str,
        receipt_date: date,
        expiry_date: date | None = None,
        source_ref: SourceRef | None = None,
        *,
        batch_number: str | None = None,
        movement_type: MovementType = MovementType.RECEIPT,
        reference_type: str | None = None,
        reference_id: str | None = None,
        reason: str | None = None,
        actor_id: str | None = None,
        notes: str | None = None,
        uow: IUnitOfWork | None = None,
    ) -> BatchReceipt:
        """Create a batch and its inbound movement in one transaction."""
        async with self._scope(uow) as tx:
            batch = await self.create_batch(
                tenant_id,
                location_id,
                product_id,
                quantity,
                unit_cost,
                receipt_date,
                expiry_date,
                source_ref,
                batch_number=batch_number,
                uow=tx,
            )
            movement = await tx.movements.add(
                StockMovement(
                    tenant_id=tenant_id,
                    location_id=location_id,
                    product_id=product_id,
                    batch_id=batch.id,
                    movement_type=movement_type,
                    quantity=batch.quantity,
                    quantity_before=ZERO,
                    quantity_after=batch.quantity,
                    reference_type=reference_type,
                    reference_id=reference_id,
                    reason=reason,
                    actor_id=actor_id,
                    notes=notes,
                )
            )
        return BatchReceipt(batch=batch, movement=movement)

    async def list_batches(
        self, location_id: str, product_id: str, *, uow: IUnitOfWork | None = None
    ) -> list[StockBatch]:
        """All batches for a product at a location, FIFO order, any state."""
        async with self._scope(uow, readonly=True) as tx:
            return await tx.batches.list_for_product(location_id, product_id)

    async def get_batch(
        self, batch_id: int, *, uow: IUnitOfWork | None = None
    ) -> StockBatch:
        async with self._scope(uow, readonly=True) as tx:
            batch = await tx.batches.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    # ------------------------------------------------------------------
    # Expiry marker and FIFO selector
    # ------------------------------------------------------------------

    async def mark_expired(
        self,
        location_id: str,
        product_id: str,
        as_of: date | None = None,
        *,
        uow: IUnitOfWork | None = None,
    ) -> int:
        """Flag batches with expiry_date < as_of. Idempotent."""
        as_of = _as_date(as_of or self._today())
        async with self._scope(uow) as tx:
            count = await tx.batches.mark_expired(location_id, product_id, as_of)
        if count:
            logger.info(
                "batches_marked_expired",
                location_id=location_id,
                product_id=product_id,
                count=count,
                as_of=as_of.isoformat(),
            )
        return count

    async def mark_expired_for_location(
        self,
        location_id: str,
        as_of: date | None = None,
        tenant_id: str | None = None,
        *,
        uow: IUnitOfWork | None = None,
    ) -> int:
        """Flag expired batches of every product at a location."""
        as_of = _as_date(as_of or self._today())
        async with self._scope(uow) as tx:
            count = await tx.batches.mark_expired_for_location(
                location_id, as_of, tenant_id
            )
        if count:
            logger.info(
                "location_batches_marked_expired",
                location_id=location_id,
                count=count,
            )
        return count

    async def select_eligible_batches(
        self,
        location_id: str,
        product_id: str,
        *,
        tenant_id: str | None = None,
        uow: IUnitOfWork | None = None,
    ) -> list[StockBatch]:
        """Mark expiry, then return consumable batches oldest receipt first.

        With ``tenant_id`` only that tenant's batches are returned.
        """
        async with self._scope(uow) as tx:
            await self.mark_expired(location_id, product_id, uow=tx)
            return await tx.batches.list_eligible(location_id, product_id, tenant_id)

    async def get_available_quantity(
        self,
        location_id: str,
        product_id: str,
        *,
        tenant_id: str | None = None,
        uow: IUnitOfWork | None = None,
    ) -> Decimal:
        batches = await self.select_eligible_batches(
            location_id, product_id, tenant_id=tenant_id, uow=uow
        )
        return sum((b.remaining_quantity for b in batches), ZERO)

    async def check_availability(
        self,
        location_id: str,
        product_id: str,
        requested: Decimal | int | str,
        *,
        tenant_id: str | None = None,
        uow: IUnitOfWork | None = None,
    ) -> AvailabilityResult:
        requested = _to_decimal(requested, "requested")
        current = await self.get_available_quantity(
            location_id, product_id, tenant_id=tenant_id, uow=uow
        )
        return AvailabilityResult(
            available=current >= requested,
            current_stock=current,
            shortfall=max(ZERO, requested - current),
        )

    # ------------------------------------------------------------------
    # Consumption executor
    # ------------------------------------------------------------------

    async def consume(
        self,
        tenant_id: str,
        location_id: str,
        product_id: str,
        quantity: Decimal | int | str,
        movement_type: MovementType | str,
        reference_type: str | None = None,
        reference_id: str | None = None,
        actor_id: str | None = None,
        notes: str | None = None,
        *,
        allow_partial: bool = True,
        reason: str | None = None,
        uow: IUnitOfWork | None = None,
    ) -> ConsumptionResult:
        """
        Consume quantity from eligible batches in FIFO order.

        A shortfall is reported on the result, not raised, unless
        ``allow_partial`` is False. Batch updates and ledger entries commit
        atomically. Version conflicts are retried from a fresh read when the
        engine owns the transaction; inside a caller's ``uow`` they surface.

        Raises:
            ValidationError: quantity <= 0, missing tenant or unknown movement type.
            InsufficientStockError: shortfall with allow_partial=False.
            ConcurrencyConflictError: conflict persisted across retries.
        """
        qty = _to_decimal(quantity, "quantity")
        if qty <= ZERO:
            raise ValidationError("quantity", "quantity must be positive", qty)
        _require(tenant_id, "tenant_id")
        movement_type = _movement_type(movement_type)

        logger.info(
            "fifo_consume_started",
            location_id=location_id,
            product_id=product_id,
            quantity=qty,
            movement_type=movement_type.value,
        )

        if uow is not None:
            return await self._consume_once(
                tenant_id, location_id, product_id, qty, movement_type,
                reference_type, reference_id, actor_id, notes, reason,
                allow_partial, uow,
            )

        attempt = 1
        while True:
            try:
                async with self._uow_factory(readonly=False) as tx:
                    return await self._consume_once(
                        tenant_id, location_id, product_id, qty, movement_type,
                        reference_type, reference_id, actor_id, notes, reason,
                        allow_partial, tx,
                    )
            except ConcurrencyConflictError as e:
                if attempt >= self.max_conflict_retries:
                    logger.warning(
                        "consume_conflict_exhausted",
                        batch_id=e.batch_id,
                        attempts=attempt,
                    )
                    raise ConcurrencyConflictError(
                        e.batch_id, e.expected_version, attempts=attempt
                    ) from e
                logger.info(
                    "consume_conflict_retry",
                    batch_id=e.batch_id,
                    attempt=attempt,
                )
                attempt += 1

    async def _consume_once(
        self,
        tenant_id: str,
        location_id: str,
        product_id: str,
        quantity: Decimal,
        movement_type: MovementType,
        reference_type: str | None,
        reference_id: str | None,
        actor_id: str | None,
        notes: str | None,
        reason: str | None,
        allow_partial: bool,
        uow: IUnitOfWork,
    ) -> ConsumptionResult:
        batches = await self.select_eligible_batches(
            location_id, product_id, tenant_id=tenant_id, uow=uow
        )
        plan = plan_fifo_allocation(batches, quantity)

        if not plan.fully_allocated and not allow_partial:
            raise InsufficientStockError(
                product_id=product_id,
                location_id=location_id,
                requested=quantity,
                available=plan.total_allocated,
                consumed_batches=plan.breakdown(),
            )

        consumed: list[ConsumedBatch] = []
        movements: list[StockMovement] = []

        for allocation in plan.allocations:
            snapshot = allocation.batch
            updated = await uow.batches.decrement_remaining(
                snapshot.id, allocation.quantity, snapshot.version
            )
            movement = await uow.movements.add(
                StockMovement(
                    tenant_id=tenant_id,
                    location_id=location_id,
                    product_id=product_id,
                    batch_id=snapshot.id,
                    movement_type=movement_type,
                    quantity=-allocation.quantity,
                    quantity_before=snapshot.remaining_quantity,
                    quantity_after=updated.remaining_quantity,
                    reference_type=reference_type,
                    reference_id=reference_id,
                    reason=reason,
                    actor_id=actor_id,
                    notes=notes,
                )
            )
            consumed.append(
                ConsumedBatch(
                    batch_id=snapshot.id,
                    quantity=allocation.quantity,
                    unit_cost=snapshot.unit_cost,
                )
            )
            movements.append(movement)

        result = ConsumptionResult(
            success=plan.fully_allocated,
            consumed_batches=consumed,
            total_consumed=plan.total_allocated,
            shortfall=plan.shortfall,
            movements=movements,
        )

        if result.success:
            logger.info(
                "fifo_consume_complete",
                product_id=product_id,
                batches=len(consumed),
                total_consumed=result.total_consumed,
                total_cost=result.total_cost,
            )
        else:
            logger.warning(
                "fifo_consume_shortfall",
                product_id=product_id,
                location_id=location_id,
                requested=quantity,
                total_consumed=result.total_consumed,
                shortfall=result.shortfall,
            )
        return result

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def _weighted_average(self, batches: list[StockBatch]) -> Decimal:
        total_qty = sum((b.remaining_quantity for b in batches), ZERO)
        if total_qty <= ZERO:
            return ZERO
        total_value = sum((b.remaining_value for b in batches), ZERO)
        return (total_value / total_qty).quantize(
            self.cost_quantum, rounding=ROUND_HALF_UP
        )

    async def calculate_weighted_average_cost(
        self, location_id: str, product_id: str, *, uow: IUnitOfWork | None = None
    ) -> Decimal:
        """
        sum(remaining * unit_cost) / sum(remaining) over eligible batches.

        Read-only: expiry is judged by date in the query, flags are not
        written. Returns 0 when there is no eligible stock.
        """
        async with self._scope(uow, readonly=True) as tx:
            batches = await tx.batches.list_unexpired(
                location_id, product_id, self._today()
            )
        return self._weighted_average(batches)

    async def get_stock_summary(
        self,
        location_id: str,
        product_id: str,
        near_expiry_days: int = 30,
        *,
        uow: IUnitOfWork | None = None,
    ) -> StockSummary:
        """Stock position of a product: on hand, available, cost and expiry flags."""
        today = self._today()
        async with self._scope(uow) as tx:
            await self.mark_expired(location_id, product_id, today, uow=tx)
            batches = await tx.batches.list_for_product(location_id, product_id)

        on_hand = [b for b in batches if not b.is_depleted]
        eligible = [b for b in batches if b.is_eligible]
        horizon = today + timedelta(days=near_expiry_days)
        expiries = [b.expiry_date for b in eligible if b.expiry_date is not None]

        return StockSummary(
            location_id=location_id,
            product_id=product_id,
            quantity_on_hand=sum((b.remaining_quantity for b in on_hand), ZERO),
            available_quantity=sum((b.remaining_quantity for b in eligible), ZERO),
            average_cost=self._weighted_average(eligible),
            total_value=sum((b.remaining_value for b in eligible), ZERO),
            earliest_expiry=min(expiries) if expiries else None,
            has_near_expiry=any(d <= horizon for d in expiries),
            has_expired=any(b.is_expired and b.remaining_quantity > ZERO for b in batches),
        )

    # ------------------------------------------------------------------
    # Movement ledger
    # ------------------------------------------------------------------

    async def record_movement(
        self, movement: StockMovement, *, uow: IUnitOfWork | None = None
    ) -> StockMovement:
        """Append one entry to the ledger."""
        movement.movement_type = _movement_type(movement.movement_type)
        if movement.quantity == ZERO:
            raise ValidationError("quantity", "movement quantity cannot be zero")
        if movement.quantity_after != movement.quantity_before + movement.quantity:
            raise ValidationError(
                "quantity_after",
                "quantity_after must equal quantity_before + quantity",
                movement.quantity_after,
            )
        async with self._scope(uow) as tx:
            saved = await tx.movements.add(movement)
        logger.info(
            "stock_movement_recorded",
            movement_id=saved.id,
            type=saved.movement_type.value,
            qty=saved.quantity,
        )
        return saved

    async def list_movements(
        self,
        location_id: str,
        filters: MovementFilters | None = None,
        *,
        uow: IUnitOfWork | None = None,
    ) -> MovementPage:
        """Filtered, paginated movement log, newest first unless asked otherwise."""
        filters = filters or MovementFilters()
        if filters.limit > self.max_page_size:
            filters = filters.model_copy(update={"limit": self.max_page_size})
        async with self._scope(uow, readonly=True) as tx:
            return await tx.movements.list_for_location(location_id, filters)

    async def reconcile_batch(
        self, batch_id: int, *, uow: IUnitOfWork | None = None
    ) -> BatchReconciliation:
        """Compare a batch's depletion with the outflows recorded against it."""
        async with self._scope(uow, readonly=True) as tx:
            batch = await tx.batches.get(batch_id)
            if batch is None:
                raise BatchNotFoundError(batch_id)
            movements = await tx.movements.list_for_batch(batch_id)

        outflow = -sum((m.quantity for m in movements if m.is_outflow), ZERO)
        result = BatchReconciliation(
            batch_id=batch_id,
            expected_outflow=batch.consumed_quantity,
            ledger_outflow=outflow,
        )
        if not result.balanced:
            logger.warning(
                "batch_ledger_mismatch",
                batch_id=batch_id,
                expected_outflow=result.expected_outflow,
                ledger_outflow=result.ledger_outflow,
            )
        return result

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def list_near_expiry_batches(
        self,
        location_id: str,
        days: int = 30,
        tenant_id: str | None = None,
        *,
        uow: IUnitOfWork | None = None,
    ) -> list[StockBatch]:
        """Unexpired batches with stock expiring within the next ``days`` days."""
        today = self._today()
        async with self._scope(uow, readonly=True) as tx:
            return await tx.batches.list_near_expiry(
                location_id, today, today + timedelta(days=days), tenant_id
            )

    async def list_expired_batches(
        self,
        location_id: str,
        tenant_id: str | None = None,
        *,
        uow: IUnitOfWork | None = None,
    ) -> list[StockBatch]:
        """Sweep expiry for the location, then list expired batches with stock."""
        async with self._scope(uow) as tx:
            await self.mark_expired_for_location(location_id, tenant_id=tenant_id, uow=tx)
            return await tx.batches.list_expired_with_stock(location_id, tenant_id)
