"""Unit tests for FIFOEngine over in-memory storage."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from stockledger.core.entities import MovementFilters, MovementType, SourceRef, StockMovement
from stockledger.core.exceptions import (
    BatchNotFoundError,
    ConcurrencyConflictError,
    InsufficientStockError,
    ValidationError,
)


class TestCreateBatch:
    """Tests for batch creation rules."""

    async def test_remaining_starts_at_quantity(self, engine, store):
        batch = await engine.create_batch(
            "T1", "L1", "P1", "10", "5", date(2025, 1, 1),
            source_ref=SourceRef(source_type="goods_receipt_item", source_id="GRN-1"),
        )
        assert batch.remaining_quantity == Decimal("10")
        assert batch.source_id == "GRN-1"
        assert store.movements == []

    @pytest.mark.parametrize("quantity", ["0", "-1"])
    async def test_rejects_non_positive_quantity(self, engine, quantity):
        with pytest.raises(ValidationError):
            await engine.create_batch("T1", "L1", "P1", quantity, "5", date(2025, 1, 1))

    async def test_rejects_negative_cost(self, engine):
        with pytest.raises(ValidationError):
            await engine.create_batch("T1", "L1", "P1", "1", "-0.01", date(2025, 1, 1))

    async def test_zero_cost_allowed(self, engine):
        batch = await engine.create_batch("T1", "L1", "P1", "1", "0", date(2025, 1, 1))
        assert batch.unit_cost == Decimal("0")

    async def test_rejects_missing_product(self, engine):
        with pytest.raises(ValidationError):
            await engine.create_batch("T1", "L1", " ", "1", "1", date(2025, 1, 1))

    async def test_rejects_non_numeric(self, engine):
        with pytest.raises(ValidationError):
            await engine.create_batch("T1", "L1", "P1", "lots", "1", date(2025, 1, 1))

    async def test_float_input_kept_exact(self, engine):
        batch = await engine.create_batch("T1", "L1", "P1", 0.1, 0.2, date(2025, 1, 1))
        assert batch.quantity == Decimal("0.1")
        assert batch.unit_cost == Decimal("0.2")


class TestReceiveBatch:
    async def test_writes_inbound_movement(self, engine, store):
        receipt = await engine.receive_batch(
            "T1", "L1", "P1", "8", "3", date(2025, 1, 1),
            reference_type="goods_receipt", reference_id="GRN-9",
        )

        movement = receipt.movement
        assert movement.movement_type == MovementType.RECEIPT
        assert movement.quantity == Decimal("8")
        assert movement.quantity_before == Decimal("0")
        assert movement.quantity_after == Decimal("8")
        assert movement.batch_id == receipt.batch.id
        assert store.commits == 1


class TestConsume:
    """Tests for FIFO consumption."""

    async def test_spans_batches_oldest_first(self, engine, store, seed):
        a = await seed("10", "5", date(2025, 1, 1))
        b = await seed("10", "7", date(2025, 2, 1))

        result = await engine.consume("T1", "L1", "P1", "12", MovementType.SALE)

        assert result.success
        assert [(c.batch_id, c.quantity) for c in result.consumed_batches] == [
            (a.id, Decimal("10")),
            (b.id, Decimal("2")),
        ]
        assert result.total_cost == Decimal("64")
        assert store.batches[a.id].is_depleted
        assert store.batches[b.id].remaining_quantity == Decimal("8")
        assert [m.quantity for m in result.movements] == [Decimal("-10"), Decimal("-2")]
        assert result.movements[0].quantity_after == Decimal("0")

    async def test_shortfall_reported(self, engine, seed):
        await seed("10", "5")
        await seed("10", "7")

        result = await engine.consume("T1", "L1", "P1", "25", MovementType.SALE)

        assert not result.success
        assert result.total_consumed == Decimal("20")
        assert result.shortfall == Decimal("5")

    async def test_no_stock(self, engine):
        result = await engine.consume("T1", "L1", "P1", "3", MovementType.SALE)
        assert not result.success
        assert result.consumed_batches == []
        assert result.shortfall == Decimal("3")

    async def test_all_or_nothing(self, engine, store, seed):
        batch = await seed("5", "2")

        with pytest.raises(InsufficientStockError) as exc_info:
            await engine.consume(
                "T1", "L1", "P1", "8", MovementType.SALE, allow_partial=False
            )

        assert exc_info.value.shortfall == Decimal("3")
        assert store.batches[batch.id].remaining_quantity == Decimal("5")
        assert len(store.movements) == 1

    async def test_skips_expired(self, engine, store, seed):
        expired = await seed("10", "1", date(2024, 1, 1), expiry_date=date(2025, 5, 31))
        live = await seed("10", "2", date(2025, 2, 1))

        result = await engine.consume("T1", "L1", "P1", "4", MovementType.CONSUMPTION)

        assert [c.batch_id for c in result.consumed_batches] == [live.id]
        assert store.batches[expired.id].is_expired

    async def test_expiring_today_still_consumable(self, engine, seed):
        batch = await seed("10", "1", expiry_date=date(2025, 6, 1))
        result = await engine.consume("T1", "L1", "P1", "1", MovementType.SALE)
        assert result.consumed_batches[0].batch_id == batch.id

    @pytest.mark.parametrize("quantity", ["0", "-2"])
    async def test_rejects_non_positive(self, engine, quantity):
        with pytest.raises(ValidationError):
            await engine.consume("T1", "L1", "P1", quantity, MovementType.SALE)

    async def test_reason_and_reference_recorded(self, engine, seed):
        await seed("10", "1")
        result = await engine.consume(
            "T1", "L1", "P1", "1", MovementType.CONSUMPTION,
            reference_type="manual_consumption", actor_id="U1", reason="wastage",
        )
        movement = result.movements[0]
        assert movement.reason == "wastage"
        assert movement.reference_type == "manual_consumption"
        assert movement.actor_id == "U1"

    async def test_movement_type_given_as_text(self, engine, store, seed):
        await seed("5", "2")

        result = await engine.consume("T1", "L1", "P1", "3", "sale")

        assert result.success
        assert store.movements[-1].movement_type == MovementType.SALE

    async def test_unknown_movement_type_rejected(self, engine, store, seed):
        await seed("5", "2")

        with pytest.raises(ValidationError) as exc_info:
            await engine.consume("T1", "L1", "P1", "3", "theft")

        assert exc_info.value.details["field"] == "movement_type"
        assert len(store.movements) == 1

    async def test_tenant_sees_only_own_batches(self, engine, store, seed):
        theirs = await seed("5", "2", tenant_id="T1")
        ours = await seed("2", "3", date(2025, 3, 1), tenant_id="T2")

        result = await engine.consume("T2", "L1", "P1", "3", MovementType.SALE)

        assert [c.batch_id for c in result.consumed_batches] == [ours.id]
        assert result.shortfall == Decimal("1")
        assert store.batches[theirs.id].remaining_quantity == Decimal("5")
        assert {m.tenant_id for m in result.movements} == {"T2"}

    async def test_missing_tenant_rejected(self, engine, seed):
        await seed("5", "2")
        with pytest.raises(ValidationError):
            await engine.consume("", "L1", "P1", "1", MovementType.SALE)


class TestConsumeConflicts:
    """Version conflicts are retried from a fresh read."""

    async def test_retries_then_succeeds(self, engine, store, seed):
        await seed("10", "5")
        store.forced_conflicts = 2

        result = await engine.consume("T1", "L1", "P1", "4", MovementType.SALE)

        assert result.success
        assert store.rollbacks == 2
        assert len([m for m in store.movements if m.is_outflow]) == 1

    async def test_gives_up_after_limit(self, engine, store, seed):
        batch = await seed("10", "5")
        store.forced_conflicts = 5

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await engine.consume("T1", "L1", "P1", "4", MovementType.SALE)

        assert exc_info.value.details["attempts"] == 3
        assert store.batches[batch.id].remaining_quantity == Decimal("10")

    async def test_not_retried_inside_caller_uow(self, engine, store, seed):
        await seed("10", "5")
        store.forced_conflicts = 1

        with pytest.raises(ConcurrencyConflictError):
            async with engine.unit_of_work() as uow:
                await engine.consume("T1", "L1", "P1", "4", MovementType.SALE, uow=uow)

        assert store.forced_conflicts == 0


class TestValuation:
    async def test_weighted_average(self, engine, seed):
        await seed("3", "10")
        await seed("2", "25")
        assert await engine.calculate_weighted_average_cost("L1", "P1") == Decimal("16.0000")

    async def test_rounds_half_up(self, engine, seed):
        await seed("1", "1")
        await seed("1", "0.0001")
        # (1 + 0.0001) / 2 = 0.50005
        assert await engine.calculate_weighted_average_cost("L1", "P1") == Decimal("0.5001")

    async def test_no_stock_is_zero(self, engine):
        assert await engine.calculate_weighted_average_cost("L1", "P1") == Decimal("0")

    async def test_ignores_expired_without_flagging(self, engine, store, seed):
        expired = await seed("10", "100", expiry_date=date(2025, 1, 1))
        await seed("2", "4")

        assert await engine.calculate_weighted_average_cost("L1", "P1") == Decimal("4.0000")
        assert store.batches[expired.id].is_expired is False


class TestAvailability:
    async def test_check_availability(self, engine, seed):
        await seed("5", "1")
        result = await engine.check_availability("L1", "P1", "8")
        assert result.available is False
        assert result.current_stock == Decimal("5")
        assert result.shortfall == Decimal("3")

    async def test_enough(self, engine, seed):
        await seed("5", "1")
        result = await engine.check_availability("L1", "P1", "5")
        assert result.available is True
        assert result.shortfall == Decimal("0")


class TestSummary:
    async def test_summary(self, engine, seed):
        await seed("4", "10", expiry_date=date(2025, 5, 1))
        await seed("6", "2", expiry_date=date(2025, 6, 20))
        await seed("2", "5")

        summary = await engine.get_stock_summary("L1", "P1", near_expiry_days=30)

        assert summary.quantity_on_hand == Decimal("12")
        assert summary.available_quantity == Decimal("8")
        assert summary.total_value == Decimal("22")
        assert summary.average_cost == Decimal("2.7500")
        assert summary.earliest_expiry == date(2025, 6, 20)
        assert summary.has_near_expiry is True
        assert summary.has_expired is True


class TestLedger:
    def _movement(self, quantity: str, before: str, after: str) -> StockMovement:
        return StockMovement(
            tenant_id="T1",
            location_id="L1",
            product_id="P1",
            movement_type=MovementType.ADJUSTMENT,
            quantity=Decimal(quantity),
            quantity_before=Decimal(before),
            quantity_after=Decimal(after),
        )

    async def test_record_movement(self, engine, store):
        saved = await engine.record_movement(self._movement("-2", "5", "3"))
        assert saved.id == 1
        assert store.movements == [saved]

    async def test_record_movement_with_text_type(self, engine):
        movement = self._movement("4", "0", "4")
        movement.movement_type = "return"

        saved = await engine.record_movement(movement)

        assert saved.movement_type is MovementType.RETURN

    async def test_rejects_zero_quantity(self, engine):
        with pytest.raises(ValidationError):
            await engine.record_movement(self._movement("0", "5", "5"))

    async def test_rejects_inconsistent_after(self, engine):
        with pytest.raises(ValidationError):
            await engine.record_movement(self._movement("-2", "5", "4"))

    async def test_page_size_clamped(self, engine):
        page = await engine.list_movements("L1", MovementFilters(limit=500))
        assert page.limit == 50

    async def test_reconcile_balanced(self, engine, seed):
        batch = await seed("10", "1")
        await engine.consume("T1", "L1", "P1", "4", MovementType.SALE)

        result = await engine.reconcile_batch(batch.id)

        assert result.balanced
        assert result.ledger_outflow == Decimal("4")

    async def test_reconcile_mismatch(self, engine, store, seed):
        batch = await seed("10", "1")
        store.batches[batch.id].remaining_quantity = Decimal("7")

        result = await engine.reconcile_batch(batch.id)

        assert not result.balanced
        assert result.expected_outflow == Decimal("3")
        assert result.ledger_outflow == Decimal("0")

    async def test_reconcile_missing_batch(self, engine):
        with pytest.raises(BatchNotFoundError):
            await engine.reconcile_batch(99)


class TestExpiryMarking:
    async def test_time_of_day_ignored(self, engine, store, seed):
        batch = await seed("1", "1", expiry_date=date(2025, 6, 1))

        count = await engine.mark_expired("L1", "P1", datetime(2025, 6, 1, 9, 30))

        assert count == 0
        assert not store.batches[batch.id].is_expired

    async def test_location_sweep_accepts_datetime(self, engine, store, seed):
        batch = await seed("1", "1", expiry_date=date(2025, 6, 1))

        assert await engine.mark_expired_for_location("L1", datetime(2025, 6, 2, 0, 1)) == 1
        assert store.batches[batch.id].is_expired


class TestAlerts:
    async def test_near_expiry(self, engine, seed):
        soon = await seed("1", "1", expiry_date=date(2025, 6, 15))
        await seed("1", "1", expiry_date=date(2025, 12, 1))

        batches = await engine.list_near_expiry_batches("L1", days=30)

        assert [b.id for b in batches] == [soon.id]

    async def test_expired_sweeps_first(self, engine, store, seed):
        batch = await seed("1", "1", expiry_date=date(2025, 1, 1))

        batches = await engine.list_expired_batches("L1")

        assert [b.id for b in batches] == [batch.id]
        assert store.batches[batch.id].is_expired

    async def test_get_batch_missing(self, engine):
        with pytest.raises(BatchNotFoundError):
            await engine.get_batch(1)
