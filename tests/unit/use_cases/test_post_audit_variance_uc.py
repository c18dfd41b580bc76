"""Tests for PostAuditVarianceUseCase."""

from decimal import Decimal

import pytest

from stockledger.application.dto.requests import AuditLineRequest, PostAuditVarianceRequest
from stockledger.application.use_cases.post_audit_variance import PostAuditVarianceUseCase
from stockledger.core.entities import MovementType


@pytest.fixture
def use_case(mock_engine):
    return PostAuditVarianceUseCase(engine=mock_engine)


def _request(*lines: AuditLineRequest) -> PostAuditVarianceRequest:
    return PostAuditVarianceRequest(
        tenant_id="T1", location_id="L1", audit_id="AUD-1", lines=list(lines)
    )


class TestPostAuditVarianceUseCase:
    async def test_shortage_consumes(self, use_case, mock_engine, make_consumption):
        mock_engine.consume.return_value = make_consumption((1, "3", "4"))

        result = await use_case.execute(
            _request(
                AuditLineRequest(
                    product_id="P1",
                    system_quantity=Decimal("10"),
                    physical_quantity=Decimal("7"),
                    average_cost=Decimal("4"),
                )
            )
        )

        call = mock_engine.consume.await_args
        assert call.args[3] == Decimal("3")
        assert call.args[4] == MovementType.AUDIT
        assert call.kwargs["allow_partial"] is False
        assert "found 3 less" in call.kwargs["reason"]
        line = result.lines[0]
        assert line.variance == Decimal("-3")
        assert line.action == "consumed"
        assert result.total_variance_value == Decimal("-12")
        assert result.total_shrinkage_value == Decimal("12")

    async def test_surplus_receives_at_snapshot_cost(self, use_case, mock_engine, make_receipt):
        mock_engine.receive_batch.return_value = make_receipt(
            "2", "4", movement_type=MovementType.AUDIT
        )

        result = await use_case.execute(
            _request(
                AuditLineRequest(
                    product_id="P1",
                    system_quantity=Decimal("10"),
                    physical_quantity=Decimal("12"),
                    average_cost=Decimal("4"),
                )
            )
        )

        call = mock_engine.receive_batch.await_args
        assert call.args[3] == Decimal("2")
        assert call.args[4] == Decimal("4")
        assert call.kwargs["source_ref"].source_type == "audit"
        assert call.kwargs["movement_type"] == MovementType.AUDIT
        mock_engine.calculate_weighted_average_cost.assert_not_awaited()
        assert result.lines[0].action == "received"
        assert result.total_shrinkage_value == Decimal("0")

    async def test_missing_snapshot_uses_current_average(self, use_case, mock_engine, make_receipt):
        mock_engine.calculate_weighted_average_cost.return_value = Decimal("2.5")
        mock_engine.receive_batch.return_value = make_receipt("1", "2.5")

        result = await use_case.execute(
            _request(
                AuditLineRequest(
                    product_id="P1",
                    system_quantity=Decimal("0"),
                    physical_quantity=Decimal("1"),
                )
            )
        )

        assert mock_engine.receive_batch.await_args.args[4] == Decimal("2.5")
        assert result.lines[0].variance_value == Decimal("2.5")

    async def test_no_variance_no_change(self, use_case, mock_engine):
        result = await use_case.execute(
            _request(
                AuditLineRequest(
                    product_id="P1",
                    system_quantity=Decimal("5"),
                    physical_quantity=Decimal("5"),
                    average_cost=Decimal("1"),
                )
            )
        )

        mock_engine.consume.assert_not_awaited()
        mock_engine.receive_batch.assert_not_awaited()
        assert result.lines[0].action == "none"

    async def test_to_response(self, use_case, mock_engine, make_consumption, make_receipt):
        mock_engine.consume.return_value = make_consumption((1, "1", "10"))
        mock_engine.receive_batch.return_value = make_receipt("2", "3")

        result = await use_case.execute(
            _request(
                AuditLineRequest(
                    product_id="P1",
                    system_quantity=Decimal("5"),
                    physical_quantity=Decimal("4"),
                    average_cost=Decimal("10"),
                ),
                AuditLineRequest(
                    product_id="P2",
                    system_quantity=Decimal("1"),
                    physical_quantity=Decimal("3"),
                    average_cost=Decimal("3"),
                ),
            )
        )
        response = use_case.to_response(result)

        assert response.total_variance_value == Decimal("-4")
        assert response.total_shrinkage_value == Decimal("10")
        assert response.lines[0].consumption is not None
        assert response.lines[1].batch_id is not None
