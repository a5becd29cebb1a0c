"""Unit tests for OrderService."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from src.services.order_service import OrderService, OrderUpdateError


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def order_service(mock_supabase: MagicMock) -> OrderService:
    return OrderService(supabase_client=mock_supabase)


def _conditional_update(mock_supabase: MagicMock) -> MagicMock:
    return mock_supabase.table.return_value.update.return_value.eq.return_value.neq.return_value


class TestFindByReference:
    """Tests for find_by_reference."""

    @pytest.mark.asyncio
    async def test_returns_order(
        self, order_service: OrderService, mock_supabase: MagicMock, sample_order: dict[str, Any]
    ) -> None:
        chain = mock_supabase.table.return_value.select.return_value.eq.return_value
        chain.maybe_single.return_value.execute.return_value = MagicMock(data=sample_order)

        order = await order_service.find_by_reference("ORD-1001")

        assert order == sample_order
        mock_supabase.table.assert_called_with("orders")
        mock_supabase.table.return_value.select.return_value.eq.assert_called_once_with(
            "order_reference", "ORD-1001"
        )

    @pytest.mark.asyncio
    async def test_returns_none_when_missing(self, order_service: OrderService, mock_supabase: MagicMock) -> None:
        chain = mock_supabase.table.return_value.select.return_value.eq.return_value
        chain.maybe_single.return_value.execute.return_value = None

        assert await order_service.find_by_reference("ORD-404") is None


class TestMarkPaymentConfirmed:
    """Tests for mark_payment_confirmed."""

    @pytest.mark.asyncio
    async def test_transitions_unconfirmed_order(
        self, order_service: OrderService, mock_supabase: MagicMock
    ) -> None:
        """Only non-confirmed rows are updated."""
        _conditional_update(mock_supabase).execute.return_value = MagicMock(
            data=[{"order_reference": "ORD-1001", "payment_status": "confirmed"}]
        )

        row = await order_service.mark_payment_confirmed("ORD-1001", "0xhash", "2026-01-02T00:00:00+00:00")

        assert row["payment_status"] == "confirmed"
        data = mock_supabase.table.return_value.update.call_args.args[0]
        assert data["payment_status"] == "confirmed"
        assert data["order_status"] == "confirmed"
        assert data["payment_hash"] == "0xhash"
        assert data["payment_completed_at"] == "2026-01-02T00:00:00+00:00"
        mock_supabase.table.return_value.update.return_value.eq.return_value.neq.assert_called_once_with(
            "payment_status", "confirmed"
        )

    @pytest.mark.asyncio
    async def test_already_confirmed_returns_none(
        self, order_service: OrderService, mock_supabase: MagicMock
    ) -> None:
        _conditional_update(mock_supabase).execute.return_value = MagicMock(data=[])

        assert await order_service.mark_payment_confirmed("ORD-1001", "0xhash") is None

    @pytest.mark.asyncio
    async def test_store_error_raises_update_error(
        self, order_service: OrderService, mock_supabase: MagicMock
    ) -> None:
        _conditional_update(mock_supabase).execute.side_effect = Exception("permission denied")

        with pytest.raises(OrderUpdateError) as exc_info:
            await order_service.mark_payment_confirmed("ORD-1001", "0xhash")

        assert exc_info.value.message == "Failed to update order"
        assert exc_info.value.status_code == 500
