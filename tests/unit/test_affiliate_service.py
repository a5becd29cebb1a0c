"""Unit tests for AffiliateService."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.services.affiliate_service import AffiliateService, calculate_commission


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def affiliate_service(mock_supabase: MagicMock) -> AffiliateService:
    return AffiliateService(supabase_client=mock_supabase)


def _anonymous_clicks_query(mock_supabase: MagicMock) -> MagicMock:
    table = mock_supabase.table.return_value
    return table.select.return_value.is_.return_value.gte.return_value.eq.return_value.order.return_value.execute


class TestCalculateCommission:
    """Tests for calculate_commission."""

    def test_two_percent_of_total(self) -> None:
        assert calculate_commission(Decimal("20.00")) == Decimal("0.4000")

    def test_rounds_to_four_places(self) -> None:
        assert calculate_commission(Decimal("0.01")) == Decimal("0.0002")
        assert calculate_commission(Decimal("33.335")) == Decimal("0.6667")


class TestLinkAnonymousClicks:
    """Tests for link_anonymous_clicks_to_fid."""

    @pytest.mark.asyncio
    async def test_missing_fid(self, affiliate_service: AffiliateService, mock_supabase: MagicMock) -> None:
        """An empty fid is rejected without touching the ledger."""
        result = await affiliate_service.link_anonymous_clicks_to_fid("")

        assert result.success is False
        assert result.error == "Missing visitorFid"
        mock_supabase.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_links_clicks_excluding_self_referrals(
        self, affiliate_service: AffiliateService, mock_supabase: MagicMock
    ) -> None:
        """A visitor's clicks on their own links stay anonymous."""
        _anonymous_clicks_query(mock_supabase).return_value = MagicMock(
            data=[
                {"click_id": "c1", "referrer_fid": "7"},
                {"click_id": "c2", "referrer_fid": "42"},
                {"click_id": "c3", "referrer_fid": 8},
            ]
        )

        result = await affiliate_service.link_anonymous_clicks_to_fid("42")

        assert result.success is True
        assert result.linked_clicks == 2
        update = mock_supabase.table.return_value.update
        assert update.call_args.args[0]["visitor_fid"] == "42"
        update.return_value.in_.assert_called_once_with("click_id", ["c1", "c3"])

    @pytest.mark.asyncio
    async def test_only_self_referrals(self, affiliate_service: AffiliateService, mock_supabase: MagicMock) -> None:
        _anonymous_clicks_query(mock_supabase).return_value = MagicMock(
            data=[{"click_id": "c1", "referrer_fid": "42"}]
        )

        result = await affiliate_service.link_anonymous_clicks_to_fid("42")

        assert result.success is True
        assert result.linked_clicks == 0
        mock_supabase.table.return_value.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_anonymous_clicks(self, affiliate_service: AffiliateService, mock_supabase: MagicMock) -> None:
        _anonymous_clicks_query(mock_supabase).return_value = MagicMock(data=[])

        result = await affiliate_service.link_anonymous_clicks_to_fid("42")

        assert result.success is True
        assert result.message == "No anonymous clicks found to link"

    @pytest.mark.asyncio
    async def test_ledger_error_is_reported(
        self, affiliate_service: AffiliateService, mock_supabase: MagicMock
    ) -> None:
        """Store errors are returned, never raised."""
        _anonymous_clicks_query(mock_supabase).side_effect = Exception("connection reset")

        result = await affiliate_service.link_anonymous_clicks_to_fid("42")

        assert result.success is False
        assert "Database error" in result.error


class TestProcessConversion:
    """Tests for process_conversion."""

    @pytest.mark.asyncio
    async def test_converts_unconverted_click(
        self, affiliate_service: AffiliateService, mock_supabase: MagicMock
    ) -> None:
        """The update is conditional on the click still being unconverted."""
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = MagicMock(
            data=[{"click_id": "c1"}]
        )

        converted = await affiliate_service.process_conversion("c1", "ORD-1", Decimal("20.00"))

        assert converted is True
        data = update.call_args.args[0]
        assert data["converted"] is True
        assert data["commission_amount"] == "0.4000"
        assert data["order_id"] == "ORD-1"
        update.return_value.eq.assert_called_once_with("click_id", "c1")
        update.return_value.eq.return_value.eq.assert_called_once_with("converted", False)

    @pytest.mark.asyncio
    async def test_already_converted_click(
        self, affiliate_service: AffiliateService, mock_supabase: MagicMock
    ) -> None:
        """No matched rows means the commission was already credited."""
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

        converted = await affiliate_service.process_conversion("c1", "ORD-1", Decimal("20.00"))

        assert converted is False


class TestFindAffiliateClick:
    """Tests for find_affiliate_click."""

    @pytest.mark.asyncio
    async def test_returns_latest_open_click(
        self, affiliate_service: AffiliateService, mock_supabase: MagicMock
    ) -> None:
        select = mock_supabase.table.return_value.select.return_value
        chain = select.eq.return_value.eq.return_value.eq.return_value.gte.return_value.order.return_value
        chain.limit.return_value.execute.return_value = MagicMock(data=[{"click_id": "c9"}])

        clicks = await affiliate_service.find_affiliate_click("42", "p1")

        assert clicks == [{"click_id": "c9"}]
        select.eq.assert_called_once_with("visitor_fid", "42")
        chain.limit.assert_called_once_with(1)


class TestAffiliateStats:
    """Tests for get_affiliate_stats."""

    @pytest.mark.asyncio
    async def test_totals(self, affiliate_service: AffiliateService, mock_supabase: MagicMock) -> None:
        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.return_value = MagicMock(
            data=[
                {"click_id": "c1", "converted": True, "commission_amount": "0.4000",
                 "commission_earned_at": "2026-01-02T00:00:00+00:00"},
                {"click_id": "c2", "converted": True, "commission_amount": "0.2000",
                 "commission_earned_at": "2026-01-05T00:00:00+00:00"},
                {"click_id": "c3", "converted": False, "commission_amount": None,
                 "commission_earned_at": None},
            ]
        )

        stats = await affiliate_service.get_affiliate_stats("7")

        assert stats["referrer_fid"] == "7"
        assert stats["total_clicks"] == 3
        assert stats["conversions"] == 2
        assert stats["total_earned"] == pytest.approx(0.6)
        assert stats["avg_commission"] == pytest.approx(0.3)
        assert stats["last_earning_date"] == "2026-01-05T00:00:00+00:00"
