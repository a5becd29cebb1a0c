"""Affiliate click ledger operations."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from supabase import Client

from src.core.supabase import get_supabase_client
from src.models.affiliate import AffiliateClick, AffiliateConversionUpdate

logger = logging.getLogger(__name__)

# Referrers earn 2% of the line item total
COMMISSION_RATE = Decimal("0.02")
COMMISSION_PRECISION = Decimal("0.0001")


def calculate_commission(order_total: Decimal) -> Decimal:
    """Commission owed on a line item total."""
    return (order_total * COMMISSION_RATE).quantize(COMMISSION_PRECISION, rounding=ROUND_HALF_UP)


@dataclass
class LinkClicksResult:
    """Outcome of linking anonymous clicks to a visitor fid."""

    success: bool
    linked_clicks: int = 0
    message: str | None = None
    error: str | None = None


class AffiliateService:
    """Service for reading and converting affiliate clicks."""

    def __init__(self, supabase_client: Client | None = None) -> None:
        """Initialize affiliate service.

        Args:
            supabase_client: Optional Supabase client for testing.
        """
        self._supabase_client = supabase_client

    @property
    def supabase(self) -> Client:
        """Get Supabase client."""
        if self._supabase_client is None:
            self._supabase_client = get_supabase_client()
        return self._supabase_client

    async def link_anonymous_clicks_to_fid(self, visitor_fid: str) -> LinkClicksResult:
        """Attach unexpired anonymous clicks to a newly identified visitor.

        Self-referrals (clicks on the visitor's own share links) are left
        anonymous so they can never convert.

        Args:
            visitor_fid: The visitor's social identity.

        Returns:
            LinkClicksResult: Number of clicks linked, or the failure cause.
        """
        if not visitor_fid:
            return LinkClicksResult(success=False, error="Missing visitorFid")

        now = datetime.now(timezone.utc).isoformat()

        try:
            response = (
                self.supabase.table("affiliate_clicks")
                .select("click_id, referrer_fid, product_id, clicked_at")
                .is_("visitor_fid", "null")
                .gte("expires_at", now)
                .eq("converted", False)
                .order("clicked_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("Failed to fetch anonymous clicks for fid %s: %s", visitor_fid, str(e))
            return LinkClicksResult(success=False, error="Database error while fetching anonymous clicks")

        anonymous_clicks = response.data or []
        if not anonymous_clicks:
            return LinkClicksResult(success=True, message="No anonymous clicks found to link")

        click_ids = [
            click["click_id"]
            for click in anonymous_clicks
            if str(click.get("referrer_fid")) != str(visitor_fid)
        ]

        excluded = len(anonymous_clicks) - len(click_ids)
        if excluded:
            logger.debug("Excluded %d self-referral clicks for fid %s", excluded, visitor_fid)

        if not click_ids:
            return LinkClicksResult(
                success=True,
                message="No valid clicks found to link (self-referrals excluded)",
            )

        try:
            (
                self.supabase.table("affiliate_clicks")
                .update({"visitor_fid": visitor_fid, "updated_at": now})
                .in_("click_id", click_ids)
                .execute()
            )
        except Exception as e:
            logger.error("Failed to link clicks to fid %s: %s", visitor_fid, str(e))
            return LinkClicksResult(success=False, error="Failed to link clicks to FID")

        logger.info("Linked %d anonymous clicks to fid %s", len(click_ids), visitor_fid)
        return LinkClicksResult(
            success=True,
            linked_clicks=len(click_ids),
            message=f"Successfully linked {len(click_ids)} clicks to FID {visitor_fid}",
        )

    async def find_affiliate_click(self, visitor_fid: str, product_id: str) -> list[AffiliateClick]:
        """Find the open affiliate click for a visitor and product.

        Args:
            visitor_fid: The buyer's social identity.
            product_id: The purchased product's id.

        Returns:
            list[AffiliateClick]: Unconverted, unexpired clicks, most recent first.
        """
        now = datetime.now(timezone.utc).isoformat()
        response = (
            self.supabase.table("affiliate_clicks")
            .select("*")
            .eq("visitor_fid", str(visitor_fid))
            .eq("product_id", str(product_id))
            .eq("converted", False)
            .gte("expires_at", now)
            .order("last_clicked_at", desc=True)
            .limit(1)
            .execute()
        )

        return response.data or []

    async def process_conversion(
        self,
        click_id: str,
        order_reference: str,
        order_total: Decimal,
    ) -> bool:
        """Convert a click into a commission credit.

        Only unconverted clicks match the update, so replaying the same
        conversion never credits commission twice.

        Args:
            click_id: The click to convert.
            order_reference: The order that produced the conversion.
            order_total: Line item total the commission is based on.

        Returns:
            bool: True if the click converted, False if it was already converted.
        """
        now = datetime.now(timezone.utc).isoformat()
        commission = calculate_commission(order_total)
        update_data: AffiliateConversionUpdate = {
            "converted": True,
            "commission_amount": str(commission),
            "commission_earned_at": now,
            "order_id": order_reference,
            "updated_at": now,
        }

        response = (
            self.supabase.table("affiliate_clicks")
            .update(update_data)
            .eq("click_id", click_id)
            .eq("converted", False)
            .execute()
        )

        if not response.data:
            logger.info("Click %s already converted, skipping", click_id)
            return False

        logger.info(
            "Click %s converted for order %s: commission %s on %s",
            click_id,
            order_reference,
            commission,
            order_total,
        )
        return True

    async def get_affiliate_stats(self, referrer_fid: str) -> dict[str, Any]:
        """Summarize clicks and earnings for a referrer.

        Args:
            referrer_fid: The referrer's social identity.

        Returns:
            dict: Totals for clicks, conversions and commission earned.
        """
        response = (
            self.supabase.table("affiliate_clicks")
            .select("click_id, converted, commission_amount, commission_earned_at")
            .eq("referrer_fid", str(referrer_fid))
            .execute()
        )

        clicks = response.data or []
        conversions = [click for click in clicks if click.get("converted")]
        earnings = [Decimal(str(click.get("commission_amount") or 0)) for click in conversions]
        total_earned = sum(earnings, Decimal("0"))
        earned_dates = [click["commission_earned_at"] for click in conversions if click.get("commission_earned_at")]

        return {
            "referrer_fid": str(referrer_fid),
            "total_clicks": len(clicks),
            "conversions": len(conversions),
            "total_earned": float(total_earned),
            "avg_commission": float(total_earned / len(conversions)) if conversions else 0.0,
            "last_earning_date": max(earned_dates) if earned_dates else None,
        }
