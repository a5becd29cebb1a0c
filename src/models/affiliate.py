"""Affiliate click model type definitions for database operations."""

from typing import TypedDict


class AffiliateClick(TypedDict):
    """Affiliate click table row representation.

    A converted click always carries commission_amount,
    commission_earned_at and order_id.
    """

    click_id: str
    referrer_fid: str
    visitor_fid: str | None
    product_id: str
    clicked_at: str
    last_clicked_at: str | None
    expires_at: str | None
    converted: bool
    commission_amount: str | None
    commission_earned_at: str | None
    order_id: str | None
    updated_at: str | None


class AffiliateConversionUpdate(TypedDict):
    """Data written when a click converts into a commission."""

    converted: bool
    commission_amount: str
    commission_earned_at: str
    order_id: str
    updated_at: str
