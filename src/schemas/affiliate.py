"""Affiliate click linking and lookup schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LinkFidRequest(BaseModel):
    """Body of POST /affiliate/link-fid."""

    model_config = ConfigDict(populate_by_name=True)

    visitor_fid: str | None = Field(default=None, alias="visitorFid", description="Visitor's social identity")


class LinkFidResponse(BaseModel):
    """Result of linking anonymous clicks to a visitor."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    linked_clicks: int | None = Field(default=None, alias="linkedClicks")
    message: str | None = None
    error: str | None = None


class AffiliateStats(BaseModel):
    """Click and earnings totals for a referrer."""

    referrer_fid: str
    total_clicks: int
    conversions: int
    total_earned: float
    avg_commission: float
    last_earning_date: str | None = None


class AffiliateStatsResponse(BaseModel):
    """Response of GET /affiliate/link-fid."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    affiliate_stats: AffiliateStats = Field(alias="affiliateStats")


class AffiliateClickCheckResponse(BaseModel):
    """Response of GET /affiliate/track-click."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    has_affiliate_click: bool = Field(alias="hasAffiliateClick")
    affiliate_data: dict[str, Any] | None = Field(default=None, alias="affiliateData")
