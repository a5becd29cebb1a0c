"""Affiliate click linking and lookup routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from src.api.deps import Affiliates
from src.api.middleware.error_handler import failure_response
from src.schemas.affiliate import (
    AffiliateClickCheckResponse,
    AffiliateStats,
    AffiliateStatsResponse,
    LinkFidRequest,
    LinkFidResponse,
)
from src.schemas.common import FailureResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/affiliate", tags=["affiliate"])


@router.post(
    "/link-fid",
    response_model=LinkFidResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": FailureResponse, "description": "Missing visitorFid"},
        500: {"model": FailureResponse, "description": "Click ledger error"},
    },
    summary="Link anonymous clicks to a visitor",
)
async def link_fid(data: LinkFidRequest, service: Affiliates) -> LinkFidResponse | JSONResponse:
    """Attach a visitor's anonymous affiliate clicks to their fid.

    Called by the storefront once a visitor signs in, so clicks made
    before sign-in can still earn commission.
    """
    result = await service.link_anonymous_clicks_to_fid(data.visitor_fid or "")

    if not result.success:
        error = result.error or "Failed to link clicks"
        status_code = (
            status.HTTP_400_BAD_REQUEST if "Missing" in error else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        return failure_response(status_code, error)

    return LinkFidResponse(success=True, linked_clicks=result.linked_clicks, message=result.message)


@router.get(
    "/link-fid",
    response_model=AffiliateStatsResponse,
    responses={
        400: {"model": FailureResponse, "description": "Missing fid"},
        500: {"model": FailureResponse, "description": "Click ledger error"},
    },
    summary="Affiliate earnings for a referrer",
)
async def affiliate_stats(
    service: Affiliates,
    fid: Annotated[str | None, Query(description="Referrer fid")] = None,
) -> AffiliateStatsResponse | JSONResponse:
    """Return click and commission totals for a referrer."""
    if not fid:
        return failure_response(status.HTTP_400_BAD_REQUEST, "Missing fid parameter")

    try:
        stats = await service.get_affiliate_stats(fid)
    except Exception as e:
        logger.error("Failed to load affiliate stats for fid %s: %s", fid, str(e))
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch affiliate stats")

    return AffiliateStatsResponse(affiliate_stats=AffiliateStats(**stats))


@router.get(
    "/track-click",
    response_model=AffiliateClickCheckResponse,
    responses={
        400: {"model": FailureResponse, "description": "Missing visitorFid or productId"},
        500: {"model": FailureResponse, "description": "Click ledger error"},
    },
    summary="Check for an open affiliate click",
)
async def track_click(
    service: Affiliates,
    visitor_fid: Annotated[str | None, Query(alias="visitorFid", description="Visitor fid")] = None,
    product_id: Annotated[str | None, Query(alias="productId", description="Product id")] = None,
) -> AffiliateClickCheckResponse | JSONResponse:
    """Report whether a visitor has an open affiliate click for a product."""
    if not visitor_fid or not product_id:
        return failure_response(status.HTTP_400_BAD_REQUEST, "Missing visitorFid or productId")

    try:
        clicks = await service.find_affiliate_click(visitor_fid, product_id)
    except Exception as e:
        logger.error("Failed to check affiliate click for fid %s: %s", visitor_fid, str(e))
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to check affiliate click")

    return AffiliateClickCheckResponse(
        has_affiliate_click=bool(clicks),
        affiliate_data=clicks[0] if clicks else None,
    )
