"""Product categorization routes."""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.api.deps import AdminKey, Categorizer, PatternCache
from src.api.middleware.error_handler import failure_response
from src.models.product import StorePattern
from src.schemas.common import FailureResponse
from src.schemas.product import (
    CategorizeRequest,
    CategorizeResponse,
    CategorizeResult,
    CategorizeSummary,
    Confidence,
    ProductRef,
    StoreInfo,
    StorePatternsResponse,
    StorePatternSummary,
)
from src.services.product_source import ProductSourceError
from src.services.store_assignment import StorePatternCache, get_store_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

HIGH_CONFIDENCE_SCORE = 25
MEDIUM_CONFIDENCE_SCORE = 15
TOP_KEYWORDS = 10


def confidence_for(score: float, store_id: str | None, min_score: float) -> Confidence:
    """Map a categorization score to a confidence label."""
    if not store_id or score < min_score:
        return "none"
    if score >= HIGH_CONFIDENCE_SCORE:
        return "high"
    if score >= MEDIUM_CONFIDENCE_SCORE:
        return "medium"
    return "low"


def _summarize_pattern(pattern: StorePattern) -> StorePatternSummary:
    learned = pattern.pattern
    return StorePatternSummary(
        store_id=pattern.store_id,
        store_name=pattern.store_name,
        category=pattern.category,
        keyword_count=len(learned.keywords),
        product_types=learned.product_types,
        vendors=learned.vendors,
        top_keywords=learned.keywords[:TOP_KEYWORDS],
        sample_titles=learned.sample_titles,
    )


async def _load_patterns(cache: StorePatternCache) -> list[StorePattern]:
    if cache.is_initialized:
        return cache.patterns
    return await cache.initialize()


@router.post(
    "/categorize",
    response_model=CategorizeResponse,
    responses={500: {"model": FailureResponse, "description": "Store patterns unavailable"}},
    summary="Assign products to store buckets",
)
async def categorize_products(
    data: CategorizeRequest,
    cache: PatternCache,
    categorizer: Categorizer,
) -> CategorizeResponse | JSONResponse:
    """Score each product against the learned store patterns.

    Products that score below the threshold for every store are left
    unassigned.
    """
    try:
        patterns = await _load_patterns(cache)
    except ProductSourceError as e:
        logger.error("Store patterns unavailable: %s", str(e))
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load store patterns")

    results: list[CategorizeResult] = []
    by_store: dict[str, int] = {}

    for item in data.products:
        product = item.to_marketplace_product()
        store_id, score = categorizer.best_match(product, patterns)
        info = get_store_info(store_id)
        results.append(
            CategorizeResult(
                product=ProductRef(id=item.id, title=item.title),
                store_id=store_id,
                store_info=StoreInfo(**info) if info else None,
                score=score,
                confidence=confidence_for(score, store_id, categorizer.min_score),
            )
        )
        if store_id:
            by_store[store_id] = by_store.get(store_id, 0) + 1

    categorized = sum(by_store.values())
    return CategorizeResponse(
        results=results,
        summary=CategorizeSummary(
            categorized=categorized,
            unassigned=len(results) - categorized,
            by_store=by_store,
        ),
    )


@router.get(
    "/categorize",
    response_model=StorePatternsResponse,
    responses={500: {"model": FailureResponse, "description": "Store patterns unavailable"}},
    summary="Learned store patterns",
)
async def get_store_patterns(cache: PatternCache) -> StorePatternsResponse | JSONResponse:
    """Return an overview of what each store bucket has learned."""
    try:
        patterns = await _load_patterns(cache)
    except ProductSourceError as e:
        logger.error("Store patterns unavailable: %s", str(e))
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load store patterns")

    return StorePatternsResponse(store_patterns=[_summarize_pattern(p) for p in patterns])


@router.post(
    "/categorize/refresh",
    response_model=StorePatternsResponse,
    responses={
        401: {"model": FailureResponse, "description": "Admin key required"},
        403: {"model": FailureResponse, "description": "Invalid admin key"},
        500: {"model": FailureResponse, "description": "Catalog could not be read"},
    },
    summary="Rebuild store patterns",
)
async def refresh_store_patterns(_: AdminKey, cache: PatternCache) -> StorePatternsResponse | JSONResponse:
    """Re-read the catalog and rebuild every store pattern."""
    try:
        patterns = await cache.refresh()
    except ProductSourceError as e:
        logger.error("Store pattern refresh failed: %s", str(e))
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to refresh store patterns")

    return StorePatternsResponse(
        store_patterns=[_summarize_pattern(p) for p in patterns],
        message="Store patterns refreshed successfully",
    )
