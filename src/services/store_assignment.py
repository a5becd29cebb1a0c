"""Assigns products to store buckets by scoring them against store patterns."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Protocol

from src.models.product import MarketplaceProduct, StorePattern
from src.services.product_analysis import STORE_MAPPINGS, analyze_existing_products
from src.services.product_source import ProductSource

logger = logging.getLogger(__name__)

DEFAULT_MIN_SCORE = 5
UNASSIGNED = "unassigned"


def fuzzy_match(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


class ScoringStrategy(Protocol):
    """Scores how well a product fits a store pattern."""

    def score(self, product: MarketplaceProduct, pattern: StorePattern) -> float: ...


class KeywordScoringStrategy:
    """Weighted type, vendor, tag and keyword matching."""

    def __init__(
        self,
        type_weight: float = 15,
        vendor_weight: float = 10,
        tag_weight: float = 8,
        keyword_weight: float = 1,
    ) -> None:
        self.type_weight = type_weight
        self.vendor_weight = vendor_weight
        self.tag_weight = tag_weight
        self.keyword_weight = keyword_weight

    def score(self, product: MarketplaceProduct, pattern: StorePattern) -> float:
        learned = pattern.pattern
        score = 0.0

        if any(fuzzy_match(product.product_type, t) for t in learned.product_types):
            score += self.type_weight

        if any(fuzzy_match(product.vendor, v) for v in learned.vendors):
            score += self.vendor_weight

        for tag in product.tags:
            if any(fuzzy_match(tag, t) for t in learned.tags):
                score += self.tag_weight

        text = product.search_text
        score += self.keyword_weight * sum(1 for keyword in learned.keywords if keyword in text)

        return score


class StoreCategorizer:
    """Picks the best-scoring store for a product, or none below the threshold."""

    def __init__(
        self,
        strategy: ScoringStrategy | None = None,
        min_score: float = DEFAULT_MIN_SCORE,
    ) -> None:
        self.strategy = strategy or KeywordScoringStrategy()
        self.min_score = min_score

    def best_match(
        self,
        product: MarketplaceProduct,
        patterns: list[StorePattern],
    ) -> tuple[str | None, float]:
        """Return the winning store id and its score.

        Ties keep the first pattern that reached the top score.
        """
        best_store: str | None = None
        best_score = 0.0

        for pattern in patterns:
            score = self.strategy.score(product, pattern)
            if best_store is None or score > best_score:
                best_store, best_score = pattern.store_id, score

        if best_store is None or best_score < self.min_score:
            return None, best_score

        return best_store, best_score

    def categorize(self, product: MarketplaceProduct, patterns: list[StorePattern]) -> str | None:
        """Assign a product to a store id, or None if no store scores high enough."""
        store_id, score = self.best_match(product, patterns)
        if store_id:
            logger.debug("Product %r assigned to %s (score %.1f)", product.title, store_id, score)
        else:
            logger.debug("Product %r left unassigned (best score %.1f)", product.title, score)
        return store_id


class StorePatternCache:
    """Holds the store patterns learned from the catalog.

    Patterns are built on initialize() and only rebuilt on an explicit
    refresh(), so callers control when the catalog is re-read.
    """

    def __init__(self, product_source: ProductSource) -> None:
        self.product_source = product_source
        self._patterns: list[StorePattern] | None = None
        self._lock = asyncio.Lock()
        self.last_refreshed_at: datetime | None = None

    @property
    def is_initialized(self) -> bool:
        return self._patterns is not None

    @property
    def patterns(self) -> list[StorePattern]:
        """Current patterns; empty until initialized."""
        return list(self._patterns or [])

    async def _build(self) -> list[StorePattern]:
        products = await self.product_source.get_all_products()
        patterns = analyze_existing_products(products)
        self._patterns = patterns
        self.last_refreshed_at = datetime.now(timezone.utc)
        logger.info("Store patterns built for %d stores from %d products", len(patterns), len(products))
        return patterns

    async def initialize(self) -> list[StorePattern]:
        """Build patterns if they have not been built yet."""
        async with self._lock:
            if self._patterns is not None:
                return list(self._patterns)
            return list(await self._build())

    async def refresh(self) -> list[StorePattern]:
        """Rebuild patterns from the current catalog."""
        async with self._lock:
            return list(await self._build())


def get_store_info(store_id: str | None) -> dict[str, str] | None:
    """Display name and category for a store id."""
    if not store_id:
        return None
    return STORE_MAPPINGS.get(store_id)


def group_products_by_store(
    products: list[MarketplaceProduct],
    patterns: list[StorePattern],
    categorizer: StoreCategorizer | None = None,
) -> dict[str, list[MarketplaceProduct]]:
    """Bucket products by assigned store, with an 'unassigned' bucket."""
    categorizer = categorizer or StoreCategorizer()
    grouped: dict[str, list[MarketplaceProduct]] = {store_id: [] for store_id in STORE_MAPPINGS}
    grouped[UNASSIGNED] = []

    for product in products:
        store_id = categorizer.categorize(product, patterns)
        grouped.setdefault(store_id or UNASSIGNED, []).append(product)

    return grouped
