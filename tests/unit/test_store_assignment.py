"""Unit tests for product analysis and store assignment."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.product import MarketplaceProduct, ProductPattern, StorePattern
from src.services.product_analysis import (
    MAX_SAMPLE_TITLES,
    analyze_existing_products,
    categorize_existing_products,
    extract_product_pattern,
)
from src.services.product_source import StaticProductSource, transform_shopify_product
from src.services.store_assignment import (
    UNASSIGNED,
    KeywordScoringStrategy,
    StoreCategorizer,
    StorePatternCache,
    fuzzy_match,
    get_store_info,
    group_products_by_store,
)


def _pattern(store_id: str, **learned) -> StorePattern:
    return StorePattern(
        store_id=store_id,
        store_name=store_id,
        category=store_id,
        pattern=ProductPattern(**learned),
    )


@pytest.fixture
def catalog() -> list[MarketplaceProduct]:
    return [
        MarketplaceProduct(id=1, title="Bluetooth Speaker", product_type="Electronics", vendor="SoundCo",
                           tags=["audio"]),
        MarketplaceProduct(id=2, title="Ceramic Planter", description="Indoor plant pot",
                           product_type="Garden", vendor="GreenCo"),
        MarketplaceProduct(id=3, title="Dog Collar", product_type="Pet Supplies", vendor="PawCo",
                           tags=["dog"]),
        MarketplaceProduct(id=4, title="Face Serum", description="Vitamin C skin care",
                           product_type="Skincare", vendor="GlowCo"),
        MarketplaceProduct(id=5, title="Yoga Mat", description="Fitness workout mat",
                           product_type="Sports", vendor="FlexCo"),
        MarketplaceProduct(id=6, title="Mystery Box", product_type="Misc"),
    ]


class TestFuzzyMatch:
    def test_substring_either_direction(self) -> None:
        assert fuzzy_match("Electronics", "electronics accessories")
        assert fuzzy_match("Home & Garden", "garden")

    def test_empty_never_matches(self) -> None:
        assert not fuzzy_match("", "electronics")
        assert not fuzzy_match("electronics", "  ")


class TestAnalyzeExistingProducts:
    """Tests for analyze_existing_products."""

    def test_buckets_catalog_by_seed_keywords(self, catalog: list[MarketplaceProduct]) -> None:
        buckets = categorize_existing_products(catalog)

        assert [p.id for p in buckets["techwave-electronics"]] == [1, 6]
        assert [p.id for p in buckets["green-oasis-home"]] == [2]
        assert [p.id for p in buckets["pawsome-pets"]] == [3]
        assert [p.id for p in buckets["radiant-beauty"]] == [4]
        assert [p.id for p in buckets["apex-athletics"]] == [5]

    def test_returns_pattern_per_store_in_display_order(self, catalog: list[MarketplaceProduct]) -> None:
        patterns = analyze_existing_products(catalog)

        assert [p.store_id for p in patterns] == [
            "techwave-electronics",
            "green-oasis-home",
            "pawsome-pets",
            "radiant-beauty",
            "apex-athletics",
        ]
        electronics = patterns[0]
        assert electronics.store_name == "TechWave Electronics"
        assert electronics.pattern.product_types == ["Electronics", "Misc"]
        assert electronics.pattern.vendors == ["SoundCo"]

    def test_empty_catalog_gives_empty_patterns(self) -> None:
        patterns = analyze_existing_products([])

        assert len(patterns) == 5
        assert all(not p.pattern.keywords for p in patterns)

    def test_extract_pattern_filters_short_and_common_words(self) -> None:
        pattern = extract_product_pattern([
            MarketplaceProduct(id=1, title="The USB Hub", description="Use it for all your ports"),
        ])

        assert pattern.keywords == ["usb", "hub", "ports"]

    def test_extract_pattern_keeps_first_sample_titles(self) -> None:
        products = [MarketplaceProduct(id=i, title=f"Item {i}") for i in range(8)]

        pattern = extract_product_pattern(products)

        assert pattern.sample_titles == [f"Item {i}" for i in range(MAX_SAMPLE_TITLES)]


class TestKeywordScoringStrategy:
    """Tests for the default scoring weights."""

    def test_type_vendor_tag_and_keywords(self) -> None:
        pattern = _pattern(
            "techwave-electronics",
            keywords=["wireless", "mouse", "keyboard"],
            product_types=["Electronics"],
            vendors=["Logi"],
            tags=["tech", "computer"],
        )
        product = MarketplaceProduct(
            id=1, title="Wireless Mouse", product_type="Electronics", vendor="Logitech", tags=["tech", "sale"]
        )

        # type 15 + vendor 10 + one tag 8 + two keywords
        assert KeywordScoringStrategy().score(product, pattern) == 35

    def test_weights_are_configurable(self) -> None:
        pattern = _pattern("s", product_types=["Electronics"])
        product = MarketplaceProduct(id=1, title="x", product_type="electronics")

        assert KeywordScoringStrategy(type_weight=3).score(product, pattern) == 3


class TestStoreCategorizer:
    """Tests for StoreCategorizer."""

    def test_assigns_matching_product_type(self) -> None:
        patterns = [
            _pattern("green-oasis-home", product_types=["Garden"]),
            _pattern("techwave-electronics", product_types=["Electronics"]),
        ]
        product = MarketplaceProduct(id=1, title="Wireless Mouse", product_type="Electronics", tags=["tech"])

        store_id, score = StoreCategorizer().best_match(product, patterns)

        assert store_id == "techwave-electronics"
        assert score >= 15

    def test_below_threshold_is_unassigned(self) -> None:
        patterns = [_pattern("techwave-electronics", keywords=["mouse"])]
        product = MarketplaceProduct(id=1, title="Wireless Mouse")

        assert StoreCategorizer().categorize(product, patterns) is None

    def test_ties_keep_first_pattern(self) -> None:
        patterns = [
            _pattern("pawsome-pets", product_types=["Toys"]),
            _pattern("apex-athletics", product_types=["Toys"]),
        ]
        product = MarketplaceProduct(id=1, title="Ball", product_type="Toys")

        assert StoreCategorizer().categorize(product, patterns) == "pawsome-pets"

    def test_custom_strategy(self) -> None:
        strategy = MagicMock()
        strategy.score.side_effect = [1, 9]
        patterns = [_pattern("a"), _pattern("b")]

        categorizer = StoreCategorizer(strategy=strategy, min_score=5)

        assert categorizer.categorize(MarketplaceProduct(id=1, title="x"), patterns) == "b"

    def test_deterministic(self, catalog: list[MarketplaceProduct]) -> None:
        patterns = analyze_existing_products(catalog)
        categorizer = StoreCategorizer()
        product = MarketplaceProduct(id=9, title="Dog Bowl", product_type="Pet Supplies", tags=["dog"])

        assert {categorizer.categorize(product, patterns) for _ in range(5)} == {"pawsome-pets"}


class TestGrouping:
    def test_group_products_by_store(self, catalog: list[MarketplaceProduct]) -> None:
        patterns = analyze_existing_products(catalog)
        products = [
            MarketplaceProduct(id=10, title="Cat Toy", product_type="Pet Supplies", vendor="PawCo"),
            MarketplaceProduct(id=11, title="Unknown"),
        ]

        grouped = group_products_by_store(products, patterns)

        assert [p.id for p in grouped["pawsome-pets"]] == [10]
        assert [p.id for p in grouped[UNASSIGNED]] == [11]

    def test_get_store_info(self) -> None:
        assert get_store_info("apex-athletics") == {"name": "Apex Athletics", "category": "Sports & Outdoors"}
        assert get_store_info(None) is None
        assert get_store_info("nope") is None


class TestStorePatternCache:
    """Tests for StorePatternCache."""

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, catalog: list[MarketplaceProduct]) -> None:
        source = StaticProductSource(catalog)
        source.get_all_products = AsyncMock(wraps=source.get_all_products)
        cache = StorePatternCache(source)

        assert cache.is_initialized is False
        first = await cache.initialize()
        second = await cache.initialize()

        assert cache.is_initialized is True
        assert [p.store_id for p in first] == [p.store_id for p in second]
        source.get_all_products.assert_awaited_once()
        assert cache.last_refreshed_at is not None

    @pytest.mark.asyncio
    async def test_refresh_rebuilds(self, catalog: list[MarketplaceProduct]) -> None:
        source = StaticProductSource(catalog[:1])
        cache = StorePatternCache(source)
        await cache.initialize()
        assert cache.patterns[2].pattern.sample_titles == []

        source.products = catalog
        patterns = await cache.refresh()

        assert patterns[2].pattern.sample_titles == ["Dog Collar"]


class TestTransformShopifyProduct:
    def test_maps_admin_api_product(self) -> None:
        product = transform_shopify_product({
            "id": 123,
            "title": "Smart Watch",
            "body_html": "<p>Tracks steps</p>",
            "product_type": "Electronics",
            "vendor": "TickCo",
            "tags": "wearable, fitness",
            "handle": "smart-watch",
            "variants": [{"price": "99.00"}],
            "images": [{"src": "https://cdn.example.com/watch.png"}],
        })

        assert product.id == 123
        assert product.tags == ["wearable", "fitness"]
        assert product.price == "99.00"
        assert product.product_type == "Electronics"
