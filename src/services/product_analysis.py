"""Builds per-store product patterns from the existing catalog."""

import logging
import re

from src.models.product import MarketplaceProduct, ProductPattern, StorePattern

logger = logging.getLogger(__name__)

MAX_PATTERN_KEYWORDS = 50
MAX_SAMPLE_TITLES = 5

# Store buckets in display order
STORE_MAPPINGS: dict[str, dict[str, str]] = {
    "techwave-electronics": {"name": "TechWave Electronics", "category": "Electronics"},
    "green-oasis-home": {"name": "Green Oasis Home & Garden", "category": "Home & Garden"},
    "pawsome-pets": {"name": "Pawsome Pet Paradise", "category": "Pet Products"},
    "radiant-beauty": {"name": "Radiant Beauty Co.", "category": "Health & Beauty"},
    "apex-athletics": {"name": "Apex Athletics", "category": "Sports & Outdoors"},
}

DEFAULT_STORE_ID = "techwave-electronics"

# Seed keywords used to bucket the existing catalog, checked in order
STORE_SEED_KEYWORDS: list[tuple[str, list[str]]] = [
    ("techwave-electronics", [
        "phone", "laptop", "computer", "electronic", "tech", "gadget", "smart", "device",
        "camera", "headphone", "speaker", "gaming", "console", "wireless", "bluetooth",
    ]),
    ("green-oasis-home", [
        "home", "garden", "furniture", "decor", "kitchen", "bathroom", "bedroom", "living",
        "outdoor", "plant", "lighting", "chair", "table", "bed", "storage",
    ]),
    ("pawsome-pets", [
        "pet", "dog", "cat", "animal", "puppy", "kitten", "toy", "treat", "food", "bowl",
        "collar", "leash", "grooming", "cage", "aquarium", "fish", "bird",
    ]),
    ("radiant-beauty", [
        "beauty", "skin", "cosmetic", "makeup", "cream", "lotion", "health", "wellness",
        "vitamin", "supplement", "hair", "shampoo", "nail", "fragrance", "perfume",
    ]),
    ("apex-athletics", [
        "sport", "fitness", "gym", "exercise", "workout", "athletic", "running", "cycling",
        "outdoor", "camping", "hiking", "equipment", "apparel", "shoes", "clothing",
    ]),
]

# Product type fragments used when no seed keyword matches
STORE_TYPE_FALLBACKS: list[tuple[str, list[str]]] = [
    ("techwave-electronics", ["electronics", "computers", "phones", "accessories"]),
    ("green-oasis-home", ["home", "furniture", "garden", "kitchen", "decor"]),
    ("pawsome-pets", ["pet", "animal", "dog", "cat"]),
    ("radiant-beauty", ["beauty", "cosmetics", "health", "personal care"]),
    ("apex-athletics", ["sports", "fitness", "outdoor", "athletic", "apparel"]),
]

COMMON_WORDS = frozenset({
    "the", "and", "for", "with", "that", "this", "are", "you", "your", "not", "can", "will",
    "all", "any", "may", "our", "out", "day", "get", "use", "man", "new", "now", "way",
    "come", "work", "life", "time", "very", "when", "much", "like", "good", "just", "well",
    "more", "also", "back", "only", "know", "make", "take", "see", "him", "her", "his",
    "she", "has", "had",
})

WORD_PATTERN = re.compile(r"\b\w{3,}\b")


def _contains_keywords(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def categorize_by_fallback(product: MarketplaceProduct) -> str | None:
    """Pick a store from the product type alone."""
    product_type = product.product_type.lower()
    for store_id, fragments in STORE_TYPE_FALLBACKS:
        if any(fragment in product_type for fragment in fragments):
            return store_id
    return None


def categorize_existing_products(
    products: list[MarketplaceProduct],
) -> dict[str, list[MarketplaceProduct]]:
    """Bucket the current catalog into stores by seed keywords.

    Products matching no seed keyword fall back to their product type,
    and finally to the electronics store.
    """
    categorized: dict[str, list[MarketplaceProduct]] = {store_id: [] for store_id in STORE_MAPPINGS}

    for product in products:
        text = product.search_text
        store_id = next(
            (sid for sid, keywords in STORE_SEED_KEYWORDS if _contains_keywords(text, keywords)),
            None,
        )
        if store_id is None:
            store_id = categorize_by_fallback(product) or DEFAULT_STORE_ID
        categorized[store_id].append(product)

    return categorized


def extract_product_pattern(products: list[MarketplaceProduct]) -> ProductPattern:
    """Collect the keywords, types, vendors, tags and sample titles of a store."""
    keywords: dict[str, None] = {}
    product_types: dict[str, None] = {}
    vendors: dict[str, None] = {}
    tags: dict[str, None] = {}
    sample_titles: list[str] = []

    for product in products:
        text = f"{product.title} {product.description}".lower()
        for word in WORD_PATTERN.findall(text):
            if word not in COMMON_WORDS:
                keywords.setdefault(word)

        if product.product_type:
            product_types.setdefault(product.product_type)
        if product.vendor:
            vendors.setdefault(product.vendor)
        for tag in product.tags:
            tags.setdefault(tag)

        if len(sample_titles) < MAX_SAMPLE_TITLES:
            sample_titles.append(product.title)

    return ProductPattern(
        keywords=list(keywords)[:MAX_PATTERN_KEYWORDS],
        product_types=list(product_types),
        vendors=list(vendors),
        tags=list(tags),
        sample_titles=sample_titles,
    )


def analyze_existing_products(products: list[MarketplaceProduct]) -> list[StorePattern]:
    """Build one store pattern per store from the current catalog.

    Args:
        products: Every product currently in the catalog.

    Returns:
        list[StorePattern]: Patterns in store display order.
    """
    logger.info("Analyzing %d products to build store patterns", len(products))
    categorized = categorize_existing_products(products)

    patterns = []
    for store_id, store_info in STORE_MAPPINGS.items():
        store_products = categorized.get(store_id, [])
        pattern = extract_product_pattern(store_products)
        logger.debug(
            "%s: %d products, %d keywords",
            store_info["name"],
            len(store_products),
            len(pattern.keywords),
        )
        patterns.append(
            StorePattern(
                store_id=store_id,
                store_name=store_info["name"],
                category=store_info["category"],
                pattern=pattern,
            )
        )

    return patterns
