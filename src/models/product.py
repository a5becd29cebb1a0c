"""Marketplace product and store pattern type definitions."""

from dataclasses import dataclass, field


@dataclass
class MarketplaceProduct:
    """A product as sourced from the upstream catalog."""

    id: int | str | None
    title: str
    description: str = ""
    product_type: str = ""
    vendor: str = ""
    tags: list[str] = field(default_factory=list)
    price: str = "0.00"
    handle: str = ""
    image: str = ""

    @property
    def search_text(self) -> str:
        """Lowercased title, description, type and tags joined for keyword matching."""
        return f"{self.title} {self.description} {self.product_type} {' '.join(self.tags)}".lower()


@dataclass
class ProductPattern:
    """Vocabulary learned from the products already in a store."""

    keywords: list[str] = field(default_factory=list)
    product_types: list[str] = field(default_factory=list)
    vendors: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    sample_titles: list[str] = field(default_factory=list)


@dataclass
class StorePattern:
    """A store bucket and its learned product pattern."""

    store_id: str
    store_name: str
    category: str
    pattern: ProductPattern
