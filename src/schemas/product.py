"""Product categorization request/response schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.product import MarketplaceProduct

Confidence = Literal["high", "medium", "low", "none"]


class CategorizeProductInput(BaseModel):
    """A product submitted for categorization."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str | None = None
    title: str
    description: str = ""
    product_type: str = Field(default="", alias="productType")
    vendor: str = ""
    tags: list[str] = Field(default_factory=list)

    def to_marketplace_product(self) -> MarketplaceProduct:
        return MarketplaceProduct(
            id=self.id,
            title=self.title,
            description=self.description,
            product_type=self.product_type,
            vendor=self.vendor,
            tags=list(self.tags),
        )


class CategorizeRequest(BaseModel):
    """Body of POST /products/categorize."""

    products: list[CategorizeProductInput] = Field(description="Products to categorize")


class ProductRef(BaseModel):
    id: int | str | None = None
    title: str


class StoreInfo(BaseModel):
    name: str
    category: str


class CategorizeResult(BaseModel):
    """Store assignment for one product."""

    model_config = ConfigDict(populate_by_name=True)

    product: ProductRef
    store_id: str | None = Field(default=None, alias="storeId")
    store_info: StoreInfo | None = Field(default=None, alias="storeInfo")
    score: float = 0
    confidence: Confidence = "none"


class CategorizeSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    categorized: int = 0
    unassigned: int = 0
    by_store: dict[str, int] = Field(default_factory=dict, alias="byStore")


class CategorizeResponse(BaseModel):
    """Response of POST /products/categorize."""

    success: bool = True
    results: list[CategorizeResult] = Field(default_factory=list)
    summary: CategorizeSummary = Field(default_factory=CategorizeSummary)


class StorePatternSummary(BaseModel):
    """Learned pattern overview for one store."""

    model_config = ConfigDict(populate_by_name=True)

    store_id: str = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    category: str
    keyword_count: int = Field(alias="keywordCount")
    product_types: list[str] = Field(alias="productTypes")
    vendors: list[str]
    top_keywords: list[str] = Field(alias="topKeywords")
    sample_titles: list[str] = Field(alias="sampleTitles")


class StorePatternsResponse(BaseModel):
    """Response of GET /products/categorize."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    store_patterns: list[StorePatternSummary] = Field(default_factory=list, alias="storePatterns")
    message: str = "Store patterns loaded successfully"
