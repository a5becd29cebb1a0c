"""Product sources used to build store patterns."""

import logging
from typing import Any, Protocol

import httpx

from src.core.config import get_settings
from src.models.product import MarketplaceProduct

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15.0


class ProductSourceError(Exception):
    """Raised when the upstream catalog cannot be read."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProductSource(Protocol):
    """Anything that can list the current catalog."""

    async def get_all_products(self) -> list[MarketplaceProduct]: ...


class StaticProductSource:
    """Serves a fixed product list."""

    def __init__(self, products: list[MarketplaceProduct] | None = None) -> None:
        self.products = list(products or [])

    async def get_all_products(self) -> list[MarketplaceProduct]:
        return list(self.products)


def transform_shopify_product(product: dict[str, Any]) -> MarketplaceProduct:
    """Map a Shopify Admin REST product to a MarketplaceProduct."""
    variants = product.get("variants") or []
    images = product.get("images") or []
    main_image = (product.get("image") or {}).get("src") or (images[0].get("src") if images else "")
    tags = product.get("tags") or ""

    return MarketplaceProduct(
        id=product.get("id"),
        title=product.get("title") or "",
        description=product.get("body_html") or "",
        product_type=product.get("product_type") or "",
        vendor=product.get("vendor") or "",
        tags=tags.split(", ") if tags else [],
        price=variants[0].get("price", "0.00") if variants else "0.00",
        handle=product.get("handle") or "",
        image=main_image or "",
    )


class ShopifyProductSource:
    """Reads active products from the Shopify Admin REST API."""

    def __init__(
        self,
        shop_domain: str | None = None,
        access_token: str | None = None,
        api_version: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Shopify product source.

        Args:
            shop_domain: Store domain, defaults to settings.
            access_token: Admin API token, defaults to settings.
            api_version: Admin API version, defaults to settings.
            http_client: Optional HTTP client for testing.
        """
        settings = get_settings()
        self.shop_domain = shop_domain or settings.shopify_store_domain
        self.access_token = access_token or settings.shopify_access_token
        self.api_version = api_version or settings.shopify_api_version
        self._http_client = http_client

    @property
    def base_url(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}"

    async def _get(self, path: str) -> dict[str, Any]:
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }
        url = f"{self.base_url}{path}"

        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
                    response = await client.get(url, headers=headers)
        except httpx.RequestError as e:
            raise ProductSourceError(f"Cannot reach Shopify store: {e}") from e

        if response.status_code != 200:
            raise ProductSourceError(
                f"Shopify returned {response.status_code}",
                status_code=response.status_code,
            )

        return response.json()

    async def get_all_products(self) -> list[MarketplaceProduct]:
        """Fetch every active product (first page of 250)."""
        if not self.shop_domain or not self.access_token:
            raise ProductSourceError("Shopify store is not configured")

        data = await self._get("/products.json?status=active&limit=250")
        products = [transform_shopify_product(p) for p in data.get("products", [])]
        logger.info("Fetched %d products from %s", len(products), self.shop_domain)
        return products


def get_product_source() -> ProductSource:
    """Get the configured product source.

    Falls back to an empty static catalog when Shopify is not configured.
    """
    settings = get_settings()
    if settings.is_shopify_configured:
        return ShopifyProductSource()
    logger.warning("Shopify is not configured, store patterns will be empty")
    return StaticProductSource()
