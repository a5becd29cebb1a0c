"""Database model type definitions."""

from src.models.affiliate import AffiliateClick
from src.models.order import CustomerData, Order, OrderItem
from src.models.product import MarketplaceProduct, ProductPattern, StorePattern

__all__ = [
    "AffiliateClick",
    "CustomerData",
    "Order",
    "OrderItem",
    "MarketplaceProduct",
    "ProductPattern",
    "StorePattern",
]
