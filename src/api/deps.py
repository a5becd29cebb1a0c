"""FastAPI dependency injection functions."""

import hmac
from typing import Annotated

from fastapi import Depends, Header, Request

from src.api.middleware.error_handler import AuthenticationError, AuthorizationError
from src.core.config import get_settings
from src.services.affiliate_service import AffiliateService
from src.services.payment_verification_service import (
    PaymentVerificationService,
    get_payment_verification_service,
)
from src.services.product_source import get_product_source
from src.services.store_assignment import StoreCategorizer, StorePatternCache


def get_affiliate_service() -> AffiliateService:
    """Get affiliate service instance."""
    return AffiliateService()


def get_pattern_cache(request: Request) -> StorePatternCache:
    """Get the store pattern cache built at startup.

    Creates an uninitialized cache when the app was started without the
    lifespan (e.g. some test clients); it is built on first use.
    """
    cache = getattr(request.app.state, "pattern_cache", None)
    if cache is None:
        cache = StorePatternCache(get_product_source())
        request.app.state.pattern_cache = cache
    return cache


def get_store_categorizer() -> StoreCategorizer:
    """Get a categorizer using the configured minimum score."""
    return StoreCategorizer(min_score=get_settings().categorizer_min_score)


async def require_admin_key(
    x_admin_key: Annotated[str | None, Header(description="Admin API key")] = None,
) -> None:
    """Require a valid X-Admin-Key header.

    Raises:
        AuthenticationError: If the header is missing or no key is configured.
        AuthorizationError: If the key does not match.
    """
    settings = get_settings()
    if not x_admin_key or not settings.admin_api_key:
        raise AuthenticationError("Admin key required")
    if not hmac.compare_digest(x_admin_key, settings.admin_api_key):
        raise AuthorizationError("Invalid admin key")


PaymentVerifier = Annotated[PaymentVerificationService, Depends(get_payment_verification_service)]
Affiliates = Annotated[AffiliateService, Depends(get_affiliate_service)]
PatternCache = Annotated[StorePatternCache, Depends(get_pattern_cache)]
Categorizer = Annotated[StoreCategorizer, Depends(get_store_categorizer)]
AdminKey = Annotated[None, Depends(require_admin_key)]
