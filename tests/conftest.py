"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")
os.environ.setdefault("ADMIN_NOTIFICATION_EMAIL", "admin@example.com")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-passphrase")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("SHOPIFY_STORE_DOMAIN", "")
os.environ.setdefault("SHOPIFY_ACCESS_TOKEN", "")


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    # Configure default mock responses
    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("src.core.supabase.get_supabase_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Dependency overrides set by a test are cleared afterwards.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_order() -> dict[str, Any]:
    """A pending order with two line items and a buyer fid."""
    return {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "order_reference": "ORD-1001",
        "payment_status": "pending",
        "order_status": "confirmed",
        "payment_hash": None,
        "payment_completed_at": None,
        "customer_wallet": "0x1111111111111111111111111111111111111111",
        "farcaster_fid": "42",
        "farcaster_username": "buyer",
        "encrypted_customer_data": "",
        "order_items": [
            {"productId": "p1", "variantId": "v1", "title": "Wireless Earbuds", "price": "10.00", "quantity": 2},
            {"productId": "p2", "variantId": "v2", "title": "Dog Leash", "price": "5.50", "quantity": 1},
        ],
        "total_amount": 25.5,
        "currency": "USDC",
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
