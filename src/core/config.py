"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="basestore-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")

    # Base Pay (payment status oracle)
    base_rpc_url: str = Field(default="https://mainnet.base.org", description="Base mainnet JSON-RPC endpoint")
    base_sepolia_rpc_url: str = Field(default="https://sepolia.base.org", description="Base Sepolia JSON-RPC endpoint")
    payment_status_timeout_seconds: float = Field(default=10.0, description="Timeout for a single RPC call")

    # Email (Resend)
    resend_api_key: str = Field(default="", description="Resend API key for sending emails")
    email_from_address: str = Field(
        default="Base Store <orders@basestore.app>",
        description="From address for transactional emails",
    )
    admin_notification_email: str = Field(default="", description="Recipient for new-order admin notifications")

    # Customer data
    encryption_key: str = Field(default="", description="AES passphrase for encrypted customer data")

    # Frontend
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Frontend application URL for email links",
    )

    # Product sourcing (Shopify Admin API)
    shopify_store_domain: str = Field(default="", description="Shopify store domain (example.myshopify.com)")
    shopify_access_token: str = Field(default="", description="Shopify Admin API access token")
    shopify_api_version: str = Field(default="2024-01", description="Shopify Admin API version")

    # Categorizer
    categorizer_min_score: float = Field(default=5, description="Minimum score required to assign a store")

    # Admin
    admin_api_key: str = Field(default="", description="Key required by admin-only endpoints")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_shopify_configured(self) -> bool:
        """Check if product sourcing credentials are present."""
        return bool(self.shopify_store_domain and self.shopify_access_token)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
