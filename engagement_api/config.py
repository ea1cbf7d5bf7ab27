"""Application configuration using pydantic-settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Bounds for the dedup window; a tiny window lets pixel prefetches through,
# a huge one swallows genuine repeat visits.
MIN_DEDUP_WINDOW_SECONDS = 1.0
MAX_DEDUP_WINDOW_SECONDS = 300.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service settings
    service_host: str = Field(default="0.0.0.0", description="Host to bind the service")
    service_port: int = Field(default=8765, description="Port to bind the service")
    service_workers: int = Field(default=4, description="Number of worker processes")
    log_level: str = Field(default="info", description="Logging level")

    # Storage
    storage_backend: str = Field(
        default="postgres",
        description="Storage backend: postgres or memory",
    )

    # Database - PostgreSQL connection
    database_url: str | None = Field(
        default=None,
        description="Full database connection URL (overrides individual fields)",
    )
    database_user: str = Field(default="newsletter_dev", description="Database username")
    database_password: str = Field(default="dev_password", description="Database password")
    database_host: str = Field(default="localhost", description="Database host")
    database_port: int = Field(default=5432, description="Database port")
    database_name: str = Field(default="newsletter_dev", description="Database name")
    database_pool_min_size: int = Field(
        default=2,
        description="Minimum database connection pool size",
    )
    database_pool_max_size: int = Field(
        default=10,
        description="Maximum database connection pool size",
    )
    database_ssl_mode: str = Field(
        default="prefer",
        description="SSL mode: disable, prefer, require",
    )

    # Tracking tokens
    tracking_secret: str = Field(
        default="development-tracking-secret-change-in-production",
        description="HMAC key used to sign tracking tokens",
    )
    token_ttl_days: int = Field(default=14, description="Default tracking token lifetime")

    # Event recording
    dedup_window_seconds: float = Field(
        default=10.0,
        ge=MIN_DEDUP_WINDOW_SECONDS,
        le=MAX_DEDUP_WINDOW_SECONDS,
        description="Window in which identical engagement events are collapsed",
    )

    # Tracking endpoints
    tracking_base_url: str = Field(
        default="http://localhost:8765",
        description="Public base URL used when building pixel and click links",
    )
    tracking_default_redirect_url: str = Field(
        default="http://localhost:3000/",
        description="Safe destination for clicks whose token or link cannot be resolved",
    )

    # Client session tracking
    session_storage_key: str = Field(
        default="cms_analytics_session_id",
        description="Client storage key holding the analytics session id",
    )
    scroll_thresholds: list[int] = Field(
        default_factory=lambda: [50, 90],
        description="Scroll depth milestones (percent) reported by the session tracker",
    )

    # Security (admin endpoints)
    secret_key: str = Field(
        default="development-secret-key-change-in-production",
        description="Secret key for admin JWT verification",
    )
    jwt_algorithm: str = Field(default="HS256", description="Admin JWT algorithm")
    jwt_issuer: str | None = Field(default=None, description="Expected JWT issuer (iss claim)")
    jwt_audience: str | None = Field(default=None, description="Expected JWT audience (aud claim)")
    auth_required: bool = Field(
        default=False,
        description="Require authentication on admin endpoints (set to True for production)",
    )

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8080",
        description="Allowed CORS origins (comma-separated)",
    )

    @field_validator("storage_backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("postgres", "memory"):
            raise ValueError(f"Unknown storage backend: {value}")
        return value

    @field_validator("scroll_thresholds")
    @classmethod
    def _check_thresholds(cls, value: list[int]) -> list[int]:
        if any(t not in (50, 90) for t in value):
            raise ValueError("Scroll thresholds must be drawn from 50 and 90")
        return sorted(set(value))

    def get_allowed_origins(self) -> list[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def get_database_url(self) -> str:
        """
        Get PostgreSQL connection URL.

        If database_url is set, use it directly.
        Otherwise, construct from individual components.
        """
        from urllib.parse import quote_plus

        if self.database_url:
            return self.database_url

        # URL-encode username and password to handle special characters
        user = quote_plus(self.database_user)
        password = quote_plus(self.database_password)

        ssl_param = ""
        if self.database_ssl_mode in ("require", "prefer"):
            ssl_param = f"?sslmode={self.database_ssl_mode}"

        return (
            f"postgresql://{user}:{password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}{ssl_param}"
        )


# Global settings instance
settings = Settings()
