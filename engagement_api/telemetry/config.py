"""
Telemetry Configuration

Connection, identity and dev-logging settings for telemetry.
"""


from pydantic_settings import BaseSettings


class TelemetryConfig(BaseSettings):
    """Telemetry configuration loaded from environment variables."""

    # Connection
    app_insights_connection_string: str | None = None
    enabled: bool = True

    # Application Identity (included in all events)
    app_id: str = "newsletter-engagement-api"
    environment: str = "development"  # dev/staging/production

    # Development
    enable_dev_logger: bool = True
    dev_logger_max_events: int = 1000

    model_config = {
        "env_prefix": "TELEMETRY_",
        "env_file": ".env",
        "extra": "ignore",
    }


# Global instance (lazy loaded)
_config: TelemetryConfig | None = None


def get_telemetry_config() -> TelemetryConfig:
    """Get the global telemetry configuration instance."""
    global _config
    if _config is None:
        _config = TelemetryConfig()
    return _config
