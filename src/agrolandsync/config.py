"""
Configuration for the Agroland sync worker.

Uses Pydantic for validation and environment loading.
Values are loaded once at startup and treated as constants afterwards.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncConfig(BaseSettings):
    """Master configuration for the sync worker."""

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix, use exact names
        env_file=".env",
        extra="ignore",
    )

    # Service identity
    service_name: str = Field(default="agrolandsync")
    log_level: str = Field(default="INFO")
    log_path: Optional[str] = Field(
        default=None, description="Log file path, None=stderr only"
    )
    logs_expiration_days: int = Field(
        default=30, description="Days of rotated log files to keep"
    )

    # Supplier feed
    api_base_url: str = Field(default="", description="Agroland API base URL")
    api_key: str = Field(default="", description="Agroland API access key")
    http_timeout: float = Field(
        default=120.0, description="HTTP timeout for feed and image requests"
    )

    # Scheduling
    fetch_interval_sec: int = Field(
        default=3600, description="Seconds between scheduler ticks (1 hour)"
    )

    # Pricing / description
    margin: int = Field(default=0, description="Sale margin in percent")
    default_vat: int = Field(default=23, description="VAT rate when feed has none")
    description_max_length: int = Field(
        default=1000, description="Max length of generated HTML description"
    )
    source_tag: str = Field(
        default="AGROLAND", description="Integration tag written with each product"
    )
    identity_fallback: bool = Field(
        default=False,
        description="Use supplier id as identity when the feed has no EAN",
    )

    # Database
    database_url: str = Field(default="", description="PostgreSQL URL for product store")

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Load configuration from environment variables."""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "agrolandsync"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_path=os.getenv("LOG_PATH"),
            logs_expiration_days=int(os.getenv("LOGS_EXPIRATION_DAYS", "30")),
            api_base_url=os.getenv("AGROLAND_BASE_URL", ""),
            api_key=os.getenv("AGROLAND_API_KEY", ""),
            http_timeout=float(os.getenv("AGROLAND_HTTP_TIMEOUT", "120.0")),
            fetch_interval_sec=int(os.getenv("AGROLAND_FETCH_INTERVAL_SEC", "3600")),
            margin=int(os.getenv("AGROLAND_MARGIN", "0")),
            identity_fallback=os.getenv("AGROLAND_IDENTITY_FALLBACK", "false").lower()
            == "true",
            database_url=os.getenv("DATABASE_URL", ""),
        )


@lru_cache(maxsize=1)
def get_config() -> SyncConfig:
    """Process-wide config, loaded on first use."""
    return SyncConfig.from_env()


__all__ = ["SyncConfig", "get_config"]
