"""Application settings.

Values are read from ``PAGE_CONVERTER_*`` environment variables or a
``.env`` file in the working directory.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PAGE_CONVERTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Root logging level")

    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Largest accepted upload or fetched page, in bytes",
    )
    fetch_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for each fetch endpoint, in seconds",
    )
    max_redirects: int = Field(default=10, ge=0)
    relay_endpoints: List[str] = Field(
        default_factory=list,
        description=(
            "Relay URL prefixes tried in order after the direct fetch fails; "
            "the percent-encoded target URL is appended to each"
        ),
    )

    convert_rate_limit: str = Field(default="20/minute")


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
