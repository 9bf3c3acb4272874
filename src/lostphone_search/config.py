"""Runtime settings for lost phone search."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """Search defaults, overridable through ``LOSTPHONE_SEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOSTPHONE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Result cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = Field(600.0, gt=0)

    # Request defaults
    default_threshold: float = Field(70.0, ge=0, le=100)
    default_radius_km: float = Field(10.0, ge=0.1, le=1000)
    default_page_size: int = Field(50, ge=1)
    max_page_size: int = Field(100, ge=1)

    # Rows fetched per category scan; None scans everything matching
    scan_limit: Optional[int] = Field(None, ge=1)

    # Record store
    database_path: str = ":memory:"

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept any case, store upper case."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
