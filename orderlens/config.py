"""
Configuration management using pydantic-settings.
All settings loaded from environment variables prefixed with ORDERLENS_.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Analytics core settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ORDERLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="console", description="Log format (json|console)")

    # Calendar
    timezone: Optional[str] = Field(
        default=None,
        description="IANA zone used for calendar math (default: host local time)",
    )

    # Ingestion
    timestamp_fields: str = Field(
        default="date,createdAt",
        description="Candidate effective-timestamp fields, first present wins (comma-separated)",
    )
    completed_payment_status: str = Field(
        default="FullyPaid", description="Payment status counted as completed"
    )

    # Engine Configuration
    unknown_range_policy: str = Field(
        default="reject", description="Unknown range token policy (reject|all_time)"
    )
    forecast_horizon: int = Field(
        default=3, ge=1, le=120, description="Default number of projected buckets"
    )
    top_n_limit: int = Field(default=10, ge=1, description="Default top-N list size")

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v

    @field_validator("unknown_range_policy")
    @classmethod
    def validate_unknown_range_policy(cls, v: str) -> str:
        v = v.lower()
        if v not in ("reject", "all_time"):
            raise ValueError("unknown_range_policy must be 'reject' or 'all_time'")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Reject zone names the tz database does not know."""
        if not v:
            return None
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def timestamp_field_order(self) -> List[str]:
        """Parse comma-separated timestamp candidate fields."""
        return [f.strip() for f in self.timestamp_fields.split(",") if f.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
