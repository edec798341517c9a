"""Application configuration via pydantic settings."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Rental Pricing API"
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(
        "sqlite+aiosqlite:///./rental_pricing.db", alias="DATABASE_URL"
    )
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    default_currency: str = Field("EUR", alias="DEFAULT_CURRENCY")

    solver_max_steps: int = Field(500_000, alias="PRICING_SOLVER_MAX_STEPS", gt=0)

    parity_threshold: Decimal = Field(Decimal("0.01"), alias="PARITY_THRESHOLD", ge=0)
    parity_top: int = Field(10, alias="PARITY_TOP", gt=0)
    parity_cap_hour: int = Field(24 * 30, alias="PARITY_CAP_HOUR", gt=0)
    parity_cap_day: int = Field(365, alias="PARITY_CAP_DAY", gt=0)
    parity_cap_week: int = Field(52, alias="PARITY_CAP_WEEK", gt=0)

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        alias="CORS_ALLOW_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 3 or not value.isalpha():
            raise ValueError("DEFAULT_CURRENCY must be a three-letter ISO code")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()
