"""Application configuration using pydantic-settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./ledger.db"

    # Ledger
    ITEM_TYPES: list[str] = ["USDT"]
    PAGE_SIZE: int = 25

    # Lock contention retry (reconciliation and batch allocation)
    LEDGER_LOCK_ATTEMPTS: int = 3
    LEDGER_LOCK_BASE_DELAY_SECONDS: float = 0.05

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("ITEM_TYPES", mode="after")
    @classmethod
    def normalize_item_types(cls, v: list[str]) -> list[str]:
        """Strip whitespace and drop empty entries; at least one type is required."""
        cleaned = [t.strip() for t in v if t and t.strip()]
        if not cleaned:
            raise ValueError("ITEM_TYPES must contain at least one item type")
        return cleaned

    @field_validator("PAGE_SIZE", "LEDGER_LOCK_ATTEMPTS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


settings = Settings()
