"""
Settings for the buffet inventory core.

Values come from the environment (and an optional .env file); nested
groups use their own prefixes: STORAGE_, TXN_ and INVENTORY_.
"""

from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """SQLite database location and connection pool."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "buffet.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class TransactionSettings(BaseSettings):
    """Optimistic transaction retry configuration."""

    model_config = SettingsConfigDict(env_prefix="TXN_")

    max_attempts: int = Field(default=5, ge=1)
    retry_delay: float = 0.01  # seconds
    retry_multiplier: float = 2.0
    max_delay: float = 0.5


class InventorySettings(BaseSettings):
    """Inventory rules configuration."""

    model_config = SettingsConfigDict(env_prefix="INVENTORY_")

    # Calendar used to resolve the end of a count day
    business_timezone: str = "UTC"

    # Write purchase entries to the audit log on receipt/reversal
    audit_purchase_receipts: bool = False

    # Reject unit pairs without a conversion factor instead of using 1
    strict_unit_conversion: bool = False

    @field_validator("business_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.business_timezone)


class Settings(BaseSettings):
    """Top-level settings; nested groups read their own prefixed variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Buffet Back Office"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    transaction: TransactionSettings = Field(default_factory=TransactionSettings)
    inventory: InventorySettings = Field(default_factory=InventorySettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call reloads the environment."""
    global _settings
    _settings = None
