"""
Configuration management for PharMatch.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pharmatch.utils.constants import DEFAULT_SCORING_WEIGHTS, SuperlikeFallback


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent
PACKAGE_DIR = ROOT_DIR / "pharmatch"
DATA_DIR = ROOT_DIR / "data"


class DatabaseSettings(BaseSettings):
    """MongoDB database configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "pharmatch"
    username: str | None = None
    password: str | None = None

    @property
    def connection_string(self) -> str:
        """Generate MongoDB connection string with URL-encoded credentials."""
        host = self.host.strip()
        if self.username and self.password:
            return f"mongodb://{quote_plus(self.username)}:{quote_plus(self.password)}@{host}:{self.port}"
        return f"mongodb://{host}:{self.port}"


class MatchingSettings(BaseSettings):
    """Matching engine tuning."""

    model_config = SettingsConfigDict(env_prefix="MATCHING_")

    # Scoring
    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SCORING_WEIGHTS))
    max_radius_km: float = 50.0

    # Queue
    resurface_cooldown_days: float = 7.0
    default_queue_limit: int = 20

    # Swipes
    superlike_fallback: SuperlikeFallback = SuperlikeFallback.REJECT

    # Storage conflict retries
    match_create_retries: int = 3
    ledger_retries: int = 3

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, float]) -> dict[str, float]:
        """Reject unknown factors and negative weights."""
        unknown = set(v) - set(DEFAULT_SCORING_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown scoring factors: {sorted(unknown)}")
        if any(w < 0 for w in v.values()):
            raise ValueError("Scoring weights must be non-negative")
        merged = dict(DEFAULT_SCORING_WEIGHTS)
        merged.update(v)
        return merged

    @field_validator("max_radius_km")
    @classmethod
    def validate_radius(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("max_radius_km must be positive")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "pharmatch.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    audit_rotation: str = "1 week"
    audit_retention: str = "1 year"
    console_output: bool = True
    file_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "PharMatch"
    version: str = "0.1.0"
    description: str = "Swipe matching engine for the pharmacy marketplace"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings
