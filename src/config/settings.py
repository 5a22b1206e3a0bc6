# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for registry endpoints, HTTP behavior, cache tiers,
TTL policy and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DAY = 24 * 60 * 60


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Registries ===
    nhtsa_vpic_base_url: str = "https://vpic.nhtsa.dot.gov/api/vehicles"
    nhtsa_api_base_url: str = "https://api.nhtsa.gov"
    fuel_economy_base_url: str = "https://www.fueleconomy.gov/ws/rest"

    # === HTTP ===
    http_timeout_seconds: float = 15.0
    http_user_agent: str = "vehicledata/0.4"
    http_retry_enabled: bool = True

    # === Cache ===
    cache_backend: Literal["none", "json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.vehicledata/cache")
    cache_redis_url: str = ""
    cache_key_prefix: str = "vehicledata:cache:"

    # TTL policy per data class. None = memory tier only, process lifetime.
    vin_decode_ttl_seconds: int | None = 30 * _DAY
    recalls_ttl_seconds: int | None = 7 * _DAY
    complaints_ttl_seconds: int | None = 30 * _DAY
    safety_ratings_ttl_seconds: int | None = None
    fuel_economy_ttl_seconds: int | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("http_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        for name, value in self.ttl_policy.items():
            if value is not None and value <= 0:
                errors.append(f"{name.upper()}_TTL_SECONDS must be positive")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def ttl_policy(self) -> dict[str, int | None]:
        """TTL per data class, keyed by cache domain."""
        return {
            "vin_decode": self.vin_decode_ttl_seconds,
            "recalls": self.recalls_ttl_seconds,
            "complaints": self.complaints_ttl_seconds,
            "safety_ratings": self.safety_ratings_ttl_seconds,
            "fuel_economy": self.fuel_economy_ttl_seconds,
        }


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
