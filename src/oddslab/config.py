"""Environment-driven configuration helpers for OddsLab."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LINE_TOLERANCE = 0.01
SGP_CORRELATION_FACTOR = 0.95


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ODDSLAB_",
        extra="ignore",
    )

    odds_api_key: str = Field(default="", validation_alias="ODDS_API_KEY")
    odds_api_base_url: str = Field(default="https://api.the-odds-api.com/v4")
    http_timeout: float = Field(default=10.0, gt=0.0)

    line_tolerance: float = Field(default=LINE_TOLERANCE, gt=0.0, le=1.0)
    sgp_correlation_factor: float = Field(default=SGP_CORRELATION_FACTOR, gt=0.0, le=1.0)

    default_bankroll: float = Field(default=1000.0, ge=0.0)
    kelly_fraction: float = Field(default=0.25, ge=0.0, le=1.0)
    ev_threshold: float = Field(default=2.0)
    default_regions: str = Field(default="us")
    sharp_bookmakers: str = Field(default="pinnacle")
    comparison_method: str = Field(default="weighted", pattern="^(consensus|sharp|weighted)$")
    player_props_delay_seconds: float = Field(default=1.0, ge=0.0)
    scan_max_workers: int = Field(default=4, ge=1, le=32)

    @property
    def region_list(self) -> list[str]:
        return [r.strip() for r in self.default_regions.split(",") if r.strip()]

    @property
    def sharp_bookmaker_list(self) -> list[str]:
        return [b.strip().lower() for b in self.sharp_bookmakers.split(",") if b.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]


def get_odds_api_key() -> str:
    """Return the odds provider API key or raise a helpful error."""

    key = os.getenv("ODDS_API_KEY") or get_settings().odds_api_key
    if not key:
        raise RuntimeError(
            "ODDS_API_KEY is not configured. "
            "Set it in .env for local dev or in the deployment environment."
        )
    return key
