"""Centralised engine settings loaded from environment / .env file."""

from __future__ import annotations

from datetime import timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_DEFAULT_DB_URL = f"sqlite:///{_PROJECT_ROOT / 'data' / 'resonance.db'}"


class Settings(BaseSettings):
    """All runtime configuration for the tracking engine.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``RESONANCE_`` namespace.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESONANCE_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ───────────────────────────────────────────────
    database_url: str = _DEFAULT_DB_URL  # "memory://" for a volatile store

    # ── Calendar ──────────────────────────────────────────────
    timezone: str = "UTC"  # IANA zone used for day bucketing

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Mood ledger ───────────────────────────────────────────
    neutral_mood: float = 5.0
    insight_window_days: int = 7

    # ── Activity sessions ─────────────────────────────────────
    data_point_cap: int = 100  # live chart buffer
    stride_length_m: float = 0.762  # average adult stride
    mood_delta_threshold: float = 1.0  # |after - before| that logs a mood sample

    @property
    def tzinfo(self) -> tzinfo:
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
