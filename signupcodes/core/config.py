"""
Configuration helpers for the signup-code engine.

Settings are read from environment variables once and cached, so that
services/routers do not fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    database_timeout_seconds: float
    log_level: str
    admin_api_token: str
    code_generation_attempts: int
    max_usages_limit: int
    redeem_rate_limit: int
    redeem_rate_window_seconds: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str | None, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _float(value: str | None, default: float = 0.0) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", "").strip(),
        database_timeout_seconds=max(0.1, _float(os.getenv("DATABASE_TIMEOUT_SECONDS"), 30.0)),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        admin_api_token=os.getenv("ADMIN_API_TOKEN", "").strip(),
        code_generation_attempts=max(1, _int(os.getenv("CODE_GENERATION_ATTEMPTS"), 5)),
        max_usages_limit=max(1, _int(os.getenv("MAX_USAGES_LIMIT"), 10_000)),
        redeem_rate_limit=max(1, _int(os.getenv("REDEEM_RATE_LIMIT"), 30)),
        redeem_rate_window_seconds=max(1, _int(os.getenv("REDEEM_RATE_WINDOW_SECONDS"), 60)),
    )
