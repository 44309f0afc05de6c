"""
Engine configuration, read from environment variables (and a .env
file when present).

The reporting currency and its aliases decide which amounts are
taken at face value; everything else is converted through the
exchange rate table, which is cached for RATE_CACHE_TTL_SECONDS.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


def _split_codes(raw: str) -> tuple[str, ...]:
    return tuple(code.strip().upper() for code in raw.split(",") if code.strip())


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Ledger Reconciliation Engine"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/ledger_core"
    )
    # Storage calls that run longer than this fail with a retryable error
    DB_STATEMENT_TIMEOUT_MS: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))

    # Currency
    REPORTING_CURRENCY: str = os.getenv("REPORTING_CURRENCY", "INR").upper()
    REPORTING_CURRENCY_ALIASES: tuple[str, ...] = _split_codes(
        os.getenv("REPORTING_CURRENCY_ALIASES", "RUPEES")
    )
    RATE_CACHE_TTL_SECONDS: int = int(os.getenv("RATE_CACHE_TTL_SECONDS", "3600"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_JSON: bool = os.getenv("LOG_JSON", "true").lower() == "true"

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The environment is read once per process; tests that need
    different values should call get_settings.cache_clear().
    """
    return Settings()
