"""Application settings for the transaction reporting service, loaded from
environment variables.
"""

import os as _os
from pathlib import Path

DEFAULT_SEED_URL = "https://s3.amazonaws.com/roxiler.com/product_transaction.json"

# Year used by the standalone pie chart's fixed date window.
DEFAULT_PIE_CHART_YEAR = 2023


def _parse_pie_chart_year(raw: str) -> int | None:
    """Return the fixed pie-chart year, or None for month-only matching."""
    raw = raw.strip().lower()
    if raw in ("", "any", "none"):
        return None
    return int(raw)


class AppConfig:
    """Application-level configuration loaded from environment variables.

    All env vars have defaults so the service runs without any configuration.

    Environment variables:
        APP_DB_PATH: Path to the SQLite database file (default: transactions.sqlite)
        APP_PORT: API server port (default: 4000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_API_PREFIX: Path prefix for the JSON API (default: /api)
        APP_SEED_URL: Remote JSON array used by the reseed endpoint
        APP_SEED_TIMEOUT: Seconds before the seed fetch gives up (default: 30)
        APP_SEED_MAX_RETRIES: Retries for the seed fetch (default: 0)
        APP_PIE_CHART_YEAR: Year of the pie chart's date window, or "any"
            to match on month only (default: 2023)
        APP_DB_POOL_SIZE: Max DB connections in pool (default: 10)
    """

    def __init__(self) -> None:
        self.db_path = Path(_os.getenv("APP_DB_PATH", "transactions.sqlite"))
        self.api_port = int(_os.getenv("APP_PORT", "4000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        prefix = _os.getenv("APP_API_PREFIX", "/api").strip("/")
        self.api_prefix = f"/{prefix}" if prefix else ""
        self.seed_url = _os.getenv("APP_SEED_URL", DEFAULT_SEED_URL)
        self.seed_timeout = float(_os.getenv("APP_SEED_TIMEOUT", "30"))
        self.seed_max_retries = int(_os.getenv("APP_SEED_MAX_RETRIES", "0"))
        self.pie_chart_year = _parse_pie_chart_year(
            _os.getenv("APP_PIE_CHART_YEAR", str(DEFAULT_PIE_CHART_YEAR))
        )
        self.pool_size = int(_os.getenv("APP_DB_POOL_SIZE", "10"))

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
