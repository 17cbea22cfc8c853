"""
Tests for utils/config.py: AppConfig environment parsing.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import DEFAULT_PIE_CHART_YEAR, DEFAULT_SEED_URL, AppConfig  # noqa: E402

_ENV_VARS = [
    "APP_DB_PATH", "APP_PORT", "APP_HOST", "APP_LOG_FORMAT", "APP_CORS_ORIGINS",
    "APP_API_PREFIX", "APP_SEED_URL", "APP_SEED_TIMEOUT", "APP_SEED_MAX_RETRIES",
    "APP_PIE_CHART_YEAR", "APP_DB_POOL_SIZE",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


class TestAppConfigDefaults:
    def test_defaults(self, clean_env):
        cfg = AppConfig.from_env()
        assert cfg.db_path == Path("transactions.sqlite")
        assert cfg.api_port == 4000
        assert cfg.api_host == "127.0.0.1"
        assert cfg.log_format == "text"
        assert cfg.cors_origins == ["*"]
        assert cfg.api_prefix == "/api"
        assert cfg.seed_url == DEFAULT_SEED_URL
        assert cfg.seed_timeout == 30.0
        assert cfg.seed_max_retries == 0
        assert cfg.pie_chart_year == DEFAULT_PIE_CHART_YEAR
        assert cfg.pool_size == 10


class TestAppConfigOverrides:
    def test_numeric_overrides(self, clean_env):
        clean_env.setenv("APP_PORT", "8080")
        clean_env.setenv("APP_SEED_TIMEOUT", "2.5")
        clean_env.setenv("APP_SEED_MAX_RETRIES", "3")
        clean_env.setenv("APP_DB_POOL_SIZE", "2")
        cfg = AppConfig.from_env()
        assert cfg.api_port == 8080
        assert cfg.seed_timeout == 2.5
        assert cfg.seed_max_retries == 3
        assert cfg.pool_size == 2

    def test_cors_list(self, clean_env):
        clean_env.setenv("APP_CORS_ORIGINS", "http://a.test, http://b.test,")
        assert AppConfig.from_env().cors_origins == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize("raw,expected", [
        ("/api", "/api"),
        ("api/", "/api"),
        ("/v2/api/", "/v2/api"),
        ("", ""),
        ("/", ""),
    ])
    def test_api_prefix_normalized(self, clean_env, raw, expected):
        clean_env.setenv("APP_API_PREFIX", raw)
        assert AppConfig.from_env().api_prefix == expected

    @pytest.mark.parametrize("raw,expected", [
        ("2021", 2021),
        (" 2024 ", 2024),
        ("any", None),
        ("ANY", None),
        ("", None),
    ])
    def test_pie_chart_year(self, clean_env, raw, expected):
        clean_env.setenv("APP_PIE_CHART_YEAR", raw)
        assert AppConfig.from_env().pie_chart_year == expected

    def test_bad_pie_chart_year(self, clean_env):
        clean_env.setenv("APP_PIE_CHART_YEAR", "last year")
        with pytest.raises(ValueError):
            AppConfig.from_env()

