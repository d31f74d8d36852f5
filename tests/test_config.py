"""Unit tests for core/config.py -- Settings validation and derived values."""

import pytest
from pydantic import ValidationError

from api.gating import SUBMISSIONS, USRN_LOOKUP, build_rate_limiters
from core.config import Settings


class TestDefaults:
    def test_gating_defaults(self):
        s = Settings(_env_file=None, allow_localhost=False, rate_limit_max=30, usrn_rate_limit_max=20)
        assert s.cors_origins == ["https://datawatchman.dev", "https://www.datawatchman.dev"]
        assert s.allow_missing_origin is False
        assert s.rate_limit_window_minutes == 30
        assert s.usrn_rate_limit_window_minutes == 30
        assert s.max_body_bytes == 100 * 1024

    def test_localhost_added_when_enabled(self):
        s = Settings(allow_localhost=True)
        assert "http://localhost:3000" in s.cors_origins
        assert "http://localhost:8000" in s.cors_origins

    def test_is_production(self):
        assert Settings(prod_env="production", usrn_access_password="x").is_production is True
        assert Settings(prod_env="development").is_production is False


class TestOriginValidation:
    @pytest.mark.parametrize(
        "origin",
        [
            "http://datawatchman.dev",
            "https://datawatchman.dev/",
            "https://datawatchman.dev/app",
            "datawatchman.dev",
        ],
    )
    def test_rejects_bad_origins(self, origin):
        with pytest.raises(ValidationError):
            Settings(allowed_origins=[origin])

    def test_accepts_localhost_http(self):
        assert Settings(allowed_origins=["http://localhost:5173"]).allowed_origins == ["http://localhost:5173"]


class TestUsrnPassword:
    def test_production_without_password_refuses_to_start(self):
        with pytest.raises(ValidationError, match="USRN_ACCESS_PASSWORD"):
            Settings(prod_env="production", require_password=True, usrn_access_password="")

    def test_production_without_password_ok_when_lookup_disabled(self):
        s = Settings(prod_env="production", usrn_access_password="", usrn_lookup_enabled=False)
        assert s.usrn_lookup_enabled is False

    def test_development_without_password_only_warns(self):
        s = Settings(prod_env="development", require_password=True, usrn_access_password="")
        assert s.usrn_access_password == ""


class TestRateLimiterSizing:
    def test_limiters_sized_from_settings(self):
        s = Settings(rate_limit_max=7, rate_limit_window_minutes=2, usrn_rate_limit_max=3, usrn_rate_limit_window_minutes=5)
        registry = build_rate_limiters(s)
        assert registry[SUBMISSIONS].max_requests == 7
        assert registry[SUBMISSIONS].window_seconds == 120
        assert registry[USRN_LOOKUP].max_requests == 3
        assert registry[USRN_LOOKUP].window_seconds == 300
        assert len(registry.names()) == 6
