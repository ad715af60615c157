"""Unit tests for AppSettings and sub-configs."""

from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import (
    AppSettings,
    DatabaseSettings,
    JWTSettings,
    VerificationSettings,
)
from services.verification import VerificationPolicy


@pytest.fixture
def with_mongo(monkeypatch):
    """Set the required MONGODB_URI so AppSettings can be instantiated."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    return monkeypatch


class TestDatabaseSettings:
    def test_loads_mongodb_uri(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017/")
        assert DatabaseSettings().mongodb_uri == "mongodb://db:27017/"

    def test_default_db_name(self, with_mongo):
        assert DatabaseSettings().db_name == "tutor-marketplace"

    def test_missing_mongodb_uri_raises(self, monkeypatch):
        monkeypatch.delenv("MONGODB_URI", raising=False)
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()


class TestJWTSettings:
    def test_hs256_by_default(self, monkeypatch):
        monkeypatch.delenv("JWT_PRIVATE_KEY", raising=False)
        monkeypatch.delenv("JWT_PUBLIC_KEY", raising=False)
        assert JWTSettings().use_rs256 is False

    def test_rs256_when_both_keys(self, monkeypatch):
        monkeypatch.setenv("JWT_PRIVATE_KEY", "priv")
        monkeypatch.setenv("JWT_PUBLIC_KEY", "pub")
        assert JWTSettings().use_rs256 is True


class TestVerificationSettings:
    def test_defaults_build_default_policy(self):
        policy = VerificationSettings().policy()
        assert policy == VerificationPolicy()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("OTP_TTL_SECONDS", "120")
        monkeypatch.setenv("OTP_MAX_ATTEMPTS", "3")
        monkeypatch.setenv("OTP_RESEND_COOLDOWN_SECONDS", "30")
        monkeypatch.setenv("RESET_TOKEN_TTL_SECONDS", "900")
        policy = VerificationSettings().policy()
        assert policy.otp_ttl == timedelta(minutes=2)
        assert policy.otp_max_attempts == 3
        assert policy.otp_resend_cooldown == timedelta(seconds=30)
        assert policy.reset_token_ttl == timedelta(minutes=15)

    def test_blocked_domains_default(self):
        assert "test.com" in VerificationSettings().blocked_email_domains


class TestAppSettings:
    def test_sub_configs_populated(self, with_mongo):
        s = AppSettings()
        assert s.db is not None
        assert s.jwt is not None
        assert s.email is not None
        assert s.verification is not None
        assert s.logging is not None
        assert s.sentry is not None

    @pytest.mark.parametrize(
        "env, expected",
        [("production", True), ("development", False), ("staging", False)],
    )
    def test_is_production(self, with_mongo, env, expected):
        with_mongo.setenv("ENV", env)
        assert AppSettings().is_production is expected

    def test_reset_url(self, with_mongo):
        with_mongo.setenv("FRONTEND_URL", "https://tutors.example.et/")
        assert (
            AppSettings().reset_url("abc")
            == "https://tutors.example.et/reset-password?token=abc"
        )
