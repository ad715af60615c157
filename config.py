"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Verification policy values (OTP lifetime, attempt budget, resend cooldown,
reset-token lifetime) live in VerificationSettings and are handed to the
verification core as a VerificationPolicy value rather than read as module
constants, so tests can build a policy directly.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.verification import VerificationPolicy


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "tutor-marketplace"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "tutor-marketplace"
    jwt_audience: str = "tutor-marketplace.api"
    access_token_ttl_seconds: int = 86400

    # RS256 keys (preferred)
    jwt_private_key: str = ""
    jwt_public_key: str = ""

    # HS256 fallback (used when RS256 keys are absent)
    jwt_secret: str = ""

    @property
    def use_rs256(self) -> bool:
        return bool(self.jwt_private_key and self.jwt_public_key)


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    zepto_api_token: str = ""
    zepto_from_email: str = "noreply@tutor-marketplace.et"
    zepto_from_name: str = "Dire Dawa Tutoring"


class VerificationSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    otp_length: int = 6
    otp_ttl_seconds: int = 600
    otp_max_attempts: int = 5
    otp_resend_cooldown_seconds: int = 60
    reset_token_ttl_seconds: int = 3600
    password_min_length: int = 8

    # Throw-away domains rejected at registration
    blocked_email_domains: list[str] = [
        "fake.com",
        "test.com",
        "example.com",
        "temp.com",
    ]

    def policy(self) -> VerificationPolicy:
        return VerificationPolicy(
            otp_length=self.otp_length,
            otp_ttl=timedelta(seconds=self.otp_ttl_seconds),
            otp_max_attempts=self.otp_max_attempts,
            otp_resend_cooldown=timedelta(seconds=self.otp_resend_cooldown_seconds),
            reset_token_ttl=timedelta(seconds=self.reset_token_ttl_seconds),
            password_min_length=self.password_min_length,
        )


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "http://localhost:5000"
    app_name: str = "Dire Dawa Tutoring"

    # Base URL of the page that accepts ?token=... for password resets
    frontend_url: str = "http://localhost:3000"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    jwt: Optional[JWTSettings] = None
    email: Optional[EmailSettings] = None
    verification: Optional[VerificationSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.verification is None:
            self.verification = VerificationSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    def reset_url(self, token: str) -> str:
        return f"{self.frontend_url.rstrip('/')}/reset-password?token={token}"
