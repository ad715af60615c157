"""
Account document model.

Maps to the `accounts` MongoDB collection.

Besides the profile fields, an account owns two independent credential
cycles:
- the email-verification OTP cycle (otp_code, otp_expires_at, otp_attempts,
  last_otp_sent_at)
- the password-reset cycle (reset_token, reset_token_expires_at)

otp_code and reset_token hold SHA-256 digests; the plaintext only ever
leaves the process through the notification email (or, outside production,
the API response).
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc
from shared.validators import normalize_email

ROLE_STUDENT = "student"

Role = Literal["student", "tutor", "admin"]

# Never serialised into an API response
SECRET_FIELDS = frozenset(
    {
        "password_hash",
        "otp_code",
        "otp_expires_at",
        "otp_attempts",
        "last_otp_sent_at",
        "reset_token",
        "reset_token_expires_at",
    }
)


class Location(BaseModel):
    """Embedded address sub-document."""

    kebele: str
    woreda: str
    city: str = "Dire Dawa"
    specific_address: str = ""


class AccountDoc(MongoBaseModel):
    """Document model for the `accounts` collection."""

    email: str
    password_hash: str
    full_name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = None
    home_number: str = ""
    role: Role = ROLE_STUDENT
    location: Optional[Location] = None
    profile_image: str = ""

    is_verified: bool = False
    is_active: bool = True

    otp_code: Optional[str] = None
    otp_expires_at: Optional[datetime] = None
    otp_attempts: int = Field(default=0, ge=0)
    last_otp_sent_at: Optional[datetime] = None

    reset_token: Optional[str] = None
    reset_token_expires_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("full_name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator(
        "otp_expires_at",
        "last_otp_sent_at",
        "reset_token_expires_at",
        "created_at",
        "updated_at",
    )
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def _check_cycle_pairs(self) -> "AccountDoc":
        problems = self.invariant_violations()
        if problems:
            raise ValueError("; ".join(problems))
        return self

    def invariant_violations(self) -> list[str]:
        """Return the credential-cycle pairing rules this document breaks."""
        problems = []
        if (self.otp_code is None) != (self.otp_expires_at is None):
            problems.append("otp_code and otp_expires_at must be set together")
        if (self.reset_token is None) != (self.reset_token_expires_at is None):
            problems.append(
                "reset_token and reset_token_expires_at must be set together"
            )
        if self.otp_attempts < 0:
            problems.append("otp_attempts must be non-negative")
        return problems

    @property
    def has_active_otp_cycle(self) -> bool:
        return self.otp_code is not None and self.otp_expires_at is not None

    def missing_profile_fields(self) -> dict[str, bool]:
        """Which of the fields a complete profile needs are still empty."""
        return {
            "full_name": not self.full_name,
            "phone": not self.phone,
            "kebele": not (self.location and self.location.kebele),
            "woreda": not (self.location and self.location.woreda),
        }

    @property
    def profile_complete(self) -> bool:
        return not any(self.missing_profile_fields().values())
