"""
Response DTOs for authentication endpoints.

AccountProfileResponse — public view of an account (register/login/verify/me)
RegisterResponse       — POST /auth/register  (201)
AuthResponse           — POST /auth/login, POST /auth/verify-email  (200)
OtpSentResponse        — POST /auth/resend-otp  (200)
ForgotPasswordResponse — POST /auth/forgot-password  (200)

``otp`` / ``reset_token`` / ``reset_url`` are only populated outside
production; they are always present as keys so the response shape does not
depend on whether an account was found.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.account import SECRET_FIELDS, AccountDoc
from shared.validators import format_phone


class LocationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kebele: str
    woreda: str
    city: str
    specific_address: str


class AccountProfileResponse(BaseModel):
    """Account shape shared by register/login/verify-email/me. Never carries secrets."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    full_name: str
    role: str
    phone: str
    home_number: str
    location: Optional[LocationResponse] = None
    profile_image: str
    is_verified: bool

    @classmethod
    def from_account(cls, account: AccountDoc) -> "AccountProfileResponse":
        data = account.model_dump(exclude=set(SECRET_FIELDS))
        data["id"] = str(account.id)
        data["phone"] = format_phone(account.phone)
        data["home_number"] = format_phone(account.home_number)
        return cls.model_validate(data)


class RegisterResponse(BaseModel):
    """Response body for POST /auth/register (201)."""

    model_config = ConfigDict(populate_by_name=True)

    user: AccountProfileResponse
    requires_verification: bool
    otp: Optional[str] = None


class AuthResponse(BaseModel):
    """Response body for POST /auth/login and POST /auth/verify-email (200)."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    user: AccountProfileResponse


class OtpSentResponse(BaseModel):
    """Response body for POST /auth/resend-otp (200)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    expires_in: int
    otp: Optional[str] = None


class ForgotPasswordResponse(BaseModel):
    """Response body for POST /auth/forgot-password (200)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    reset_token: Optional[str] = None
    reset_url: Optional[str] = None
