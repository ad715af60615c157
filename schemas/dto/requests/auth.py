"""
Request DTOs for authentication endpoints.

RegisterRequest        — POST /auth/register
LoginRequest           — POST /auth/login
VerifyEmailRequest     — POST /auth/verify-email
ResendOtpRequest       — POST /auth/resend-otp
ForgotPasswordRequest  — POST /auth/forgot-password
ResetPasswordRequest   — POST /auth/reset-password
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LocationRequest(BaseModel):
    """Address block supplied at registration."""

    model_config = ConfigDict(populate_by_name=True)

    kebele: str = Field(min_length=1)
    woreda: str = Field(min_length=1)
    city: str = "Dire Dawa"
    specific_address: str = ""


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register.

    ``admin`` is not self-assignable; admins are promoted out of band.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str
    full_name: str = Field(min_length=1, max_length=100)
    phone: str
    home_number: str = ""
    role: Literal["student", "tutor"] = "student"
    location: Optional[LocationRequest] = None


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class VerifyEmailRequest(BaseModel):
    """Request body for POST /auth/verify-email.

    ``otp`` is the 6-digit code sent to the account's email address.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=1)
    otp: str = Field(min_length=1)


class ResendOtpRequest(BaseModel):
    """Request body for POST /auth/resend-otp."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=1)


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /auth/forgot-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=1)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    new_password: str = Field(min_length=1)
