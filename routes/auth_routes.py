"""
Authentication endpoints.

POST /auth/register         — create account, send verification OTP
POST /auth/login            — exchange credentials for an access token
POST /auth/verify-email     — submit the OTP
POST /auth/resend-otp       — fresh OTP, once per cooldown window
POST /auth/forgot-password  — send reset link (enumeration-safe)
POST /auth/reset-password   — spend reset token, set new password
GET  /auth/me               — profile of the bearer-token account
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from dependencies import get_auth_service, get_current_account_id
from schemas.dto.requests.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendOtpRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from schemas.dto.responses.auth import (
    AccountProfileResponse,
    AuthResponse,
    ForgotPasswordResponse,
    OtpSentResponse,
    RegisterResponse,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from services.auth_service import AuthService

_ERRORS = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 429)
}

router = APIRouter(prefix="/auth", tags=["auth"], responses=_ERRORS)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    return await service.register(body)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await service.login(body)


@router.post("/verify-email", response_model=AuthResponse)
async def verify_email(
    body: VerifyEmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await service.verify_email(body)


@router.post("/resend-otp", response_model=OtpSentResponse)
async def resend_otp(
    body: ResendOtpRequest,
    service: AuthService = Depends(get_auth_service),
) -> OtpSentResponse:
    return await service.resend_otp(body)


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> ForgotPasswordResponse:
    return await service.request_password_reset(body)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    return await service.reset_password(body)


@router.get("/me", response_model=AccountProfileResponse)
async def me(
    account_id: str = Depends(get_current_account_id),
    service: AuthService = Depends(get_auth_service),
) -> AccountProfileResponse:
    return await service.get_profile(account_id)
