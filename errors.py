"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

StateError covers the OTP cycle outcomes (no active cycle, expired,
attempts exhausted, wrong code, already verified). Every one of them is
recoverable by the caller restarting the cycle or retrying.

Non-AppError exceptions bubble up as 500s (with Sentry reporting in production).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class WeakPasswordError(ValidationError):
    error_code = "weak_password"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"


class AccountInactiveError(ForbiddenError):
    error_code = "account_inactive"


class EmailNotVerifiedError(ForbiddenError):
    error_code = "email_not_verified"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class InvalidOrExpiredTokenError(NotFoundError):
    # Reported as a bad request so a caller cannot tell "never existed"
    # from "expired" or "already used".
    status_code = 400
    error_code = "invalid_or_expired_token"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"


class StateError(AppError):
    status_code = 400
    error_code = "invalid_state"


class NoActiveCycleError(StateError):
    error_code = "no_active_cycle"


class OtpExpiredError(StateError):
    error_code = "otp_expired"


class AttemptsExceededError(StateError):
    error_code = "attempts_exceeded"


class InvalidCodeError(StateError):
    error_code = "invalid_code"


class AlreadyVerifiedError(StateError):
    error_code = "already_verified"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        field = None
        if errors and errors[0].get("loc"):
            field = str(errors[0]["loc"][-1])
        err = ValidationError(
            "request validation failed",
            field=field,
            details=[e.get("msg") for e in errors],
        )
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
