"""
Authentication service — registration, login, email verification and
password reset for marketplace accounts.

Each public method reads one account, runs the matching transition from
services.verification, persists the account and (when the transition
produced a credential) hands the email to the Notifier. Plain codes and
tokens only leave this layer through the email or, outside production, the
response body.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from config import AppSettings
from errors import (
    AccountInactiveError,
    AlreadyVerifiedError,
    AuthenticationError,
    ConflictError,
    EmailNotVerifiedError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    RateLimitError,
    StateError,
    ValidationError,
)
from infrastructure.email.protocol import EmailProvider
from repositories.account_repository import AccountRepository
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
from schemas.dto.responses.common import MessageResponse
from schemas.models.account import AccountDoc, Location
from services.notifier import Notifier
from services.verification import (
    can_resend,
    check_password_policy,
    consume_reset_token,
    issue_otp,
    issue_reset_token,
    resend_wait_seconds,
    verify_otp,
)
from shared.crypto import hash_password, hash_token, verify_password
from shared.datetime_utils import utc_now
from shared.jwt_utils import generate_access_jwt
from shared.logging import get_logger
from shared.validators import (
    normalize_email,
    normalize_landline,
    normalize_phone,
    validate_email,
)

log = get_logger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If your email is registered, you will receive a password reset link."
)
INVALID_PHONE_MESSAGE = (
    "Please use a valid Ethiopian mobile number "
    "(e.g., 0912345678, +251912345678, 251912345678)"
)
INVALID_LANDLINE_MESSAGE = (
    "Please use a valid Ethiopian landline number or leave it empty"
)


class AuthService:
    def __init__(
        self,
        repository: AccountRepository,
        email_provider: EmailProvider,
        settings: AppSettings,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utc_now,
        hasher: Callable[[str], str] = hash_password,
    ) -> None:
        self._repo = repository
        self._email = email_provider
        self._settings = settings
        self._policy = settings.verification.policy()
        self._notifier = notifier or Notifier()
        self._clock = clock
        self._hasher = hasher

    def _expose_secrets(self) -> bool:
        return not self._settings.is_production

    def _access_token(self, account: AccountDoc) -> str:
        return generate_access_jwt(str(account.id), self._settings.jwt, role=account.role)

    async def _send_verification(self, account: AccountDoc, otp_code: str) -> None:
        await self._notifier.dispatch(
            "verification_email",
            lambda: self._email.send_verification_email(
                account.email, account.full_name, otp_code
            ),
            account_id=str(account.id),
        )

    # ── Registration & login ──────────────────────────────────────────────────

    async def register(self, body: RegisterRequest) -> RegisterResponse:
        email = normalize_email(body.email)
        if not validate_email(email, self._settings.verification.blocked_email_domains):
            raise ValidationError(
                "Please use a valid email address from a legitimate provider",
                field="email",
            )

        check_password_policy(body.password, self._policy, field="password")

        phone = normalize_phone(body.phone)
        if phone is None:
            raise ValidationError(INVALID_PHONE_MESSAGE, field="phone")

        home_number = normalize_landline(body.home_number)
        if home_number is None:
            raise ValidationError(INVALID_LANDLINE_MESSAGE, field="home_number")

        if await self._repo.find_by_email(email) or await self._repo.find_by_phone(
            phone
        ):
            raise ConflictError("User with this email or phone already exists")

        account = AccountDoc(
            email=email,
            password_hash=self._hasher(body.password),
            full_name=body.full_name,
            phone=phone,
            home_number=home_number,
            role=body.role,
            location=Location(**body.location.model_dump()) if body.location else None,
        )
        otp_code = issue_otp(account, self._policy, now=self._clock())
        await self._repo.insert(account)

        log.info("account_registered", account_id=str(account.id), role=account.role)
        await self._send_verification(account, otp_code)

        return RegisterResponse(
            user=AccountProfileResponse.from_account(account),
            requires_verification=True,
            otp=otp_code if self._expose_secrets() else None,
        )

    async def login(self, body: LoginRequest) -> AuthResponse:
        account = await self._repo.find_by_email(body.email)
        if account is None or not verify_password(body.password, account.password_hash):
            log.warning("login_failed", reason="invalid_credentials")
            raise AuthenticationError("Invalid email or password")

        if not account.is_active:
            raise AccountInactiveError("Account is deactivated. Please contact support.")

        if not account.is_verified:
            raise EmailNotVerifiedError(
                "Please verify your email before logging in. "
                "Check your email for the verification code."
            )

        log.info("login_success", account_id=str(account.id))
        return AuthResponse(
            access_token=self._access_token(account),
            user=AccountProfileResponse.from_account(account),
        )

    async def get_profile(self, account_id: str) -> AccountProfileResponse:
        account = await self._repo.find_by_id(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return AccountProfileResponse.from_account(account)

    # ── Email verification ────────────────────────────────────────────────────

    async def verify_email(self, body: VerifyEmailRequest) -> AuthResponse:
        account = await self._repo.find_by_email(body.email)
        if account is None:
            raise NotFoundError("User not found")
        if account.is_verified:
            raise AlreadyVerifiedError("Email is already verified")

        otp_digest = account.otp_code
        attempts_before = account.otp_attempts
        try:
            verify_otp(account, body.otp.strip(), self._policy, now=self._clock())
        except StateError as e:
            # A wrong code spends an attempt; persist it before reporting.
            if account.otp_attempts != attempts_before:
                await self._repo.record_otp_attempt(
                    account, expected_attempts=attempts_before, otp_digest=otp_digest
                )
            log.warning(
                "email_verification_failed",
                account_id=str(account.id),
                reason=e.error_code,
                attempts=account.otp_attempts,
            )
            raise

        await self._repo.mark_verified(
            account, expected_attempts=attempts_before, otp_digest=otp_digest
        )
        log.info("email_verified", account_id=str(account.id))

        await self._notifier.dispatch(
            "welcome_email",
            lambda: self._email.send_welcome_email(account.email, account.full_name),
            account_id=str(account.id),
        )

        return AuthResponse(
            access_token=self._access_token(account),
            user=AccountProfileResponse.from_account(account),
        )

    async def resend_otp(self, body: ResendOtpRequest) -> OtpSentResponse:
        account = await self._repo.find_by_email(body.email)
        if account is None:
            raise NotFoundError("User not found")
        if account.is_verified:
            raise AlreadyVerifiedError("Email is already verified")

        now = self._clock()
        if not can_resend(account, self._policy, now=now):
            wait = resend_wait_seconds(account, self._policy, now=now)
            log.warning("otp_resend_rate_limited", account_id=str(account.id))
            raise RateLimitError(
                f"Please wait {wait} seconds before requesting a new OTP",
                details={"retry_after": wait},
            )

        otp_code = issue_otp(account, self._policy, now=now)
        if not await self._repo.record_otp_issued(account):
            log.warning("otp_reissue_after_verification", account_id=str(account.id))
            raise AlreadyVerifiedError("Email is already verified")
        log.info("otp_reissued", account_id=str(account.id))
        await self._send_verification(account, otp_code)

        return OtpSentResponse(
            success=True,
            message="New verification code sent",
            expires_in=int(self._policy.otp_ttl.total_seconds()),
            otp=otp_code if self._expose_secrets() else None,
        )

    # ── Password reset ────────────────────────────────────────────────────────

    async def request_password_reset(
        self, body: ForgotPasswordRequest
    ) -> ForgotPasswordResponse:
        """Issue a reset token if the email belongs to an account.

        Unknown and deactivated accounts get the same response body as a
        registered one (minus the dev-only token), and the email goes out
        through the deferred notifier, so the caller cannot tell whether the
        address is registered or in what state.
        """
        generic = ForgotPasswordResponse(success=True, message=FORGOT_PASSWORD_MESSAGE)

        account = await self._repo.find_by_email(body.email)
        if account is None:
            log.info("password_reset_requested_unknown_email")
            return generic

        try:
            token = issue_reset_token(account, self._policy, now=self._clock())
        except AccountInactiveError:
            log.info("password_reset_requested_inactive", account_id=str(account.id))
            return generic

        if not await self._repo.record_reset_issued(account):
            log.info("password_reset_requested_inactive", account_id=str(account.id))
            return generic

        reset_url = self._settings.reset_url(token)
        log.info("password_reset_issued", account_id=str(account.id))
        await self._notifier.dispatch(
            "password_reset_email",
            lambda: self._email.send_password_reset_email(
                account.email, account.full_name, reset_url
            ),
            account_id=str(account.id),
        )

        if not self._expose_secrets():
            return generic
        return ForgotPasswordResponse(
            success=True,
            message=FORGOT_PASSWORD_MESSAGE,
            reset_token=token,
            reset_url=reset_url,
        )

    async def reset_password(self, body: ResetPasswordRequest) -> MessageResponse:
        now = self._clock()
        token_digest = hash_token(body.token)
        account = await self._repo.find_by_reset_token(token_digest, now)
        consume_reset_token(
            account,
            body.token,
            body.new_password,
            self._policy,
            now=now,
            hasher=self._hasher,
        )
        # A concurrent request may have spent the same token since the lookup.
        if not await self._repo.complete_password_reset(
            account, token_digest=token_digest, now=now
        ):
            log.warning("password_reset_token_already_spent", account_id=str(account.id))
            raise InvalidOrExpiredTokenError(
                "Invalid or expired reset token. Please request a new password reset."
            )
        log.info("password_reset_completed", account_id=str(account.id))
        return MessageResponse(
            success=True,
            message="Password reset successfully! You can now login with your new password.",
        )
