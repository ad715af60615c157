"""
Account verification state — OTP and password-reset credential cycles.

Free functions over an explicit AccountDoc. None of them touch the database,
the clock or the network: the caller passes ``now`` and a VerificationPolicy,
then persists the mutated account itself. That keeps every transition
testable with a simulated clock.

OTP cycle states::

    Unverified-NoCycle --issue_otp--> Unverified-CycleActive
    Unverified-CycleActive --issue_otp--> Unverified-CycleActive (fresh code)
    Unverified-CycleActive --verify_otp(match)--> Verified

Verified is absorbing. An expired or exhausted cycle stays on the document
until a new code is issued.

The reset cycle is independent of the OTP cycle and lives on the same
document.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from errors import (
    AccountInactiveError,
    AlreadyVerifiedError,
    AttemptsExceededError,
    InvalidCodeError,
    InvalidOrExpiredTokenError,
    NoActiveCycleError,
    OtpExpiredError,
    WeakPasswordError,
)
from schemas.models.account import AccountDoc
from shared.crypto import digests_match, hash_password, hash_token
from shared.generators import generate_otp_code, generate_reset_token
from shared.validators import validate_password


@dataclass(frozen=True)
class VerificationPolicy:
    """Tunable limits for both credential cycles."""

    otp_length: int = 6
    otp_ttl: timedelta = timedelta(minutes=10)
    otp_max_attempts: int = 5
    otp_resend_cooldown: timedelta = timedelta(seconds=60)
    reset_token_ttl: timedelta = timedelta(hours=1)
    password_min_length: int = 8


DEFAULT_POLICY = VerificationPolicy()


# ── OTP cycle ─────────────────────────────────────────────────────────────────


def issue_otp(
    account: AccountDoc,
    policy: VerificationPolicy = DEFAULT_POLICY,
    *,
    now: datetime,
) -> str:
    """Start a fresh OTP cycle on *account* and return the plaintext code.

    Supersedes any outstanding cycle and resets the attempt counter. The
    resend cooldown is not checked here; callers gate re-issue with
    can_resend().

    Raises:
        AlreadyVerifiedError: the account has already completed verification.
    """
    if account.is_verified:
        raise AlreadyVerifiedError("Email is already verified")

    code = generate_otp_code(policy.otp_length)
    account.otp_code = hash_token(code)
    account.otp_expires_at = now + policy.otp_ttl
    account.otp_attempts = 0
    account.last_otp_sent_at = now
    return code


def verify_otp(
    account: AccountDoc,
    submitted_code: str,
    policy: VerificationPolicy = DEFAULT_POLICY,
    *,
    now: datetime,
) -> None:
    """Check *submitted_code* against the outstanding OTP cycle.

    Expiry and the attempt budget are checked before the code is looked at.
    A wrong code still consumes an attempt, so the caller must persist the
    account whether this returns or raises.

    Raises:
        NoActiveCycleError: no code has been issued (or it was consumed).
        OtpExpiredError: the code's lifetime has passed.
        AttemptsExceededError: the attempt budget for this code is spent.
        InvalidCodeError: the code does not match.
    """
    if not account.has_active_otp_cycle:
        raise NoActiveCycleError("No OTP found. Please request a new one.")

    if now > account.otp_expires_at:
        raise OtpExpiredError("OTP has expired. Please request a new one.")

    if account.otp_attempts >= policy.otp_max_attempts:
        raise AttemptsExceededError(
            "Too many OTP attempts. Please request a new OTP."
        )

    account.otp_attempts += 1

    if not digests_match(submitted_code or "", account.otp_code):
        raise InvalidCodeError(
            "Invalid OTP code.",
            details={
                "attempts_remaining": policy.otp_max_attempts - account.otp_attempts
            },
        )

    account.is_verified = True
    account.otp_code = None
    account.otp_expires_at = None
    account.otp_attempts = 0


def can_resend(
    account: AccountDoc,
    policy: VerificationPolicy = DEFAULT_POLICY,
    *,
    now: datetime,
) -> bool:
    """True when no OTP was sent yet or the resend cooldown has fully elapsed."""
    if account.last_otp_sent_at is None:
        return True
    return now - account.last_otp_sent_at > policy.otp_resend_cooldown


def resend_wait_seconds(
    account: AccountDoc,
    policy: VerificationPolicy = DEFAULT_POLICY,
    *,
    now: datetime,
) -> int:
    """Whole seconds until can_resend() turns true (0 when it already is)."""
    if can_resend(account, policy, now=now):
        return 0
    remaining = account.last_otp_sent_at + policy.otp_resend_cooldown - now
    return max(1, int(remaining.total_seconds()) + 1)


# ── Password reset cycle ──────────────────────────────────────────────────────


def issue_reset_token(
    account: AccountDoc,
    policy: VerificationPolicy = DEFAULT_POLICY,
    *,
    now: datetime,
) -> str:
    """Start a password-reset cycle on *account* and return the plaintext token.

    Raises:
        AccountInactiveError: the account has been deactivated.
    """
    if not account.is_active:
        raise AccountInactiveError("Account is deactivated. Please contact support.")

    token = generate_reset_token()
    account.reset_token = hash_token(token)
    account.reset_token_expires_at = now + policy.reset_token_ttl
    return token


def reset_token_is_valid(account: AccountDoc, token: str, *, now: datetime) -> bool:
    """True if *token* matches the account's outstanding, unexpired reset token."""
    if account.reset_token is None or account.reset_token_expires_at is None:
        return False
    if account.reset_token_expires_at <= now:
        return False
    return digests_match(token or "", account.reset_token)


def check_password_policy(
    password: str,
    policy: VerificationPolicy = DEFAULT_POLICY,
    field: str = "password",
) -> None:
    """Raise WeakPasswordError listing every unmet password requirement."""
    is_valid, missing = validate_password(password, policy.password_min_length)
    if not is_valid:
        raise WeakPasswordError(
            "Password does not meet requirements",
            field=field,
            details={"missing_requirements": missing},
        )


def consume_reset_token(
    account: Optional[AccountDoc],
    token: str,
    new_password: str,
    policy: VerificationPolicy = DEFAULT_POLICY,
    *,
    now: datetime,
    hasher: Callable[[str], str] = hash_password,
) -> AccountDoc:
    """Spend *token* to replace the account's password.

    *account* is whatever the record store found for the token (None when
    nothing matched). The token is re-checked here so an in-memory or stale
    lookup cannot widen what is accepted.

    Raises:
        InvalidOrExpiredTokenError: no account, wrong token, or token expired.
        WeakPasswordError: *new_password* fails the password policy; the
            token is left intact so the user can resubmit.
    """
    if account is None or not reset_token_is_valid(account, token, now=now):
        raise InvalidOrExpiredTokenError(
            "Invalid or expired reset token. Please request a new password reset."
        )

    check_password_policy(new_password, policy, field="new_password")

    account.password_hash = hasher(new_password)
    account.reset_token = None
    account.reset_token_expires_at = None
    return account
