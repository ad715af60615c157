"""
Random code and token generators — pure, side-effect-free functions.

Every generator here feeds a credential (OTP or reset token), so all of them
draw from the ``secrets`` module, never from ``random``.
"""

from __future__ import annotations

import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def generate_otp_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric OTP.

    Leading zeros are kept, so every value in ``000000``–``999999`` is
    equally likely for the default length.

    Args:
        length: Number of digits (default 6).

    Returns:
        String of random decimal digits.
    """
    return "".join(secrets.choice(string.digits) for _ in range(length))


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lower-case base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_reset_token(length: int = 32) -> str:
    """Generate an unguessable password-reset token.

    The random part comes from ``secrets.token_urlsafe``; a base36
    millisecond timestamp is appended so two tokens issued by the same
    process can never collide.

    Args:
        length: Number of random bytes before base64 encoding (default 32).

    Returns:
        URL-safe token string.
    """
    return secrets.token_urlsafe(length) + to_base36(time.time_ns() // 1_000_000)
