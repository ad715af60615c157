"""
Input validators — framework-agnostic, pure functions.

All validators are stateless; policy values (minimum password length,
blocked email domains) are passed in as arguments so configuration stays
in the settings layer.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

import validators as _validators

_MOBILE_RE = re.compile(r"^(\+251|251|0)?(9[0-9])([0-9]{7})$")
_LANDLINE_RE = re.compile(r"^(\+251|251|0)?([1-5][0-9])([0-9]{7})$")


def normalize_email(email: str) -> str:
    """Trim and lower-case *email*; addresses are matched case-insensitively."""
    return (email or "").strip().lower()


def validate_email(
    email: str,
    blocked_domains: Sequence[str] = (),
) -> bool:
    """Return True if *email* is well-formed and not on a blocked domain.

    Args:
        email: Address to check (normalised before checking).
        blocked_domains: Throw-away domains that are refused outright.
    """
    email = normalize_email(email)
    if not _validators.email(email):
        return False
    domain = email.rsplit("@", 1)[1]
    return domain not in {d.lower() for d in blocked_domains}


def validate_password(password: str, min_length: int = 8) -> Tuple[bool, List[str]]:
    """
    Validate a password against the account password policy.

    Rules:
    - At least *min_length* characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Returns:
        Tuple[bool, List[str]]: (is_valid, missing_requirements)
    """
    if not password:
        return False, ["Password is required"]

    missing = []
    if len(password) < min_length:
        missing.append(f"At least {min_length} characters")
    if not re.search(r"[A-Z]", password):
        missing.append("At least one uppercase letter")
    if not re.search(r"[a-z]", password):
        missing.append("At least one lowercase letter")
    if not re.search(r"[0-9]", password):
        missing.append("At least one number")

    return not missing, missing


def _to_e164(cleaned: str) -> str:
    if cleaned.startswith("+251"):
        return cleaned
    if cleaned.startswith("251"):
        return "+" + cleaned
    if cleaned.startswith("0"):
        return "+251" + cleaned[1:]
    return "+251" + cleaned


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Normalise an Ethiopian mobile number to ``+2519XXXXXXXX``.

    Spaces and dashes are stripped. Returns None when *phone* is empty or
    not a valid mobile number.
    """
    if not phone:
        return None
    cleaned = re.sub(r"[\s-]+", "", phone)
    if not _MOBILE_RE.match(cleaned):
        return None
    return _to_e164(cleaned)


def normalize_landline(number: Optional[str]) -> Optional[str]:
    """Normalise an Ethiopian landline; ``""`` for empty, None when invalid."""
    if not number or not number.strip():
        return ""
    cleaned = re.sub(r"[\s-]+", "", number)
    if not _LANDLINE_RE.match(cleaned):
        return None
    return _to_e164(cleaned)


def format_phone(phone: Optional[str]) -> str:
    """Render a stored ``+251`` number in local display form, e.g. ``09 123 456 78``."""
    if not phone:
        return ""
    local = phone.replace("+251", "0", 1)
    match = re.fullmatch(r"(\d{2})(\d{3})(\d{3})(\d{2,3})", local)
    if not match:
        return local
    return " ".join(match.groups())
