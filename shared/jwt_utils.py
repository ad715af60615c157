"""
Access-token helpers built on PyJWT.

RS256 is used when both keys are configured, HS256 with ``jwt_secret``
otherwise.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from config import JWTSettings


def _signing_material(settings: JWTSettings) -> tuple[Any, Any, str]:
    if settings.use_rs256:
        # Support keys provided via env with literal \n sequences
        priv = settings.jwt_private_key.replace("\\n", "\n").encode("utf-8")
        pub = settings.jwt_public_key.replace("\\n", "\n").encode("utf-8")
        return priv, pub, "RS256"
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET must be set when RS256 keys are not provided")
    return settings.jwt_secret, settings.jwt_secret, "HS256"


def generate_access_jwt(
    account_id: str,
    settings: JWTSettings,
    *,
    role: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    private_key, _, algorithm = _signing_material(settings)
    now = now or datetime.now(timezone.utc)
    claims = {
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "sub": str(account_id),
        "iat": int(now.timestamp()),
        "exp": int(
            (now + timedelta(seconds=settings.access_token_ttl_seconds)).timestamp()
        ),
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, private_key, algorithm=algorithm)


def verify_access_jwt(token: str, settings: JWTSettings) -> dict:
    """Decode and validate *token*; raises ``jwt.InvalidTokenError`` on any failure."""
    _, public_key, algorithm = _signing_material(settings)
    return jwt.decode(
        token,
        public_key,
        algorithms=[algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )
