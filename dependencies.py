"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Long-lived objects (database handle, email
provider, notifier) are created once in the app lifespan and read off
app.state; per-request objects (repository, service) are built here.
"""

from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import AppSettings
from errors import AuthenticationError
from repositories.account_repository import AccountRepository
from services.auth_service import AuthService
from services.profile_service import ProfileService
from shared.jwt_utils import verify_access_jwt

_bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


async def get_account_repository(db=Depends(get_db)) -> AccountRepository:
    return AccountRepository.from_db(db)


async def get_auth_service(
    request: Request,
    repository: AccountRepository = Depends(get_account_repository),
    settings: AppSettings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        repository=repository,
        email_provider=request.app.state.email_provider,
        settings=settings,
        notifier=request.app.state.notifier,
    )


async def get_profile_service(
    repository: AccountRepository = Depends(get_account_repository),
) -> ProfileService:
    return ProfileService(repository=repository)


async def get_current_account_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    settings: AppSettings = Depends(get_settings),
) -> str:
    """Resolve the bearer JWT to an account id, or raise AuthenticationError."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")
    try:
        claims = verify_access_jwt(credentials.credentials, settings.jwt)
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Not authorized, token failed") from e
    return str(claims["sub"])
