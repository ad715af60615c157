"""
Shared fixtures.

InMemoryAccountRepository mirrors AccountRepository's contract (each write
sets only its transition's fields and lands only while its filter still
matches) over a plain dict, so service and route tests exercise real state
transitions without a MongoDB server. FakeClock lets expiry and cooldown
tests move time explicitly.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from config import AppSettings, DatabaseSettings, JWTSettings
from errors import ConflictError, ValidationError
from repositories.account_repository import (
    DUPLICATE_MESSAGE,
    OTP_CYCLE_FIELDS,
    PROFILE_FIELDS,
    RESET_CYCLE_FIELDS,
)
from schemas.models.account import AccountDoc
from services.auth_service import AuthService
from services.notifier import Notifier
from services.profile_service import ProfileService


class FakeClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryAccountRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, dict] = {}

    def _load(self, doc: Optional[dict]) -> Optional[AccountDoc]:
        return AccountDoc.from_mongo(copy.deepcopy(doc)) if doc else None

    def _find(self, predicate) -> Optional[AccountDoc]:
        for doc in self.docs.values():
            if predicate(doc):
                return self._load(doc)
        return None

    @staticmethod
    def _matches(doc: dict, conditions: dict) -> bool:
        for key, expected in conditions.items():
            value = doc.get(key)
            if isinstance(expected, dict) and "$gt" in expected:
                if value is None or not value > expected["$gt"]:
                    return False
            elif value != expected:
                return False
        return True

    def _apply(self, account: AccountDoc, fields, conditions: dict) -> bool:
        if account.id is None:
            raise ValueError("account has not been inserted yet")
        problems = account.invariant_violations()
        if problems:
            raise ValidationError("Account failed validation", details=problems)
        stored = self.docs.get(account.id)
        if stored is None or not self._matches(stored, conditions):
            return False
        stored.update(copy.deepcopy(account.model_dump(include=set(fields))))
        return True

    def put(self, account: AccountDoc) -> None:
        """Overwrite the stored document; for arranging test state only."""
        self.docs[account.id] = copy.deepcopy(account.to_mongo())

    async def ensure_indexes(self) -> None:
        return None

    async def find_by_id(self, account_id) -> Optional[AccountDoc]:
        if isinstance(account_id, str):
            if not ObjectId.is_valid(account_id):
                return None
            account_id = ObjectId(account_id)
        return self._load(self.docs.get(account_id))

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        email = email.strip().lower()
        return self._find(lambda d: d["email"] == email)

    async def find_by_phone(self, phone: str) -> Optional[AccountDoc]:
        return self._find(lambda d: d.get("phone") == phone)

    async def find_by_reset_token(self, token_digest: str, now: datetime):
        return self._find(
            lambda d: self._matches(
                d,
                {"reset_token": token_digest, "reset_token_expires_at": {"$gt": now}},
            )
        )

    async def insert(self, account: AccountDoc) -> ObjectId:
        if await self.find_by_email(account.email):
            raise ConflictError(DUPLICATE_MESSAGE)
        account.id = ObjectId()
        self.docs[account.id] = copy.deepcopy(account.to_mongo())
        return account.id

    async def record_otp_issued(self, account: AccountDoc) -> bool:
        return self._apply(account, OTP_CYCLE_FIELDS, {"is_verified": False})

    async def record_otp_attempt(self, account, *, expected_attempts, otp_digest) -> None:
        conditions = {
            "is_verified": False,
            "otp_code": otp_digest,
            "otp_attempts": expected_attempts,
        }
        if not self._apply(account, ("otp_attempts",), conditions):
            raise ConflictError(
                "Another verification attempt is in progress. Please retry."
            )

    async def mark_verified(self, account, *, expected_attempts, otp_digest) -> None:
        conditions = {
            "is_verified": False,
            "otp_code": otp_digest,
            "otp_attempts": expected_attempts,
        }
        if not self._apply(account, ("is_verified",) + OTP_CYCLE_FIELDS, conditions):
            raise ConflictError(
                "Another verification attempt is in progress. Please retry."
            )

    async def record_reset_issued(self, account: AccountDoc) -> bool:
        return self._apply(account, RESET_CYCLE_FIELDS, {"is_active": True})

    async def complete_password_reset(self, account, *, token_digest, now) -> bool:
        return self._apply(
            account,
            ("password_hash",) + RESET_CYCLE_FIELDS,
            {"reset_token": token_digest, "reset_token_expires_at": {"$gt": now}},
        )

    async def update_profile(self, account: AccountDoc, fields) -> bool:
        fields = [f for f in fields if f in PROFILE_FIELDS]
        if "phone" in fields:
            holder = await self.find_by_phone(account.phone)
            if holder is not None and holder.id != account.id:
                raise ConflictError(DUPLICATE_MESSAGE)
        return self._apply(account, fields, {})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def account_repo() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def email_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.send_verification_email.return_value = True
    provider.send_welcome_email.return_value = True
    provider.send_password_reset_email.return_value = True
    return provider


def make_settings(env: str = "development") -> AppSettings:
    return AppSettings(
        env=env,
        frontend_url="http://localhost:3000",
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=JWTSettings(jwt_secret="test-secret-test-secret-test-secret"),
    )


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


@pytest.fixture
def production_settings() -> AppSettings:
    return make_settings(env="production")


@pytest.fixture
def auth_service(account_repo, email_provider, settings, clock) -> AuthService:
    return AuthService(
        repository=account_repo,
        email_provider=email_provider,
        settings=settings,
        notifier=Notifier(deferred=False),
        clock=clock,
    )


@pytest.fixture
def profile_service(account_repo) -> ProfileService:
    return ProfileService(repository=account_repo)
