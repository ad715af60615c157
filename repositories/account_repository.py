"""
Account repository — async MongoDB access for the `accounts` collection.

All reads return AccountDoc (or None). Writes after insert are targeted
``update_one`` calls that ``$set`` only the fields one transition touched,
filtered on the state that transition started from. A write whose filter
no longer matches means a concurrent request got there first; each method
reports that to the service instead of overwriting the other request's
changes. Raw pymongo errors are translated into AppError subclasses at this
boundary so services never import pymongo.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from errors import ConflictError, ValidationError
from schemas.models.account import AccountDoc
from shared.datetime_utils import utc_now
from shared.logging import get_logger

log = get_logger(__name__)

ACCOUNTS_COLLECTION = "accounts"

OTP_CYCLE_FIELDS = ("otp_code", "otp_expires_at", "otp_attempts", "last_otp_sent_at")
RESET_CYCLE_FIELDS = ("reset_token", "reset_token_expires_at")
PROFILE_FIELDS = ("full_name", "phone", "home_number", "location")

DUPLICATE_MESSAGE = "User with this email or phone already exists"


class AccountRepository:
    def __init__(self, collection: Any) -> None:
        self._col = collection

    @classmethod
    def from_db(cls, db: Any) -> "AccountRepository":
        return cls(db[ACCOUNTS_COLLECTION])

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        await self._col.create_index(
            [("phone", ASCENDING)],
            unique=True,
            partialFilterExpression={"phone": {"$type": "string"}},
        )
        await self._col.create_index([("reset_token", ASCENDING)], sparse=True)
        await self._col.create_index([("role", ASCENDING)])
        await self._col.create_index([("is_verified", ASCENDING)])

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def find_by_id(self, account_id: str | ObjectId) -> Optional[AccountDoc]:
        if isinstance(account_id, str):
            if not ObjectId.is_valid(account_id):
                return None
            account_id = ObjectId(account_id)
        doc = await self._col.find_one({"_id": account_id})
        return AccountDoc.from_mongo(doc)

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"email": email.strip().lower()})
        return AccountDoc.from_mongo(doc)

    async def find_by_phone(self, phone: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"phone": phone})
        return AccountDoc.from_mongo(doc)

    async def find_by_reset_token(
        self, token_digest: str, now: datetime
    ) -> Optional[AccountDoc]:
        """Find the account holding *token_digest* whose reset window is still open."""
        doc = await self._col.find_one(
            {
                "reset_token": token_digest,
                "reset_token_expires_at": {"$gt": now},
            }
        )
        return AccountDoc.from_mongo(doc)

    # ── Writes ────────────────────────────────────────────────────────────────

    async def insert(self, account: AccountDoc) -> ObjectId:
        """Insert a new account and set its id.

        Raises:
            ConflictError: email or phone already registered.
        """
        now = utc_now()
        if account.created_at is None:
            account.created_at = now
        account.updated_at = now
        try:
            result = await self._col.insert_one(account.to_mongo())
        except DuplicateKeyError as e:
            log.warning("account_insert_duplicate", error=str(e))
            raise ConflictError(DUPLICATE_MESSAGE) from e
        account.id = result.inserted_id
        return result.inserted_id

    async def _apply(
        self,
        account: AccountDoc,
        fields: Iterable[str],
        conditions: dict,
    ) -> bool:
        """``$set`` *fields* from *account* where ``_id`` and *conditions* match.

        Returns False when nothing matched.

        Raises:
            ValidationError: the account breaks a credential-cycle invariant.
        """
        if account.id is None:
            raise ValueError("account has not been inserted yet")

        problems = account.invariant_violations()
        if problems:
            raise ValidationError("Account failed validation", details=problems)

        account.updated_at = utc_now()
        changes = account.model_dump(include=set(fields) | {"updated_at"})
        result = await self._col.update_one(
            {"_id": account.id, **conditions}, {"$set": changes}
        )
        return result.matched_count == 1

    async def record_otp_issued(self, account: AccountDoc) -> bool:
        """Persist a freshly issued OTP cycle unless the account got verified meanwhile."""
        return await self._apply(account, OTP_CYCLE_FIELDS, {"is_verified": False})

    async def record_otp_attempt(
        self, account: AccountDoc, *, expected_attempts: int, otp_digest: str
    ) -> None:
        """Persist a spent attempt against the cycle identified by *otp_digest*.

        The write only lands while the stored counter still equals
        *expected_attempts*, so two concurrent guesses cannot both spend the
        same attempt.

        Raises:
            ConflictError: another request changed the cycle first.
        """
        matched = await self._apply(
            account,
            ("otp_attempts",),
            {
                "is_verified": False,
                "otp_code": otp_digest,
                "otp_attempts": expected_attempts,
            },
        )
        if not matched:
            self._log_lost_race(account, expected_attempts)
            raise ConflictError(
                "Another verification attempt is in progress. Please retry."
            )

    async def mark_verified(
        self, account: AccountDoc, *, expected_attempts: int, otp_digest: str
    ) -> None:
        """Flip the account to verified and clear the OTP cycle it was verified with.

        Raises:
            ConflictError: the cycle or its attempt counter changed first.
        """
        matched = await self._apply(
            account,
            ("is_verified",) + OTP_CYCLE_FIELDS,
            {
                "is_verified": False,
                "otp_code": otp_digest,
                "otp_attempts": expected_attempts,
            },
        )
        if not matched:
            self._log_lost_race(account, expected_attempts)
            raise ConflictError(
                "Another verification attempt is in progress. Please retry."
            )

    async def record_reset_issued(self, account: AccountDoc) -> bool:
        """Persist a new reset cycle unless the account was deactivated meanwhile."""
        return await self._apply(account, RESET_CYCLE_FIELDS, {"is_active": True})

    async def complete_password_reset(
        self, account: AccountDoc, *, token_digest: str, now: datetime
    ) -> bool:
        """Store the new password hash and clear the reset cycle in one write.

        Matches only while *token_digest* is still the stored, unexpired
        token, so a token can be spent once no matter how many requests
        carry it. Returns False when the token was already spent or expired.
        """
        return await self._apply(
            account,
            ("password_hash",) + RESET_CYCLE_FIELDS,
            {
                "reset_token": token_digest,
                "reset_token_expires_at": {"$gt": now},
            },
        )

    async def update_profile(self, account: AccountDoc, fields: Iterable[str]) -> bool:
        """Persist the profile *fields* that changed.

        Raises:
            ConflictError: the new phone number belongs to another account.
        """
        fields = [f for f in fields if f in PROFILE_FIELDS]
        try:
            return await self._apply(account, fields, {})
        except DuplicateKeyError as e:
            log.warning("account_update_duplicate", account_id=str(account.id))
            raise ConflictError(DUPLICATE_MESSAGE) from e

    def _log_lost_race(self, account: AccountDoc, expected_attempts: int) -> None:
        log.warning(
            "account_update_conflict",
            account_id=str(account.id),
            expected_attempts=expected_attempts,
        )
