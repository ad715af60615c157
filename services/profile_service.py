"""
Profile service — read, update and completeness check for the signed-in
account.

Updates go through the same normalisation as registration and persist only
the fields the request carried.
"""

from __future__ import annotations

from errors import ConflictError, NotFoundError, ValidationError
from repositories.account_repository import DUPLICATE_MESSAGE, AccountRepository
from schemas.dto.requests.profile import UpdateProfileRequest
from schemas.dto.responses.auth import AccountProfileResponse
from schemas.dto.responses.profile import ProfileCheckResponse, ProfileUpdatedResponse
from schemas.models.account import AccountDoc, Location
from services.auth_service import INVALID_LANDLINE_MESSAGE, INVALID_PHONE_MESSAGE
from shared.logging import get_logger
from shared.validators import normalize_landline, normalize_phone

log = get_logger(__name__)


class ProfileService:
    def __init__(self, repository: AccountRepository) -> None:
        self._repo = repository

    async def _load(self, account_id: str) -> AccountDoc:
        account = await self._repo.find_by_id(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    async def get_profile(self, account_id: str) -> AccountProfileResponse:
        return AccountProfileResponse.from_account(await self._load(account_id))

    async def check_profile(self, account_id: str) -> ProfileCheckResponse:
        return ProfileCheckResponse.from_account(await self._load(account_id))

    async def update_profile(
        self, account_id: str, body: UpdateProfileRequest
    ) -> ProfileUpdatedResponse:
        """Apply the fields present in *body* to the account.

        Raises:
            NotFoundError: the account no longer exists.
            ValidationError: a supplied field fails normalisation.
            ConflictError: the new phone number belongs to another account.
        """
        account = await self._load(account_id)
        supplied = body.model_fields_set
        changed: list[str] = []

        if "full_name" in supplied and body.full_name is not None:
            full_name = body.full_name.strip()
            if not full_name:
                raise ValidationError("Full name cannot be empty", field="full_name")
            account.full_name = full_name
            changed.append("full_name")

        if "phone" in supplied and body.phone is not None:
            phone = normalize_phone(body.phone)
            if phone is None:
                raise ValidationError(INVALID_PHONE_MESSAGE, field="phone")
            if phone != account.phone:
                holder = await self._repo.find_by_phone(phone)
                if holder is not None and holder.id != account.id:
                    raise ConflictError(DUPLICATE_MESSAGE, field="phone")
                account.phone = phone
                changed.append("phone")

        if "home_number" in supplied and body.home_number is not None:
            home_number = normalize_landline(body.home_number)
            if home_number is None:
                raise ValidationError(INVALID_LANDLINE_MESSAGE, field="home_number")
            account.home_number = home_number
            changed.append("home_number")

        if "location" in supplied and body.location is not None:
            account.location = Location(**body.location.model_dump())
            changed.append("location")

        if changed and not await self._repo.update_profile(account, changed):
            raise NotFoundError("User not found")

        log.info("profile_updated", account_id=str(account.id), fields=changed)
        return ProfileUpdatedResponse(
            success=True,
            message="Profile updated successfully",
            user=AccountProfileResponse.from_account(account),
        )
