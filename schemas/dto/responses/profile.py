"""
Response DTOs for the signed-in account's profile.

ProfileUpdatedResponse — PUT /users/profile  (200)
ProfileCheckResponse   — GET /users/profile/check  (200)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.auth import AccountProfileResponse, LocationResponse
from schemas.models.account import AccountDoc
from shared.validators import format_phone


class ProfileUpdatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    user: AccountProfileResponse


class ProfileCheckResponse(BaseModel):
    """Which profile fields the frontend still has to collect."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: str
    phone: str
    location: Optional[LocationResponse] = None
    profile_complete: bool
    missing_fields: dict[str, bool]

    @classmethod
    def from_account(cls, account: AccountDoc) -> "ProfileCheckResponse":
        location = None
        if account.location is not None:
            location = LocationResponse(**account.location.model_dump())
        return cls(
            full_name=account.full_name,
            phone=format_phone(account.phone),
            location=location,
            profile_complete=account.profile_complete,
            missing_fields=account.missing_profile_fields(),
        )
