"""
Profile endpoints for the bearer-token account.

GET /users/profile        — full profile
PUT /users/profile        — update name, phone, home number or location
GET /users/profile/check  — which profile fields are still missing
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_current_account_id, get_profile_service
from schemas.dto.requests.profile import UpdateProfileRequest
from schemas.dto.responses.auth import AccountProfileResponse
from schemas.dto.responses.common import ErrorResponse
from schemas.dto.responses.profile import ProfileCheckResponse, ProfileUpdatedResponse
from services.profile_service import ProfileService

_ERRORS = {code: {"model": ErrorResponse} for code in (400, 401, 404, 409)}

router = APIRouter(prefix="/users", tags=["profile"], responses=_ERRORS)


@router.get("/profile", response_model=AccountProfileResponse)
async def get_profile(
    account_id: str = Depends(get_current_account_id),
    service: ProfileService = Depends(get_profile_service),
) -> AccountProfileResponse:
    return await service.get_profile(account_id)


@router.put("/profile", response_model=ProfileUpdatedResponse)
async def update_profile(
    body: UpdateProfileRequest,
    account_id: str = Depends(get_current_account_id),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileUpdatedResponse:
    return await service.update_profile(account_id, body)


@router.get("/profile/check", response_model=ProfileCheckResponse)
async def check_profile(
    account_id: str = Depends(get_current_account_id),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileCheckResponse:
    return await service.check_profile(account_id)
