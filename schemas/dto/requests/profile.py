"""
Request DTOs for the signed-in account's profile.

UpdateProfileRequest — PUT /users/profile
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.dto.requests.auth import LocationRequest


class UpdateProfileRequest(BaseModel):
    """Request body for PUT /users/profile.

    Every field is optional; only the ones present in the body are applied.
    ``home_number`` may be sent as ``""`` to clear it.
    """

    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = None
    home_number: Optional[str] = None
    location: Optional[LocationRequest] = None
