"""Unit tests for ProfileService over the in-memory account repository."""

import pytest

from errors import ConflictError, NotFoundError, ValidationError
from schemas.dto.requests.auth import RegisterRequest
from schemas.dto.requests.profile import UpdateProfileRequest

MISSING_ID = "507f1f77bcf86cd799439011"


async def _register(auth_service, **overrides) -> str:
    base = dict(
        email="a@x.com",
        password="Passw0rdOK",
        full_name="Abebe Kebede",
        phone="0912345678",
    )
    base.update(overrides)
    resp = await auth_service.register(RegisterRequest(**base))
    return resp.user.id


class TestCheckProfile:
    async def test_missing_location_reported(self, auth_service, profile_service):
        account_id = await _register(auth_service)
        check = await profile_service.check_profile(account_id)

        assert check.profile_complete is False
        assert check.missing_fields == {
            "full_name": False,
            "phone": False,
            "kebele": True,
            "woreda": True,
        }
        assert check.phone == "09 123 456 78"

    async def test_complete_after_location_added(self, auth_service, profile_service):
        account_id = await _register(auth_service)
        await profile_service.update_profile(
            account_id,
            UpdateProfileRequest(location={"kebele": "05", "woreda": "Genda Kore"}),
        )
        check = await profile_service.check_profile(account_id)
        assert check.profile_complete is True
        assert not any(check.missing_fields.values())
        assert check.location.city == "Dire Dawa"

    async def test_unknown_account(self, profile_service):
        with pytest.raises(NotFoundError):
            await profile_service.check_profile(MISSING_ID)


class TestUpdateProfile:
    async def test_only_supplied_fields_change(
        self, auth_service, profile_service, account_repo
    ):
        account_id = await _register(auth_service, home_number="0251112233")
        resp = await profile_service.update_profile(
            account_id, UpdateProfileRequest(full_name="  Almaz Tesfaye ")
        )

        assert resp.success is True
        assert resp.message == "Profile updated successfully"
        assert resp.user.full_name == "Almaz Tesfaye"
        stored = await account_repo.find_by_id(account_id)
        assert stored.full_name == "Almaz Tesfaye"
        assert stored.phone == "+251912345678"
        assert stored.home_number == "+251251112233"

    async def test_phone_normalised(self, auth_service, profile_service, account_repo):
        account_id = await _register(auth_service)
        resp = await profile_service.update_profile(
            account_id, UpdateProfileRequest(phone="+251 922-334-455")
        )
        assert resp.user.phone == "09 223 344 55"
        assert (await account_repo.find_by_id(account_id)).phone == "+251922334455"

    async def test_phone_of_another_account_is_conflict(
        self, auth_service, profile_service, account_repo
    ):
        await _register(auth_service, email="b@x.com", phone="0922334455")
        account_id = await _register(auth_service)

        with pytest.raises(ConflictError) as exc:
            await profile_service.update_profile(
                account_id, UpdateProfileRequest(phone="0922334455")
            )
        assert exc.value.field == "phone"
        assert (await account_repo.find_by_id(account_id)).phone == "+251912345678"

    async def test_own_phone_resubmitted(self, auth_service, profile_service):
        account_id = await _register(auth_service)
        resp = await profile_service.update_profile(
            account_id, UpdateProfileRequest(phone="251912345678")
        )
        assert resp.user.phone == "09 123 456 78"

    @pytest.mark.parametrize(
        "body, field",
        [
            ({"phone": "12345"}, "phone"),
            ({"home_number": "999"}, "home_number"),
            ({"full_name": "   "}, "full_name"),
        ],
        ids=["bad_phone", "bad_home_number", "blank_name"],
    )
    async def test_rejects_invalid_input(
        self, auth_service, profile_service, body, field
    ):
        account_id = await _register(auth_service)
        with pytest.raises(ValidationError) as exc:
            await profile_service.update_profile(account_id, UpdateProfileRequest(**body))
        assert exc.value.field == field

    async def test_home_number_cleared(
        self, auth_service, profile_service, account_repo
    ):
        account_id = await _register(auth_service, home_number="0251112233")
        await profile_service.update_profile(
            account_id, UpdateProfileRequest(home_number="")
        )
        assert (await account_repo.find_by_id(account_id)).home_number == ""

    async def test_credentials_untouched(
        self, auth_service, profile_service, account_repo
    ):
        account_id = await _register(auth_service)
        before = await account_repo.find_by_id(account_id)
        await profile_service.update_profile(
            account_id, UpdateProfileRequest(full_name="Almaz Tesfaye")
        )
        after = await account_repo.find_by_id(account_id)
        assert after.password_hash == before.password_hash
        assert after.otp_code == before.otp_code
        assert after.is_verified is False

    async def test_unknown_account(self, profile_service):
        with pytest.raises(NotFoundError):
            await profile_service.update_profile(
                MISSING_ID, UpdateProfileRequest(full_name="Nobody")
            )
