"""
Unit Tests for AuthService

Covers:
1. Registration validation messages
2. OTP staging, verification and expiry
3. Direct registration
4. Login with a single failure message
5. Profile updates
"""
import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch
from sqlalchemy import select, func, update

from app.core.config import settings
from app.core.exceptions import (
    CampusConnectError,
    ConflictError,
    InvalidCredentialsError,
    InvalidOrExpiredOTPError,
    ValidationError,
)
from app.core.security import verify_password
from app.models import OTP, User, UserRole
from app.schemas.auth import RegistrationRequest, ProfileUpdate
from app.services.auth_service import auth_service
from app.services.email_service import EmailResult

from conftest import create_user, fake, TEST_PASSWORD


def registration(**overrides) -> RegistrationRequest:
    data = {
        "name": "Asha Rao",
        "email": fake.unique.email(),
        "password": "secret123",
        "role": "user",
        "department": "Computer Science",
    }
    data.update(overrides)
    return RegistrationRequest(**data)


async def count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


class TestValidateRegistration:
    """Messages the client shows on a bad registration"""

    @pytest.mark.parametrize("missing", ["name", "email", "password", "role"])
    def test_required_fields(self, missing):
        with pytest.raises(ValidationError) as exc_info:
            auth_service.validate_registration(registration(**{missing: None}))
        assert exc_info.value.message == "Please provide all required fields"

    def test_unknown_role(self):
        with pytest.raises(ValidationError) as exc_info:
            auth_service.validate_registration(registration(role="admin"))
        assert exc_info.value.message == "Invalid role: admin"

    def test_short_password(self):
        with pytest.raises(ValidationError) as exc_info:
            auth_service.validate_registration(registration(password="12345"))
        assert exc_info.value.message == "Password must be at least 6 characters"

    def test_user_needs_department(self):
        with pytest.raises(ValidationError) as exc_info:
            auth_service.validate_registration(registration(department=""))
        assert exc_info.value.message == "Department is required for students and faculty"

    def test_authority_needs_categories(self):
        with pytest.raises(ValidationError) as exc_info:
            auth_service.validate_registration(registration(role="authority", categories=[]))
        assert exc_info.value.message == "Authorities must select at least one category"

    def test_authority_invalid_category(self):
        with pytest.raises(ValidationError) as exc_info:
            auth_service.validate_registration(registration(role="authority", categories=["library"]))
        assert exc_info.value.message == "Invalid category: library"

    def test_authority_categories_normalised(self):
        role, categories = auth_service.validate_registration(
            registration(role="authority", department="", categories=["Hostel", "hostel", "canteen"])
        )
        assert role == UserRole.AUTHORITY
        assert categories == ["hostel", "canteen"]

    @pytest.mark.parametrize("legacy", ["student", "faculty"])
    def test_legacy_roles_become_user(self, legacy):
        role, categories = auth_service.validate_registration(registration(role=legacy, categories=["hostel"]))
        assert role == UserRole.USER
        assert categories == []


class TestSendOTP:
    """Staging a registration"""

    @pytest.mark.asyncio
    async def test_stages_hashed_payload(self, db_session):
        payload = registration(email="Asha@Campus.edu")

        email, result = await auth_service.send_otp(db_session, payload)

        assert email == "asha@campus.edu"
        assert result.success
        record = (await db_session.execute(select(OTP))).scalar_one()
        assert record.email == "asha@campus.edu"
        assert len(record.code) == 6
        assert "password" not in record.user_data
        assert verify_password("secret123", record.user_data["hashed_password"])
        assert await count(db_session, User) == 0

    @pytest.mark.asyncio
    async def test_replaces_previous_code(self, db_session):
        payload = registration()

        await auth_service.send_otp(db_session, payload)
        await auth_service.send_otp(db_session, payload)

        assert await count(db_session, OTP) == 1

    @pytest.mark.asyncio
    async def test_existing_email_conflicts(self, db_session, test_user):
        with pytest.raises(ConflictError) as exc_info:
            await auth_service.send_otp(db_session, registration(email=test_user.email))

        assert exc_info.value.message == "User already exists with this email"
        assert await count(db_session, OTP) == 0

    @pytest.mark.asyncio
    async def test_mail_failure(self, db_session):
        with patch(
            "app.services.auth_service.email_service.send_otp_email",
            new=AsyncMock(return_value=EmailResult(success=False)),
        ):
            with pytest.raises(CampusConnectError) as exc_info:
                await auth_service.send_otp(db_session, registration())

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to send OTP email"

    @pytest.mark.asyncio
    async def test_purges_expired_codes(self, db_session):
        stale = OTP(
            email="old@campus.edu",
            code="111111",
            user_data={},
            created_at=datetime.utcnow() - timedelta(seconds=settings.OTP_EXPIRE_SECONDS + 5),
        )
        db_session.add(stale)
        await db_session.commit()

        await auth_service.send_otp(db_session, registration())

        emails = (await db_session.execute(select(OTP.email))).scalars().all()
        assert "old@campus.edu" not in emails


class TestVerifyOTP:
    """Consuming a code"""

    async def _stage(self, db, **overrides):
        email, _ = await auth_service.send_otp(db, registration(**overrides))
        record = (await db.execute(select(OTP).where(OTP.email == email))).scalar_one()
        return email, record.code

    @pytest.mark.asyncio
    async def test_creates_user_and_consumes_code(self, db_session):
        email, code = await self._stage(db_session)

        user = await auth_service.verify_otp(db_session, email, code)

        assert user.email == email
        assert user.role == UserRole.USER
        assert verify_password("secret123", user.hashed_password)
        assert await count(db_session, User) == 1
        assert await count(db_session, OTP) == 0

    @pytest.mark.asyncio
    async def test_authority_keeps_categories(self, db_session):
        email, code = await self._stage(db_session, role="authority", categories=["transport"])

        user = await auth_service.verify_otp(db_session, email, code)

        assert user.role == UserRole.AUTHORITY
        assert user.categories == ["transport"]

    @pytest.mark.asyncio
    async def test_second_use_fails(self, db_session):
        email, code = await self._stage(db_session)
        await auth_service.verify_otp(db_session, email, code)

        with pytest.raises(InvalidOrExpiredOTPError):
            await auth_service.verify_otp(db_session, email, code)

        assert await count(db_session, User) == 1

    @pytest.mark.asyncio
    async def test_wrong_code(self, db_session):
        email, code = await self._stage(db_session)
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(InvalidOrExpiredOTPError) as exc_info:
            await auth_service.verify_otp(db_session, email, wrong)

        assert exc_info.value.message == "Invalid or expired OTP"
        assert await count(db_session, User) == 0

    @pytest.mark.asyncio
    async def test_expired_code_fails_like_wrong_code(self, db_session):
        email, code = await self._stage(db_session)
        await db_session.execute(
            update(OTP).values(created_at=datetime.utcnow() - timedelta(seconds=settings.OTP_EXPIRE_SECONDS + 1))
        )
        await db_session.commit()

        with pytest.raises(InvalidOrExpiredOTPError) as exc_info:
            await auth_service.verify_otp(db_session, email, code)

        assert exc_info.value.message == "Invalid or expired OTP"
        assert await count(db_session, User) == 0
        assert await count(db_session, OTP) == 0

    @pytest.mark.asyncio
    async def test_missing_fields(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.verify_otp(db_session, "a@campus.edu", None)
        assert exc_info.value.message == "Please provide email and OTP"

    @pytest.mark.asyncio
    async def test_email_taken_meanwhile(self, db_session):
        email, code = await self._stage(db_session)
        await create_user(db_session, email=email)

        with pytest.raises(ConflictError):
            await auth_service.verify_otp(db_session, email, code)


class TestRegisterAndLogin:

    @pytest.mark.asyncio
    async def test_direct_register(self, db_session):
        user = await auth_service.register(db_session, registration(email="direct@campus.edu"))

        assert user.id
        assert user.email == "direct@campus.edu"
        assert user.hashed_password != "secret123"

    @pytest.mark.asyncio
    async def test_direct_register_duplicate(self, db_session, test_user):
        with pytest.raises(ConflictError):
            await auth_service.register(db_session, registration(email=test_user.email))

    @pytest.mark.asyncio
    async def test_login_success_is_case_insensitive(self, db_session, test_user):
        user = await auth_service.authenticate(db_session, test_user.email.upper(), TEST_PASSWORD)
        assert user.id == test_user.id

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_match(self, db_session, test_user):
        with pytest.raises(InvalidCredentialsError) as unknown:
            await auth_service.authenticate(db_session, "nobody@campus.edu", "anything")
        with pytest.raises(InvalidCredentialsError) as wrong:
            await auth_service.authenticate(db_session, test_user.email, "wrongpass")

        assert unknown.value.message == wrong.value.message == "Invalid email or password"
        assert unknown.value.status_code == wrong.value.status_code == 401

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.authenticate(db_session, "", "x")
        assert exc_info.value.message == "Please provide email and password"


class TestUpdateProfile:

    @pytest.mark.asyncio
    async def test_updates_given_fields(self, db_session, test_user):
        original_department = test_user.department

        user = await auth_service.update_profile(db_session, test_user, ProfileUpdate(name="  New Name  ", department=""))

        assert user.name == "New Name"
        assert user.department == original_department

    @pytest.mark.asyncio
    async def test_password_change(self, db_session, test_user):
        await auth_service.update_profile(db_session, test_user, ProfileUpdate(password="brandnew1"))

        user = await auth_service.authenticate(db_session, test_user.email, "brandnew1")
        assert user.id == test_user.id

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, db_session, test_user):
        with pytest.raises(ValidationError):
            await auth_service.update_profile(db_session, test_user, ProfileUpdate(password="123"))

    @pytest.mark.asyncio
    async def test_email_in_use(self, db_session, test_user, other_user):
        with pytest.raises(ConflictError) as exc_info:
            await auth_service.update_profile(db_session, test_user, ProfileUpdate(email=other_user.email))
        assert exc_info.value.message == "Email is already in use by another account"

    @pytest.mark.asyncio
    async def test_email_change(self, db_session, test_user):
        user = await auth_service.update_profile(db_session, test_user, ProfileUpdate(email="Fresh@Campus.edu"))
        assert user.email == "fresh@campus.edu"
