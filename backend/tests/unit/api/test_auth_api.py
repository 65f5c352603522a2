"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from datetime import timedelta
from httpx import AsyncClient
from sqlalchemy import select

from app.core.security import create_access_token
from app.models import OTP, User

from conftest import fake, TEST_PASSWORD


def registration_body(**overrides) -> dict:
    body = {
        "name": fake.name(),
        "email": fake.unique.email(),
        "password": "secret123",
        "role": "user",
        "department": "Computer Science",
    }
    body.update(overrides)
    return body


class TestSendAndVerifyOTP:
    """Two-step registration over HTTP"""

    @pytest.mark.asyncio
    async def test_send_otp(self, client: AsyncClient, db_session):
        body = registration_body(email="Asha@Campus.edu")

        response = await client.post("/api/auth/send-otp", json=body)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "OTP sent to your email address"
        assert data["email"] == "asha@campus.edu"
        # Console mail has no preview link
        assert "previewUrl" not in data

    @pytest.mark.asyncio
    async def test_verify_otp_creates_account(self, client: AsyncClient, db_session):
        body = registration_body(role="authority", department="", categories=["hostel", "canteen"])
        await client.post("/api/auth/send-otp", json=body)
        record = (await db_session.execute(select(OTP))).scalar_one()

        response = await client.post("/api/auth/verify-otp", json={"email": body["email"], "otp": record.code})

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Registration successful"
        user = data["user"]
        assert user["email"] == body["email"].lower()
        assert user["role"] == "authority"
        assert user["categories"] == ["hostel", "canteen"]
        assert user["token"]
        assert user["_id"] == user["id"]
        assert "hashedPassword" not in user and "hashed_password" not in user

    @pytest.mark.asyncio
    async def test_verify_accepts_numeric_code(self, client: AsyncClient, db_session):
        body = registration_body()
        await client.post("/api/auth/send-otp", json=body)
        record = (await db_session.execute(select(OTP))).scalar_one()

        response = await client.post("/api/auth/verify-otp", json={"email": body["email"], "otp": int(record.code)})

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_verify_wrong_code(self, client: AsyncClient):
        body = registration_body()
        await client.post("/api/auth/send-otp", json=body)

        response = await client.post("/api/auth/verify-otp", json={"email": body["email"], "otp": "000000"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid or expired OTP"}

    @pytest.mark.asyncio
    async def test_send_otp_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/auth/send-otp", json={"email": fake.email()})

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide all required fields"

    @pytest.mark.asyncio
    async def test_send_otp_invalid_email(self, client: AsyncClient):
        response = await client.post("/api/auth/send-otp", json=registration_body(email="not-an-email"))

        assert response.status_code == 400
        data = response.json()
        assert data["message"].startswith("email: ")
        assert data["errors"][0]["field"] == "email"

    @pytest.mark.asyncio
    async def test_send_otp_existing_user(self, client: AsyncClient, test_user):
        response = await client.post("/api/auth/send-otp", json=registration_body(email=test_user.email))

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists with this email"


class TestDirectRegister:

    @pytest.mark.asyncio
    async def test_register(self, client: AsyncClient):
        body = registration_body(role="student")

        response = await client.post("/api/auth/register", json=body)

        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "user"
        assert data["department"] == "Computer Science"
        assert data["token"]

    @pytest.mark.asyncio
    async def test_register_authority_without_categories(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json=registration_body(role="authority"))

        assert response.status_code == 400
        assert response.json()["message"] == "Authorities must select at least one category"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, authority_user: User):
        response = await client.post("/api/auth/login", json={
            "email": authority_user.email,
            "password": TEST_PASSWORD,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["_id"] == authority_user.id
        assert data["role"] == "authority"
        assert data["categories"] == ["maintenance"]
        assert data["token"]

    @pytest.mark.asyncio
    async def test_login_failures_are_indistinguishable(self, client: AsyncClient, test_user: User):
        unknown = await client.post("/api/auth/login", json={"email": "nonexistent@x.com", "password": "anything"})
        wrong = await client.post("/api/auth/login", json={"email": test_user.email, "password": "wrongpass"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"message": "Invalid email or password"}

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/auth/login", json={"email": "a@b.edu"})

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide email and password"


class TestCurrentUser:
    """Bearer token handling"""

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, test_user: User, auth_headers: dict):
        response = await client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == test_user.email
        assert "token" not in data

    @pytest.mark.asyncio
    async def test_no_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized, no token"}

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized, invalid token"}

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, test_user: User):
        token = create_access_token({"sub": test_user.id}, expires_delta=timedelta(seconds=-5))

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized, token expired"}

    @pytest.mark.asyncio
    async def test_deleted_user(self, client: AsyncClient, db_session, test_user: User, auth_headers: dict):
        await db_session.delete(test_user)
        await db_session.commit()

        response = await client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 401
        assert response.json() == {"message": "User not found"}


class TestProfile:

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, auth_headers: dict):
        response = await client.put("/api/auth/profile", headers=auth_headers, json={
            "name": "Renamed",
            "avatar": "https://example.com/a.png",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed"
        assert data["avatar"] == "https://example.com/a.png"
        assert data["token"]

    @pytest.mark.asyncio
    async def test_email_in_use(self, client: AsyncClient, auth_headers: dict, other_user: User):
        response = await client.put("/api/auth/profile", headers=auth_headers, json={"email": other_user.email})

        assert response.status_code == 400
        assert response.json()["message"] == "Email is already in use by another account"
