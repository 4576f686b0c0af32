"""
Report Come Play Backend — Auth, Profile & Health API Tests
=============================================================

What:  End-to-end flows through the FastAPI app on in-memory SQLite.
How:   test_client (ASGITransport) + make_user / session_factory fixtures.

Test Strategy:
    ✅ Registration, re-registration of unverified accounts, conflicts
    ✅ Email verification and resend
    ✅ Login, /me and the token failure mapping (401 vs 403)
    ✅ Profile updates and password change
    ✅ Health, banner, unknown routes, request IDs
"""

import uuid

import pytest
from sqlalchemy import select

from reportcomeplay.models import User
from reportcomeplay.security import create_access_token

TEST_PASSWORD = "secret123"


async def _user_by_email(session_factory, email):
    async with session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one()


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_creates_unverified_user(self, test_client, session_factory):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "Ada@Example.com", "password": "secret123", "full_name": " Ada Obi "},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == (
            "User registered successfully. Please check your email for the verification code."
        )
        assert body["token"]
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["full_name"] == "Ada Obi"
        assert body["user"]["role"] == "REPORTER"
        assert body["user"]["email_verified"] is False
        assert "password_hash" not in body["user"]
        assert "verification_code" not in body["user"]

        stored = await _user_by_email(session_factory, "ada@example.com")
        assert len(stored.verification_code) == 6

    @pytest.mark.asyncio
    async def test_owner_role_allowed(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={
                "email": "owner@example.com",
                "password": "secret123",
                "full_name": "Field Owner",
                "role": "OWNER",
            },
        )
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "OWNER"

    @pytest.mark.asyncio
    async def test_admin_role_rejected(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "x@example.com", "password": "secret123", "full_name": "X", "role": "ADMIN"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("password", ["abc12", "abcdefgh"])
    async def test_weak_password_rejected(self, test_client, password):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "x@example.com", "password": password, "full_name": "X"},
        )
        assert response.status_code == 400
        fields = [e["field"] for e in response.json()["details"]["errors"]]
        assert "password" in fields

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "password": "secret123", "full_name": "X"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unverified_registration_is_reissued(self, test_client, session_factory):
        payload = {"email": "ada@example.com", "password": "secret123", "full_name": "Ada"}
        first = await test_client.post("/api/auth/register", json=payload)
        second = await test_client.post(
            "/api/auth/register", json={**payload, "full_name": "Ada Renamed"}
        )

        assert second.status_code == 201
        assert second.json()["user"]["id"] == first.json()["user"]["id"]
        stored = await _user_by_email(session_factory, "ada@example.com")
        assert stored.full_name == "Ada Renamed"

    @pytest.mark.asyncio
    async def test_verified_email_conflicts(self, test_client, make_user):
        await make_user(email="taken@example.com")
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "TAKEN@example.com", "password": "secret123", "full_name": "X"},
        )
        assert response.status_code == 409
        assert response.json()["message"] == "User with this email already exists."


class TestEmailVerification:

    async def _register(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "secret123", "full_name": "Ada"},
        )
        return response.json()["user"]["id"]

    @pytest.mark.asyncio
    async def test_verify_with_correct_code(self, test_client, session_factory):
        user_id = await self._register(test_client)
        code = (await _user_by_email(session_factory, "ada@example.com")).verification_code

        response = await test_client.post(
            "/api/auth/verify-email", json={"user_id": user_id, "code": code}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Email verified successfully."}
        stored = await _user_by_email(session_factory, "ada@example.com")
        assert stored.email_verified is True
        assert stored.verification_code is None

    @pytest.mark.asyncio
    async def test_wrong_code(self, test_client, session_factory):
        user_id = await self._register(test_client)
        code = (await _user_by_email(session_factory, "ada@example.com")).verification_code
        wrong = "000000" if code != "000000" else "111111"

        response = await test_client.post(
            "/api/auth/verify-email", json={"user_id": user_id, "code": wrong}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid verification code."

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_client):
        response = await test_client.post(
            "/api/auth/verify-email", json={"user_id": str(uuid.uuid4()), "code": "123456"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_resend_issues_new_code(self, test_client, session_factory):
        await self._register(test_client)
        before = (await _user_by_email(session_factory, "ada@example.com")).verification_code

        response = await test_client.post(
            "/api/auth/resend-verification", json={"email": "ada@example.com"}
        )

        assert response.status_code == 200
        after = (await _user_by_email(session_factory, "ada@example.com")).verification_code
        assert before is not None
        assert after is not None and after.isdigit() and len(after) == 6

    @pytest.mark.asyncio
    async def test_resend_unknown_email_is_silent(self, test_client):
        response = await test_client.post(
            "/api/auth/resend-verification", json={"email": "ghost@example.com"}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_resend_for_verified_account(self, test_client, make_user):
        await make_user(email="done@example.com")
        response = await test_client.post(
            "/api/auth/resend-verification", json={"email": "done@example.com"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Email is already verified."


class TestLoginAndTokens:

    @pytest.mark.asyncio
    async def test_login_success(self, test_client, make_user):
        user, _ = await make_user(email="ada@example.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "ADA@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful."
        assert body["user"]["id"] == str(user.id)

        me = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, make_user):
        await make_user(email="ada@example.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "wrong999"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_unknown_email(self, test_client):
        response = await test_client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Access token required."

    @pytest.mark.asyncio
    async def test_garbage_token_is_403(self, test_client):
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"}
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Invalid or expired token."

    @pytest.mark.asyncio
    async def test_expired_token_is_403(self, test_client, make_user):
        user, _ = await make_user()
        token = create_access_token(user.id, user.role, expires_minutes=-5)
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_token_for_missing_user_is_401(self, test_client):
        token = create_access_token(uuid.uuid4(), "REPORTER")
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "User not found."


class TestProfile:

    @pytest.mark.asyncio
    async def test_update_bank_details(self, test_client, make_user):
        _, headers = await make_user()
        response = await test_client.put(
            "/api/users/profile",
            headers=headers,
            json={"bank_name": "GTBank", "account_number": "0123456789", "account_name": "Ada"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["bank_name"] == "GTBank"
        assert body["account_number"] == "0123456789"

        profile = await test_client.get("/api/users/profile", headers=headers)
        assert profile.json()["account_name"] == "Ada"

    @pytest.mark.asyncio
    async def test_password_change_requires_current(self, test_client, make_user):
        _, headers = await make_user()
        response = await test_client.put(
            "/api/users/profile", headers=headers, json={"new_password": "newpass1"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Current password is required to set a new password."

    @pytest.mark.asyncio
    async def test_password_change_wrong_current(self, test_client, make_user):
        _, headers = await make_user()
        response = await test_client.put(
            "/api/users/profile",
            headers=headers,
            json={"current_password": "wrong999", "new_password": "newpass1"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Current password is incorrect."

    @pytest.mark.asyncio
    async def test_password_change(self, test_client, make_user):
        user, headers = await make_user(email="ada@example.com")
        response = await test_client.put(
            "/api/users/profile",
            headers=headers,
            json={"current_password": TEST_PASSWORD, "new_password": "newpass1"},
        )
        assert response.status_code == 200

        login = await test_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "newpass1"}
        )
        assert login.status_code == 200


class TestHealthAndErrors:

    @pytest.mark.asyncio
    async def test_banner(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "Report Come Play API is running"

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "local"
        assert body["email"] == "disabled"

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/does-not-exist")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "Route /api/does-not-exist not found."

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"X-Request-ID": "req-42"})
        assert response.json()["request_id"] == "req-42"
