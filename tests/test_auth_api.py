"""
TaskHub Backend — Auth API Tests
==================================

What:  End-to-end tests for /api/v1/auth/* and the role-gated probe routes.
How:   Real app over ASGITransport, in-memory SQLite. Background tasks finish
       before the transport returns, so audit rows can be asserted directly.

What we test:
    ✅ Register → 201, duplicate email → 400, invalid body → 400 with all errors
    ✅ Login → token pair; wrong password / unknown email → 401 + LOGIN_FAILED
    ✅ Refresh → new pair; access token or garbage → 401
    ✅ Missing/invalid bearer token → 401 before any handler runs
    ✅ admin-only / user-only role checks
"""

import pytest
from sqlalchemy import select

from conftest import DEFAULT_PASSWORD, auth_headers
from taskhub.models.audit_log import AuditLogEntry
from taskhub.models.user import User


async def audit_actions(database):
    async with database() as session:
        result = await session.execute(select(AuditLogEntry).order_by(AuditLogEntry.timestamp))
        return [entry.action for entry in result.scalars().all()]


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_success(self, client, database):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Ada", "email": "Ada@Example.com", "password": "secret1"},
        )

        assert response.status_code == 201
        assert response.json() == {"message": "User registered successfully"}

        async with database() as session:
            user = (await session.execute(select(User))).scalar_one()
        assert user.email == "ada@example.com"
        assert user.role == "user"
        assert user.password_hash != "secret1"
        assert await audit_actions(database) == ["USER_REGISTER"]

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, make_user):
        await make_user(email="taken@example.com")

        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Other", "email": "TAKEN@example.com", "password": "secret1"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "User already exists"}

    @pytest.mark.asyncio
    async def test_register_reports_every_violation(self, client):
        response = await client.post(
            "/api/v1/auth/register", json={"email": "nope", "password": "123"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert fields == {"name", "email", "password"}

    @pytest.mark.asyncio
    async def test_register_role_in_body_is_ignored(self, client, database):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Eve", "email": "eve@example.com", "password": "secret1", "role": "admin"},
        )
        assert response.status_code == 201

        async with database() as session:
            user = (await session.execute(select(User))).scalar_one()
        assert user.role == "user"

    @pytest.mark.asyncio
    async def test_malformed_json(self, client):
        response = await client.post(
            "/api/v1/auth/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid JSON body"

    @pytest.mark.asyncio
    async def test_non_object_json(self, client):
        response = await client.post("/api/v1/auth/register", json=["a", "b"])
        assert response.status_code == 400
        assert response.json()["message"] == "Request body must be a JSON object"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, client, database, make_user):
        user = await make_user()

        assert user["access_token"]
        assert user["refresh_token"]
        assert await audit_actions(database) == ["USER_REGISTER", "USER_LOGIN"]

    @pytest.mark.asyncio
    async def test_login_is_case_insensitive_on_email(self, client, make_user):
        await make_user(email="mixed@example.com")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "MIXED@example.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 200
        assert set(response.json()) == {"accessToken", "refreshToken"}

    @pytest.mark.asyncio
    async def test_wrong_password_is_audited(self, client, database, make_user):
        user = await make_user()

        response = await client.post(
            "/api/v1/auth/login", json={"email": user["email"], "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}

        async with database() as session:
            result = await session.execute(
                select(AuditLogEntry).where(AuditLogEntry.action == "LOGIN_FAILED")
            )
            entry = result.scalar_one()
        assert entry.user_id == user["id"]
        assert entry.collection_name == "users"
        assert entry.ip_address == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_unknown_email_is_audited_without_actor(self, client, database):
        response = await client.post(
            "/api/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever"}
        )

        assert response.status_code == 401
        async with database() as session:
            entry = (await session.execute(select(AuditLogEntry))).scalar_one()
        assert entry.action == "LOGIN_FAILED"
        assert entry.user_id is None

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, client):
        response = await client.post("/api/v1/auth/login", json={})
        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} == {"email", "password"}


class TestRefresh:

    @pytest.mark.asyncio
    async def test_refresh_issues_new_pair(self, client, make_user):
        user = await make_user()

        response = await client.post(
            "/api/v1/auth/refresh", json={"refreshToken": user["refresh_token"]}
        )

        assert response.status_code == 200
        tokens = response.json()
        assert tokens["accessToken"] != user["access_token"]

        me = await client.get("/api/v1/user-only", headers=auth_headers(tokens["accessToken"]))
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, client, make_user):
        user = await make_user()

        response = await client.post(
            "/api/v1/auth/refresh", json={"refreshToken": user["access_token"]}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_cannot_authenticate(self, client, make_user):
        user = await make_user()

        response = await client.get("/api/v1/user-only", headers=auth_headers(user["refresh_token"]))
        assert response.status_code == 401


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/v1/user-only")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not authorized, no token"}

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, client):
        response = await client.get("/api/v1/user-only", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/api/v1/user-only", headers=auth_headers("not.a.jwt"))
        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token invalid"


class TestRoleGatedRoutes:

    @pytest.mark.asyncio
    async def test_user_only_greets_any_user(self, client, make_user):
        user = await make_user()
        response = await client.get("/api/v1/user-only", headers=user["headers"])
        assert response.status_code == 200
        assert response.json() == {"message": f"Welcome, user {user['id']}!"}

    @pytest.mark.asyncio
    async def test_admin_only_denies_user(self, client, make_user):
        user = await make_user()
        response = await client.get("/api/v1/admin-only", headers=user["headers"])
        assert response.status_code == 403
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_admin_only_allows_admin(self, client, make_admin):
        admin = await make_admin()
        response = await client.get("/api/v1/admin-only", headers=admin["headers"])
        assert response.status_code == 200
        assert response.json() == {"message": f"Welcome, admin {admin['id']}!"}
