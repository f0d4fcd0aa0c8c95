"""
Integration tests for admin user provisioning.

Covers user creation with company grants, role changes, access grants
and password resets.
"""

import uuid

import pytest
from sqlalchemy import select

from database.models.companies import CompanyAccess
from database.models.users import AppRole, AppUser


class TestAdminGuard:
    """Only ADMIN may provision."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [AppRole.OPS, AppRole.CLIENT])
    async def test_non_admin_rejected(self, api_client, auth_headers, role):
        headers = await auth_headers(role)

        response = await api_client.post(
            "/admin/users/create",
            json={"email": "new@example.com", "password": "password123", "role": "CLIENT"},
            headers=headers,
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Admin only"}

    @pytest.mark.asyncio
    async def test_anonymous_rejected(self, api_client):
        response = await api_client.post("/admin/users/set-role", json={})
        assert response.status_code == 401


class TestCreateUser:
    """POST /admin/users/create."""

    @pytest.mark.asyncio
    async def test_create_client_with_grants(self, api_client, auth_headers, make_company, db_session):
        headers = await auth_headers(AppRole.ADMIN)
        kemp = await make_company("KMP001")

        response = await api_client.post(
            "/admin/users/create",
            json={
                "email": "Carla@Example.com",
                "password": "password123",
                "role": "CLIENT",
                "display_name": "Carla",
                "company_ref_ids": ["kmp001", "ZZZ999"],
            },
            headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "carla@example.com"
        assert body["role"] == "CLIENT"
        assert body["company_ref_ids"] == ["KMP001"]
        assert body["unknown_ref_ids"] == ["ZZZ999"]

        user_id = uuid.UUID(body["user"]["id"])
        grants = await db_session.execute(
            select(CompanyAccess.company_id).where(CompanyAccess.user_id == user_id)
        )
        assert list(grants.scalars().all()) == [kemp.id]

        login = await api_client.post(
            "/auth/login", json={"email": "carla@example.com", "password": "password123"}
        )
        assert login.status_code == 200
        assert login.json()["user"]["role"] == "CLIENT"

    @pytest.mark.asyncio
    async def test_short_password(self, api_client, auth_headers):
        headers = await auth_headers(AppRole.ADMIN)

        response = await api_client.post(
            "/admin/users/create",
            json={"email": "new@example.com", "password": "short", "role": "OPS"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Password must be at least 8 characters"}

    @pytest.mark.asyncio
    async def test_overlong_password(self, api_client, auth_headers):
        headers = await auth_headers(AppRole.ADMIN)

        response = await api_client.post(
            "/admin/users/create",
            json={"email": "new@example.com", "password": "p" * 80, "role": "OPS"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Password must be at most 72 bytes"}

    @pytest.mark.asyncio
    async def test_duplicate_email(self, api_client, auth_headers, make_user):
        headers = await auth_headers(AppRole.ADMIN)
        await make_user(email="taken@example.com")

        response = await api_client.post(
            "/admin/users/create",
            json={"email": "TAKEN@example.com", "password": "password123", "role": "OPS"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"error": "A user with this email already exists"}

    @pytest.mark.asyncio
    async def test_unknown_role(self, api_client, auth_headers):
        headers = await auth_headers(AppRole.ADMIN)

        response = await api_client.post(
            "/admin/users/create",
            json={"email": "new@example.com", "password": "password123", "role": "ROOT"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("role:")


class TestSetRole:
    """POST /admin/users/set-role."""

    @pytest.mark.asyncio
    async def test_promote(self, api_client, auth_headers, make_user, db_session):
        headers = await auth_headers(AppRole.ADMIN)
        user = await make_user(role=AppRole.CLIENT)

        response = await api_client.post(
            "/admin/users/set-role",
            json={"user_id": str(user.id), "role": "OPS"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "OPS"
        profile = await db_session.get(AppUser, user.id)
        await db_session.refresh(profile)
        assert profile.role == AppRole.OPS

    @pytest.mark.asyncio
    async def test_creates_missing_profile(self, api_client, auth_headers, make_user, db_session):
        headers = await auth_headers(AppRole.ADMIN)
        user = await make_user(role=None)

        response = await api_client.post(
            "/admin/users/set-role",
            json={"user_id": str(user.id), "role": "ADMIN"},
            headers=headers,
        )

        assert response.status_code == 200
        result = await db_session.execute(select(AppUser.role).where(AppUser.id == user.id))
        assert result.scalar_one() == AppRole.ADMIN

    @pytest.mark.asyncio
    async def test_unknown_user(self, api_client, auth_headers):
        headers = await auth_headers(AppRole.ADMIN)

        response = await api_client.post(
            "/admin/users/set-role",
            json={"user_id": str(uuid.uuid4()), "role": "OPS"},
            headers=headers,
        )

        assert response.status_code == 404


class TestCompanyAccessGrants:
    """Grant and revoke company access."""

    @pytest.mark.asyncio
    async def test_grant_then_revoke(self, api_client, auth_headers, make_user, make_token, make_company):
        admin_headers = await auth_headers(AppRole.ADMIN)
        client = await make_user(role=AppRole.CLIENT)
        client_headers = {"Authorization": f"Bearer {await make_token(client)}"}
        company = await make_company("KMP001")

        response = await api_client.post(
            "/admin/users/grant-access",
            json={"user_id": str(client.id), "company_ref_ids": ["KMP001", "NOP404"]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True, "granted": ["KMP001"], "unknown_ref_ids": ["NOP404"]}

        # Granting twice is harmless
        response = await api_client.post(
            "/admin/users/grant-access",
            json={"user_id": str(client.id), "company_ref_ids": ["KMP001"]},
            headers=admin_headers,
        )
        assert response.status_code == 200

        visible = await api_client.get(f"/companies/{company.id}", headers=client_headers)
        assert visible.status_code == 200

        response = await api_client.post(
            "/admin/users/revoke-access",
            json={"user_id": str(client.id), "company_ref_ids": ["KMP001"]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["revoked"] == ["KMP001"]

        hidden = await api_client.get(f"/companies/{company.id}", headers=client_headers)
        assert hidden.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_ref_list_rejected(self, api_client, auth_headers, make_user):
        headers = await auth_headers(AppRole.ADMIN)
        user = await make_user(role=AppRole.CLIENT)

        response = await api_client.post(
            "/admin/users/grant-access",
            json={"user_id": str(user.id), "company_ref_ids": []},
            headers=headers,
        )

        assert response.status_code == 400


class TestResetPassword:
    """POST /admin/users/reset-password."""

    @pytest.mark.asyncio
    async def test_reset_revokes_sessions(self, api_client, auth_headers, make_user, make_token):
        headers = await auth_headers(AppRole.ADMIN)
        user = await make_user(role=AppRole.OPS, email="ops@example.com")
        old_headers = {"Authorization": f"Bearer {await make_token(user)}"}

        response = await api_client.post(
            "/admin/users/reset-password",
            json={"user_id": str(user.id), "new_password": "new-password-1"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["ok"] is True

        assert (await api_client.get("/auth/me", headers=old_headers)).status_code == 401

        old_login = await api_client.post(
            "/auth/login", json={"email": "ops@example.com", "password": "password123"}
        )
        new_login = await api_client.post(
            "/auth/login", json={"email": "ops@example.com", "password": "new-password-1"}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200

    @pytest.mark.asyncio
    async def test_short_new_password(self, api_client, auth_headers, make_user):
        headers = await auth_headers(AppRole.ADMIN)
        user = await make_user()

        response = await api_client.post(
            "/admin/users/reset-password",
            json={"user_id": str(user.id), "new_password": "1234567"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Password must be at least 8 characters"}

    @pytest.mark.asyncio
    async def test_overlong_new_password(self, api_client, auth_headers, make_user):
        headers = await auth_headers(AppRole.ADMIN)
        user = await make_user()

        response = await api_client.post(
            "/admin/users/reset-password",
            json={"user_id": str(user.id), "new_password": "p" * 80},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Password must be at most 72 bytes"}
