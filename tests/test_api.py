"""
HTTP surface: the admin-area guard end to end, account flows, and the
error mapping for lifecycle rules.
"""

import pytest

from gatekeeper.core.config import settings
from gatekeeper.core.permissions import (
    ACCESS_ADMIN_PANEL,
    FULL_ADMIN_ACCESS,
    MANAGE_PERMISSIONS,
    MANAGE_ROLES,
    MANAGE_USERS,
)
from gatekeeper.repositories.permission import PermissionRepository
from gatekeeper.repositories.role import RoleRepository
from gatekeeper.services.assignment_service import assignment_service

pytestmark = pytest.mark.api

PASSWORD = "Secret123!"


class TestGuardOverHttp:

    @pytest.mark.asyncio
    async def test_anonymous_request_is_challenged(self, api):
        response = await api.get("/api/admin/dashboard")
        assert response.status_code == 401
        assert response.headers["location"] == settings.ADMIN_LOGIN_URL

    @pytest.mark.asyncio
    async def test_anonymous_request_to_explicitly_guarded_endpoint_is_challenged(self, api):
        response = await api.get("/api/admin/users")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_member_without_admin_panel_access_is_forbidden(self, api, factory):
        await factory.user_with_permissions("member", "access_member_area")
        headers = await api.login_headers("member")

        response = await api.get("/api/admin/dashboard", headers=headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_panel_access_opens_unannotated_endpoints_only(self, api, factory):
        await factory.user_with_permissions("staff", ACCESS_ADMIN_PANEL)
        headers = await api.login_headers("staff")

        assert (await api.get("/api/admin/dashboard", headers=headers)).status_code == 200
        assert (await api.get("/api/admin/account/me", headers=headers)).status_code == 200
        assert (await api.get("/api/admin/users", headers=headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_exempt_endpoints_are_reachable_anonymously(self, api):
        assert (await api.get("/api/admin/health")).status_code == 200
        response = await api.post("/api/admin/account/forgot-password", json={"email": "x@example.com"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_superuser_reaches_everything(self, api, factory):
        await factory.user_with_permissions("root", FULL_ADMIN_ACCESS)
        headers = await api.login_headers("root")

        for path in ("/api/admin/dashboard", "/api/admin/users", "/api/admin/roles", "/api/admin/permissions"):
            assert (await api.get(path, headers=headers)).status_code == 200, path

    @pytest.mark.asyncio
    async def test_revoked_grant_takes_effect_on_next_request(self, api, factory, db):
        await factory.user_with_permissions("staff", ACCESS_ADMIN_PANEL)
        headers = await api.login_headers("staff")
        assert (await api.get("/api/admin/dashboard", headers=headers)).status_code == 200

        role = await RoleRepository(db).get_by_name("staff_role")
        panel = await PermissionRepository(db).get_by_name(ACCESS_ADMIN_PANEL)
        await assignment_service.revoke_permission(db, role.id, panel.id)

        assert (await api.get("/api/admin/dashboard", headers=headers)).status_code == 403


class TestAccountFlow:

    @pytest.mark.asyncio
    async def test_login_sets_cookie_and_redirect(self, api, factory):
        await factory.user_with_permissions("staff", ACCESS_ADMIN_PANEL)

        response = await api.post(
            "/api/admin/account/login",
            json={"login": "staff", "password": PASSWORD, "return_url": "/admin/roles"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["redirect_url"] == "/admin/roles"
        assert body["user"]["permissions"] == [ACCESS_ADMIN_PANEL]
        assert settings.SESSION_COOKIE_NAME in response.cookies

        me = await api.get("/api/admin/account/me")
        assert me.status_code == 200
        assert me.json()["email"] == "staff@example.com"

    @pytest.mark.asyncio
    async def test_bad_credentials_get_a_generic_401(self, api, factory):
        await factory.user("staff")
        response = await api.post("/api/admin/account/login", json={"login": "staff", "password": "wrong"})
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid credentials."}

    @pytest.mark.asyncio
    async def test_overlong_password_gets_a_generic_401(self, api, factory):
        await factory.user("staff")
        response = await api.post("/api/admin/account/login", json={"login": "staff", "password": "y" * 100})
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid credentials."}

    @pytest.mark.asyncio
    async def test_logout_revokes_the_session(self, api, factory):
        await factory.user_with_permissions("staff", ACCESS_ADMIN_PANEL)
        headers = await api.login_headers("staff")

        assert (await api.post("/api/admin/account/logout", headers=headers)).status_code == 200
        assert (await api.get("/api/admin/dashboard", headers=headers)).status_code == 401

    @pytest.mark.asyncio
    async def test_reset_password_with_bad_token_is_422(self, api, factory):
        await factory.user("staff")
        response = await api.post(
            "/api/admin/account/reset-password",
            json={"email": "staff@example.com", "token": "bogus", "new_password": "NewSecret1!"},
        )
        assert response.status_code == 422


class TestLifecycleOverHttp:

    @pytest.mark.asyncio
    async def test_role_lifecycle_and_reserved_name(self, api, factory):
        await factory.user_with_permissions("manager", MANAGE_ROLES)
        headers = await api.login_headers("manager")

        created = await api.post("/api/admin/roles", json={"name": "Editors"}, headers=headers)
        assert created.status_code == 201
        role_id = created.json()["id"]

        premature = await api.delete(f"/api/admin/roles/{role_id}/permanent", headers=headers)
        assert premature.status_code == 409

        assert (await api.delete(f"/api/admin/roles/{role_id}", headers=headers)).status_code == 200
        assert (await api.get(f"/api/admin/roles/{role_id}", headers=headers)).status_code == 404
        bin_ids = [r["id"] for r in (await api.get("/api/admin/roles/deleted", headers=headers)).json()]
        assert role_id in bin_ids

        duplicate = await api.post("/api/admin/roles", json={"name": "Editors"}, headers=headers)
        assert duplicate.status_code == 409

        assert (await api.post(f"/api/admin/roles/{role_id}/restore", headers=headers)).status_code == 200
        assert (await api.get(f"/api/admin/roles/{role_id}", headers=headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_system_role_cannot_be_deleted(self, api, factory):
        system_role = await factory.role("Administrators", is_system=True)
        await factory.user_with_permissions("manager", MANAGE_ROLES)
        headers = await api.login_headers("manager")

        response = await api.delete(f"/api/admin/roles/{system_role.id}", headers=headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_system_grant_cannot_be_revoked_over_http(self, api, factory):
        role = await factory.role("Administrators", is_system=True)
        full = await factory.permission(FULL_ADMIN_ACCESS, is_system=True)
        await factory.grant(role, full, is_system=True)
        await factory.user_with_permissions("manager", MANAGE_ROLES)
        headers = await api.login_headers("manager")

        response = await api.delete(f"/api/admin/roles/{role.id}/permissions/{full.id}", headers=headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_assigning_a_role_twice_over_http_is_idempotent(self, api, factory):
        role = await factory.role("Editors")
        target = await factory.user("target")
        await factory.user_with_permissions("manager", MANAGE_USERS)
        headers = await api.login_headers("manager")

        url = f"/api/admin/users/{target.id}/roles"
        assert (await api.post(url, json={"role_id": role.id}, headers=headers)).status_code == 200
        assert (await api.post(url, json={"role_id": role.id}, headers=headers)).status_code == 200

        roles = (await api.get(url, headers=headers)).json()
        assert [(r["role_id"], r["module"]) for r in roles] == [(role.id, None)]

    @pytest.mark.asyncio
    async def test_mutations_are_audited(self, api, factory):
        await factory.user_with_permissions("keeper", MANAGE_PERMISSIONS, ACCESS_ADMIN_PANEL)
        headers = await api.login_headers("keeper")

        created = await api.post("/api/admin/permissions", json={"name": "edit_pages"}, headers=headers)
        assert created.status_code == 201

        logs = (await api.get("/api/admin/audit", params={"resource_type": "permission"}, headers=headers)).json()
        assert [entry["action"] for entry in logs["logs"]] == ["permission.created"]

    @pytest.mark.asyncio
    async def test_blank_module_on_unassign_is_422(self, api, factory):
        role = await factory.role("Editors")
        target = await factory.user("target")
        await factory.assign(target, role)
        await factory.user_with_permissions("manager", MANAGE_USERS)
        headers = await api.login_headers("manager")

        response = await api.delete(
            f"/api/admin/users/{target.id}/roles/{role.id}", params={"module": ""}, headers=headers
        )
        assert response.status_code == 422

        roles = (await api.get(f"/api/admin/users/{target.id}/roles", headers=headers)).json()
        assert [r["role_id"] for r in roles] == [role.id]

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, api, factory):
        await factory.user_with_permissions("manager", MANAGE_USERS)
        headers = await api.login_headers("manager")
        assert (await api.get("/api/admin/users/9999", headers=headers)).status_code == 404
