"""
Live permission checks: exact module matching, the full_admin_access bypass,
and denial of anonymous or disabled subjects.
"""

from unittest.mock import AsyncMock, patch

import pytest

from gatekeeper.core.exceptions import ValidationError
from gatekeeper.core.permissions import FULL_ADMIN_ACCESS
from gatekeeper.core.security import build_claim_set
from gatekeeper.repositories.role_permission import RolePermissionRepository
from gatekeeper.repositories.user import UserRepository
from gatekeeper.services.authorization_service import authorization_service
from gatekeeper.services.user_service import user_service


class TestModuleScopedCheck:

    @pytest.mark.asyncio
    async def test_unscoped_grant_does_not_satisfy_a_module_check(self, db, factory):
        user = await factory.user_with_permissions("alice", "edit_pages")

        assert await authorization_service.has_permission_live(db, user.id, "edit_pages", module="Blog") is False
        assert await authorization_service.has_permission_live(db, user.id, "edit_pages") is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("blank", ["", "   "])
    async def test_blank_module_is_rejected_not_treated_as_global(self, db, factory, blank):
        user = await factory.user_with_permissions("alice", "edit_pages")

        with pytest.raises(ValidationError):
            await authorization_service.has_permission_live(db, user.id, "edit_pages", module=blank)

    @pytest.mark.asyncio
    async def test_scoped_grant_satisfies_only_its_module(self, db, factory):
        role = await factory.role("Bloggers")
        publish = await factory.permission("publish_pages")
        await factory.grant(role, publish, module="Blog")
        user = await factory.user("bob")
        await factory.assign(user, role)

        assert await authorization_service.has_permission_live(db, user.id, "publish_pages", "Blog") is True
        assert await authorization_service.has_permission_live(db, user.id, "publish_pages", "CRM") is False
        assert await authorization_service.has_permission_live(db, user.id, "publish_pages") is False

    @pytest.mark.asyncio
    async def test_permission_from_any_role_counts(self, db, factory):
        user = await factory.user("carol")
        editors = await factory.role("Editors")
        authors = await factory.role("Authors")
        await factory.grant(authors, await factory.permission("write_posts"))
        await factory.assign(user, editors)
        await factory.assign(user, authors, module="Blog")

        assert await authorization_service.has_permission_live(db, user.id, "write_posts") is True


class TestSuperuserBypass:

    @pytest.mark.asyncio
    async def test_full_admin_access_grants_any_permission(self, db, factory):
        admin = await factory.user_with_permissions("root", FULL_ADMIN_ACCESS)

        assert await authorization_service.has_permission_live(db, admin.id, "anything_at_all") is True
        assert await authorization_service.has_permission_live(db, admin.id, "edit_pages", "Blog") is True

    @pytest.mark.asyncio
    async def test_bypass_short_circuits_the_specific_query(self, db, factory):
        admin = await factory.user_with_permissions("root", FULL_ADMIN_ACCESS)
        real = RolePermissionRepository.any_role_has_permission
        calls = []

        async def spy(self, role_ids, permission_name, module=None):
            calls.append((permission_name, module))
            return await real(self, role_ids, permission_name, module)

        with patch.object(RolePermissionRepository, "any_role_has_permission", spy):
            assert await authorization_service.has_permission_live(db, admin.id, "manage_users", "CRM") is True

        assert calls == [(FULL_ADMIN_ACCESS, None)]

    @pytest.mark.asyncio
    async def test_module_scoped_full_admin_access_is_not_a_bypass(self, db, factory):
        role = await factory.role("CrmAdmins")
        await factory.grant(role, await factory.permission(FULL_ADMIN_ACCESS), module="CRM")
        user = await factory.user("dave")
        await factory.assign(user, role)

        assert await authorization_service.has_permission_live(db, user.id, "manage_users") is False


class TestDeniedSubjects:

    @pytest.mark.asyncio
    async def test_anonymous_is_denied_without_touching_the_store(self, db):
        with patch.object(UserRepository, "get", AsyncMock()) as lookup:
            assert await authorization_service.has_permission_live(db, None, "edit_pages") is False
        lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_user_is_denied(self, db):
        assert await authorization_service.has_permission_live(db, 4242, "edit_pages") is False

    @pytest.mark.asyncio
    async def test_user_without_roles_is_denied(self, db, factory):
        user = await factory.user("erin")
        assert await authorization_service.has_permission_live(db, user.id, "edit_pages") is False

    @pytest.mark.asyncio
    async def test_deactivated_user_is_denied(self, db, factory):
        user = await factory.user_with_permissions("frank", FULL_ADMIN_ACCESS)
        await user_service.set_active(db, user.id, False)
        assert await authorization_service.has_permission_live(db, user.id, "edit_pages") is False

    @pytest.mark.asyncio
    async def test_grant_changes_apply_immediately_to_live_checks(self, db, factory):
        from gatekeeper.repositories.permission import PermissionRepository
        from gatekeeper.repositories.role import RoleRepository
        from gatekeeper.services.assignment_service import assignment_service

        user = await factory.user_with_permissions("gina", "edit_pages")
        role = await RoleRepository(db).get_by_name("gina_role")
        edit = await PermissionRepository(db).get_by_name("edit_pages")
        await assignment_service.revoke_permission(db, role.id, edit.id)

        assert await authorization_service.has_permission_live(db, user.id, "edit_pages") is False


class TestHasClaim:

    def test_checks_the_snapshot_only(self):
        claims = build_claim_set(1, "A", "a@example.com", ["edit_pages"])
        assert authorization_service.has_claim(claims, "edit_pages") is True
        assert authorization_service.has_claim(claims, "manage_users") is False

    def test_no_claims_means_no_claim(self):
        assert authorization_service.has_claim(None, "edit_pages") is False
