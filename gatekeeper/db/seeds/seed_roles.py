"""Seed system permissions, roles, and their grants into the database."""

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.permissions import (
    ACCESS_MEMBER_AREA,
    ADMINISTRATORS_ROLE,
    FULL_ADMIN_ACCESS,
    MEMBERS_ROLE,
    SYSTEM_PERMISSIONS,
)
from gatekeeper.models.permission import Permission
from gatekeeper.models.role import Role
from gatekeeper.repositories.permission import PermissionRepository
from gatekeeper.repositories.role import RoleRepository
from gatekeeper.services.assignment_service import assignment_service

ROLES_DATA = [
    {
        "name": ADMINISTRATORS_ROLE,
        "display_name": "Administrators",
        "description": "Full access to the admin area",
        "display_order": 1,
    },
    {
        "name": MEMBERS_ROLE,
        "display_name": "Members",
        "description": "Signed-in members of the site",
        "display_order": 2,
    },
]

# (role, permission, is_system_permission)
GRANTS = [
    (ADMINISTRATORS_ROLE, FULL_ADMIN_ACCESS, True),
    (MEMBERS_ROLE, ACCESS_MEMBER_AREA, False),
]


async def seed_roles(db: AsyncSession) -> None:
    """Insert system permissions, roles and grants if they don't already exist."""
    permissions = PermissionRepository(db)
    permission_ids = {}
    for name, display_name in SYSTEM_PERMISSIONS.items():
        existing = await permissions.get_by_name(name, include_deleted=True)
        if not existing:
            existing = await permissions.add(
                Permission(name=name, display_name=display_name, is_system=True)
            )
        permission_ids[name] = existing.id

    roles = RoleRepository(db)
    role_ids = {}
    for role_data in ROLES_DATA:
        existing = await roles.get_by_name(role_data["name"], include_deleted=True)
        if not existing:
            existing = await roles.add(Role(is_system=True, is_active=True, **role_data))
        role_ids[role_data["name"]] = existing.id

    await db.commit()

    for role_name, permission_name, is_system in GRANTS:
        await assignment_service.assign_permission(
            db,
            role_ids[role_name],
            permission_ids[permission_name],
            is_system_permission=is_system,
        )

    print(f"✅ Seeded {len(SYSTEM_PERMISSIONS)} permissions, {len(ROLES_DATA)} roles, {len(GRANTS)} grants")
