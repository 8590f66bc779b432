"""Assignment graph: user <-> role and role <-> permission edges."""

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.exceptions import ResourceNotFoundError
from gatekeeper.db.base import scope_key
from gatekeeper.models.role_permission import RolePermission
from gatekeeper.models.user_role import UserRole
from gatekeeper.repositories.permission import PermissionRepository
from gatekeeper.repositories.role import RoleRepository
from gatekeeper.repositories.role_permission import RolePermissionRepository
from gatekeeper.repositories.user import UserRepository
from gatekeeper.repositories.user_role import UserRoleRepository

logger = logging.getLogger("gatekeeper")


class AssignmentService:
    """Idempotent edge management plus the read primitives of the decision engine.

    Assigning an existing edge is a no-op; a soft-deleted edge with the same
    key is restored instead of re-inserted. When two requests insert the same
    edge concurrently the unique index picks the winner and the loser treats
    its IntegrityError as "already assigned".
    """

    @staticmethod
    async def assign_role(
        db: AsyncSession,
        user_id: int,
        role_id: int,
        module: Optional[str] = None,
        is_system_assigned: bool = False,
        actor_id: Optional[int] = None,
    ) -> UserRole:
        if await UserRepository(db).get(user_id) is None:
            raise ResourceNotFoundError(f"User {user_id} not found")
        if await RoleRepository(db).get(role_id) is None:
            raise ResourceNotFoundError(f"Role {role_id} not found")

        repo = UserRoleRepository(db)
        edge = await repo.find(user_id, role_id, module)
        if edge is None:
            edge = UserRole(
                user_id=user_id,
                role_id=role_id,
                module_key=scope_key(module),
                is_system_assigned=is_system_assigned,
            )
            if not await repo.insert_unique(edge, actor_id):
                logger.debug(
                    "Role %s already assigned to user %s (module=%r) by a concurrent request",
                    role_id, user_id, module,
                )
                edge = await repo.find(user_id, role_id, module)
        elif edge.is_deleted:
            await repo.restore(edge.id, actor_id)

        await db.commit()
        return edge

    @staticmethod
    async def unassign_role(
        db: AsyncSession, user_id: int, role_id: int, module: Optional[str] = None
    ) -> bool:
        removed = await UserRoleRepository(db).remove(user_id, role_id, module)
        await db.commit()
        return removed

    @staticmethod
    async def assign_permission(
        db: AsyncSession,
        role_id: int,
        permission_id: int,
        actor_id: Optional[int] = None,
        module: Optional[str] = None,
        is_system_permission: bool = False,
    ) -> RolePermission:
        if await RoleRepository(db).get(role_id) is None:
            raise ResourceNotFoundError(f"Role {role_id} not found")
        if await PermissionRepository(db).get(permission_id) is None:
            raise ResourceNotFoundError(f"Permission {permission_id} not found")

        repo = RolePermissionRepository(db)
        edge = await repo.find(role_id, permission_id, module)
        if edge is None:
            edge = RolePermission(
                role_id=role_id,
                permission_id=permission_id,
                module_key=scope_key(module),
                is_system_permission=is_system_permission,
            )
            if not await repo.insert_unique(edge, actor_id):
                logger.debug(
                    "Permission %s already granted to role %s (module=%r) by a concurrent request",
                    permission_id, role_id, module,
                )
                edge = await repo.find(role_id, permission_id, module)
        elif edge.is_deleted:
            await repo.restore(edge.id, actor_id)

        await db.commit()
        return edge

    @staticmethod
    async def revoke_permission(
        db: AsyncSession, role_id: int, permission_id: int, module: Optional[str] = None
    ) -> bool:
        """Remove a grant. System grants are not blocked here; check the flag before calling."""
        removed = await RolePermissionRepository(db).remove(role_id, permission_id, module)
        await db.commit()
        return removed

    @staticmethod
    async def role_ids_for_user(db: AsyncSession, user_id: int) -> Set[int]:
        return await UserRoleRepository(db).role_ids_for_user(user_id)

    @staticmethod
    async def permission_names_for_roles(db: AsyncSession, role_ids: Iterable[int]) -> Set[str]:
        return await RolePermissionRepository(db).permission_names_for_roles(role_ids)

    @staticmethod
    async def any_role_has_permission(
        db: AsyncSession, role_ids: Iterable[int], permission_name: str, module: Optional[str] = None
    ) -> bool:
        return await RolePermissionRepository(db).any_role_has_permission(role_ids, permission_name, module)

    @staticmethod
    async def roles_for_user(db: AsyncSession, user_id: int) -> List[UserRole]:
        return await UserRoleRepository(db).list_for_user(user_id)

    @staticmethod
    async def permissions_for_role(db: AsyncSession, role_id: int) -> List[RolePermission]:
        return await RolePermissionRepository(db).list_for_role(role_id)


assignment_service = AssignmentService()
