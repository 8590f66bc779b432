from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, exists, select

from gatekeeper.db.base import scope_key
from gatekeeper.models.permission import Permission
from gatekeeper.models.role_permission import RolePermission
from gatekeeper.repositories.base import LifecycleRepository


class RolePermissionRepository(LifecycleRepository[RolePermission]):
    """Role <-> permission edges. Module matching is exact; None is the global scope."""

    model = RolePermission
    label = "permission grant"

    async def find(
        self, role_id: int, permission_id: int, module: Optional[str] = None
    ) -> Optional[RolePermission]:
        """The edge with this exact key, soft-deleted or not."""
        stmt = select(RolePermission).where(
            RolePermission.role_id == role_id,
            RolePermission.permission_id == permission_id,
            RolePermission.module_key == scope_key(module),
        )
        return (await self.session.scalars(stmt)).one_or_none()

    async def remove(self, role_id: int, permission_id: int, module: Optional[str] = None) -> bool:
        result = await self.session.execute(
            delete(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
                RolePermission.module_key == scope_key(module),
            )
        )
        return result.rowcount > 0

    async def permission_names_for_roles(self, role_ids: Iterable[int]) -> Set[str]:
        """Distinct permission names granted to any of the roles, in any module."""
        ids = set(role_ids)
        if not ids:
            return set()
        stmt = (
            select(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(
                RolePermission.role_id.in_(ids),
                RolePermission.is_deleted.is_(False),
                Permission.is_deleted.is_(False),
            )
            .distinct()
        )
        return set((await self.session.scalars(stmt)).all())

    async def any_role_has_permission(
        self, role_ids: Iterable[int], permission_name: str, module: Optional[str] = None
    ) -> bool:
        """True iff one of the roles holds ``permission_name`` in exactly ``module``."""
        ids = set(role_ids)
        if not ids:
            return False
        stmt = select(
            exists()
            .where(
                RolePermission.permission_id == Permission.id,
                RolePermission.role_id.in_(ids),
                RolePermission.module_key == scope_key(module),
                RolePermission.is_deleted.is_(False),
                Permission.name == permission_name,
                Permission.is_deleted.is_(False),
            )
        )
        return bool(await self.session.scalar(stmt))

    async def list_for_role(self, role_id: int) -> List[RolePermission]:
        stmt = (
            select(RolePermission)
            .where(RolePermission.role_id == role_id, RolePermission.is_deleted.is_(False))
            .order_by(RolePermission.permission_id, RolePermission.module_key)
        )
        return list((await self.session.scalars(stmt)).all())
