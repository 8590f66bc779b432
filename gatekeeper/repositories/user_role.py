from typing import List, Optional, Set

from sqlalchemy import delete, select

from gatekeeper.db.base import scope_key
from gatekeeper.models.role import Role
from gatekeeper.models.user_role import UserRole
from gatekeeper.repositories.base import LifecycleRepository


class UserRoleRepository(LifecycleRepository[UserRole]):
    """User <-> role edges. Module matching is exact; None is the global scope."""

    model = UserRole
    label = "role assignment"

    async def find(self, user_id: int, role_id: int, module: Optional[str] = None) -> Optional[UserRole]:
        """The edge with this exact key, soft-deleted or not."""
        stmt = select(UserRole).where(
            UserRole.user_id == user_id,
            UserRole.role_id == role_id,
            UserRole.module_key == scope_key(module),
        )
        return (await self.session.scalars(stmt)).one_or_none()

    async def remove(self, user_id: int, role_id: int, module: Optional[str] = None) -> bool:
        result = await self.session.execute(
            delete(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role_id,
                UserRole.module_key == scope_key(module),
            )
        )
        return result.rowcount > 0

    async def role_ids_for_user(self, user_id: int) -> Set[int]:
        """Distinct ids of live, active roles granted to the user in any module."""
        stmt = (
            select(UserRole.role_id)
            .join(Role, Role.id == UserRole.role_id)
            .where(
                UserRole.user_id == user_id,
                UserRole.is_deleted.is_(False),
                Role.is_deleted.is_(False),
                Role.is_active.is_(True),
            )
            .distinct()
        )
        return set((await self.session.scalars(stmt)).all())

    async def list_for_user(self, user_id: int) -> List[UserRole]:
        stmt = (
            select(UserRole)
            .where(UserRole.user_id == user_id, UserRole.is_deleted.is_(False))
            .order_by(UserRole.role_id, UserRole.module_key)
        )
        return list((await self.session.scalars(stmt)).all())

    def user_ids_with_role(self, role_id: int):
        """Subquery of users holding ``role_id``, for filtering user listings."""
        return select(UserRole.user_id).where(
            UserRole.role_id == role_id, UserRole.is_deleted.is_(False)
        )
