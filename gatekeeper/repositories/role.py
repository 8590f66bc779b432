from typing import Iterable, Optional, Set

from sqlalchemy import select

from gatekeeper.models.role import Role
from gatekeeper.repositories.base import LifecycleRepository


class RoleRepository(LifecycleRepository[Role]):
    model = Role
    label = "role"
    search_columns = ("name", "display_name")
    sort_columns = {
        "name": "name",
        "displayname": "display_name",
        "displayorder": "display_order",
        "createdat": "created_at",
    }

    async def get_by_name(self, name: str, include_deleted: bool = False) -> Optional[Role]:
        stmt = select(Role).where(Role.name == name)
        if not include_deleted:
            stmt = stmt.where(Role.is_deleted.is_(False))
        return (await self.session.scalars(stmt)).one_or_none()

    async def active_ids(self, role_ids: Iterable[int]) -> Set[int]:
        """Subset of ``role_ids`` that exist, are active and not deleted."""
        ids = set(role_ids)
        if not ids:
            return set()
        stmt = select(Role.id).where(
            Role.id.in_(ids), Role.is_active.is_(True), Role.is_deleted.is_(False)
        )
        return set((await self.session.scalars(stmt)).all())
