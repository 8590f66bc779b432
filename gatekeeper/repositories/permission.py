from typing import Optional

from sqlalchemy import select

from gatekeeper.models.permission import Permission
from gatekeeper.repositories.base import LifecycleRepository


class PermissionRepository(LifecycleRepository[Permission]):
    model = Permission
    label = "permission"
    search_columns = ("name", "display_name", "description")
    sort_columns = {
        "name": "name",
        "displayname": "display_name",
        "module": "module",
        "createdat": "created_at",
    }

    async def get_by_name(self, name: str, include_deleted: bool = False) -> Optional[Permission]:
        stmt = select(Permission).where(Permission.name == name)
        if not include_deleted:
            stmt = stmt.where(Permission.is_deleted.is_(False))
        return (await self.session.scalars(stmt)).one_or_none()
