"""Role service: role catalog management and the role recycle bin."""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from gatekeeper.models.role import Role
from gatekeeper.repositories.base import PageResult, QueryOptions
from gatekeeper.repositories.role import RoleRepository


class RoleService:
    """Role names are unique across the whole table, so a role in the recycle
    bin still reserves its name until it is permanently deleted."""

    @staticmethod
    async def get_role(db: AsyncSession, role_id: int, include_deleted: bool = False) -> Role:
        role = await RoleRepository(db).get(role_id, include_deleted=include_deleted)
        if role is None:
            raise ResourceNotFoundError(f"Role {role_id} not found")
        return role

    @staticmethod
    async def list_roles(db: AsyncSession, options: QueryOptions) -> PageResult[Role]:
        return await RoleRepository(db).list_page(options)

    @staticmethod
    async def create_role(
        db: AsyncSession,
        name: str,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        module: Optional[str] = None,
        is_active: bool = True,
        is_system: bool = False,
        display_order: Optional[int] = None,
        actor_id: Optional[int] = None,
    ) -> Role:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Role name is required.")

        repo = RoleRepository(db)
        if await repo.get_by_name(name, include_deleted=True) is not None:
            raise ResourceConflictError(f"Role name '{name}' is already taken.")

        role = Role(
            name=name,
            display_name=display_name,
            description=description,
            module=module or None,
            is_active=is_active,
            is_system=is_system,
            display_order=display_order,
        )
        try:
            await repo.add(role, actor_id)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ResourceConflictError(f"Role name '{name}' is already taken.")
        return role

    @staticmethod
    async def update_role(
        db: AsyncSession, role_id: int, changes: Dict[str, Any], actor_id: Optional[int] = None
    ) -> Role:
        """Update descriptive fields. The technical name never changes."""
        role = await RoleService.get_role(db, role_id)
        changes = dict(changes)
        if "module" in changes:
            changes["module"] = changes["module"] or None
        await RoleRepository(db).update(role, changes, actor_id, excluded_attrs={"name", "is_system"})
        await db.commit()
        return role

    @staticmethod
    async def soft_delete(db: AsyncSession, role_id: int, actor_id: Optional[int] = None) -> bool:
        changed = await RoleRepository(db).soft_delete(role_id, actor_id)
        await db.commit()
        return changed

    @staticmethod
    async def restore(db: AsyncSession, role_id: int, actor_id: Optional[int] = None) -> bool:
        changed = await RoleRepository(db).restore(role_id, actor_id)
        await db.commit()
        return changed

    @staticmethod
    async def hard_delete(db: AsyncSession, role_id: int) -> bool:
        removed = await RoleRepository(db).hard_delete(role_id)
        await db.commit()
        return removed

    @staticmethod
    async def list_deleted(db: AsyncSession) -> List[Role]:
        return await RoleRepository(db).list_deleted()


role_service = RoleService()
