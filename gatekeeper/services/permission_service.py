"""Permission service: permission catalog management and its recycle bin."""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from gatekeeper.models.permission import Permission
from gatekeeper.repositories.base import PageResult, QueryOptions
from gatekeeper.repositories.permission import PermissionRepository


class PermissionService:

    @staticmethod
    async def get_permission(db: AsyncSession, permission_id: int, include_deleted: bool = False) -> Permission:
        permission = await PermissionRepository(db).get(permission_id, include_deleted=include_deleted)
        if permission is None:
            raise ResourceNotFoundError(f"Permission {permission_id} not found")
        return permission

    @staticmethod
    async def list_permissions(db: AsyncSession, options: QueryOptions) -> PageResult[Permission]:
        return await PermissionRepository(db).list_page(options)

    @staticmethod
    async def create_permission(
        db: AsyncSession,
        name: str,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        module: Optional[str] = None,
        is_system: bool = False,
        actor_id: Optional[int] = None,
    ) -> Permission:
        """Raises ResourceConflictError when the name exists, including in the recycle bin."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Permission name is required.")

        repo = PermissionRepository(db)
        if await repo.get_by_name(name, include_deleted=True) is not None:
            raise ResourceConflictError(f"Permission name '{name}' is already taken.")

        permission = Permission(
            name=name,
            display_name=display_name,
            description=description,
            module=module or None,
            is_system=is_system,
        )
        try:
            await repo.add(permission, actor_id)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ResourceConflictError(f"Permission name '{name}' is already taken.")
        return permission

    @staticmethod
    async def update_permission(
        db: AsyncSession, permission_id: int, changes: Dict[str, Any], actor_id: Optional[int] = None
    ) -> Permission:
        permission = await PermissionService.get_permission(db, permission_id)
        changes = dict(changes)
        if "module" in changes:
            changes["module"] = changes["module"] or None
        await PermissionRepository(db).update(permission, changes, actor_id, excluded_attrs={"name", "is_system"})
        await db.commit()
        return permission

    @staticmethod
    async def soft_delete(db: AsyncSession, permission_id: int, actor_id: Optional[int] = None) -> bool:
        changed = await PermissionRepository(db).soft_delete(permission_id, actor_id)
        await db.commit()
        return changed

    @staticmethod
    async def restore(db: AsyncSession, permission_id: int, actor_id: Optional[int] = None) -> bool:
        changed = await PermissionRepository(db).restore(permission_id, actor_id)
        await db.commit()
        return changed

    @staticmethod
    async def hard_delete(db: AsyncSession, permission_id: int) -> bool:
        removed = await PermissionRepository(db).hard_delete(permission_id)
        await db.commit()
        return removed

    @staticmethod
    async def list_deleted(db: AsyncSession) -> List[Permission]:
        return await PermissionRepository(db).list_deleted()


permission_service = PermissionService()
