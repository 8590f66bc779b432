"""Admin API router: dashboard, audit log, live permission check, health."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.guard import CurrentSubject, get_current_subject
from gatekeeper.db.session import get_db
from gatekeeper.models.permission import Permission
from gatekeeper.models.role import Role
from gatekeeper.models.user import User
from gatekeeper.schemas.schemas import AuditLogOut, PermissionCheckOut
from gatekeeper.services.audit_service import audit_service
from gatekeeper.services.cache_service import cache_service

logger = logging.getLogger("gatekeeper")

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard")
async def dashboard(
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    """Landing page data; guarded by the area default permission."""

    async def count(model) -> int:
        return await db.scalar(select(func.count()).select_from(model).where(model.is_deleted.is_(False)))

    return {
        "user": subject.claims.name,
        "total_users": await count(User),
        "total_roles": await count(Role),
        "total_permissions": await count(Permission),
    }


@router.get("/audit")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    actor_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """Query audit logs."""
    result = await audit_service.query_logs(db, actor_id, action, resource_type, page, page_size)
    return {
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.get("/check", response_model=PermissionCheckOut)
async def check_permission(
    permission: str = Query(..., min_length=1),
    module: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    """Live check of a permission for the current user."""
    granted = await subject.has_permission_live(db, permission, module)
    return PermissionCheckOut(permission=permission, module=module, granted=granted)


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """System health check for DB and Redis. Exempt from the area guard."""
    db_ok = False
    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)

    redis_ok = await cache_service.health_check()

    return {
        "database": "ok" if db_ok else "error",
        "redis": "ok" if redis_ok else "error",
        "status": "healthy" if db_ok else "degraded",
    }
