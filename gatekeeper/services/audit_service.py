"""Audit service: append-only audit trail for lifecycle and assignment mutations."""

import json
from typing import Optional, Any

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.security import ClaimSet
from gatekeeper.models.audit_log import AuditLog


class AuditService:
    """Records immutable audit log entries for security events."""

    @staticmethod
    async def log(
        db: AsyncSession,
        actor_id: Optional[int],
        actor_email: Optional[str],
        action: str,
        resource_type: str,
        resource_id: Optional[Any] = None,
        old_value: Optional[Any] = None,
        new_value: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Write a single audit log record.

        Args:
            action: e.g. "user.login", "role.deleted", "user_role.assigned"
            resource_type: user, role, permission, user_role, role_permission

        This method commits immediately to ensure audit is never lost.
        """
        entry = AuditLog(
            actor_id=actor_id,
            actor_email=actor_email,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            old_value_json=json.dumps(old_value, default=str) if old_value else None,
            new_value_json=json.dumps(new_value, default=str) if new_value else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(entry)
        await db.commit()
        return entry

    @staticmethod
    async def log_from_request(
        db: AsyncSession,
        request: Request,
        claims: Optional[ClaimSet],
        action: str,
        resource_type: str,
        resource_id: Optional[Any] = None,
        old_value: Optional[Any] = None,
        new_value: Optional[Any] = None,
    ) -> AuditLog:
        """Write audit log extracting actor, IP and user-agent from the request."""
        ip = request.client.host if request.client else None
        ua = request.headers.get("user-agent", "")[:500]
        return await AuditService.log(
            db=db,
            actor_id=claims.subject_id if claims else None,
            actor_email=claims.email if claims else None,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            old_value=old_value,
            new_value=new_value,
            ip_address=ip,
            user_agent=ua,
        )

    @staticmethod
    async def query_logs(
        db: AsyncSession,
        actor_id: Optional[int] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ):
        """Query audit logs with filters and pagination."""
        stmt = select(AuditLog)

        if actor_id:
            stmt = stmt.where(AuditLog.actor_id == actor_id)
        if action:
            stmt = stmt.where(AuditLog.action.ilike(f"%{action}%"))
        if resource_type:
            stmt = stmt.where(AuditLog.resource_type == resource_type)

        total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
        logs = (
            await db.scalars(
                stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
        ).all()

        return {
            "logs": logs,
            "total": total or 0,
            "page": page,
            "page_size": page_size,
        }


audit_service = AuditService()
