"""Roles API router: role catalog, recycle bin, permission grants."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.params import query_options
from gatekeeper.core.exceptions import SystemProtectedError
from gatekeeper.core.guard import CurrentSubject, get_current_subject, requires_permission
from gatekeeper.core.permissions import MANAGE_ROLES
from gatekeeper.db.session import get_db
from gatekeeper.repositories.base import QueryOptions
from gatekeeper.repositories.role_permission import RolePermissionRepository
from gatekeeper.schemas.schemas import (
    MessageResponse, RoleCreateRequest, RoleListOut, RoleOut, RolePermissionAssignRequest,
    RolePermissionOut, RoleUpdateRequest,
)
from gatekeeper.services.assignment_service import assignment_service
from gatekeeper.services.audit_service import audit_service
from gatekeeper.services.role_service import role_service

router = APIRouter(prefix="/admin/roles", tags=["roles"])


@router.get("", response_model=RoleListOut)
@requires_permission(MANAGE_ROLES)
async def list_roles(
    options: QueryOptions = Depends(query_options),
    db: AsyncSession = Depends(get_db),
):
    result = await role_service.list_roles(db, options)
    return RoleListOut(roles=[RoleOut.model_validate(r) for r in result.items], total=result.total)


@router.post("", response_model=RoleOut, status_code=201)
@requires_permission(MANAGE_ROLES)
async def create_role(
    body: RoleCreateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    role = await role_service.create_role(
        db, actor_id=subject.current_subject_id(), **body.model_dump()
    )
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="role.created", resource_type="role", resource_id=role.id,
        new_value=body.model_dump(),
    )
    return RoleOut.model_validate(role)


@router.get("/deleted", response_model=List[RoleOut])
@requires_permission(MANAGE_ROLES)
async def list_deleted_roles(db: AsyncSession = Depends(get_db)):
    """Recycle bin."""
    return [RoleOut.model_validate(r) for r in await role_service.list_deleted(db)]


@router.get("/{role_id}", response_model=RoleOut)
@requires_permission(MANAGE_ROLES)
async def get_role(role_id: int, db: AsyncSession = Depends(get_db)):
    return RoleOut.model_validate(await role_service.get_role(db, role_id))


@router.put("/{role_id}", response_model=RoleOut)
@requires_permission(MANAGE_ROLES)
async def update_role(
    role_id: int,
    body: RoleUpdateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    changes = body.model_dump(exclude_unset=True)
    role = await role_service.update_role(db, role_id, changes, subject.current_subject_id())
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="role.updated", resource_type="role", resource_id=role_id, new_value=changes,
    )
    return RoleOut.model_validate(role)


@router.delete("/{role_id}", response_model=MessageResponse)
@requires_permission(MANAGE_ROLES)
async def soft_delete_role(
    role_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await role_service.soft_delete(db, role_id, subject.current_subject_id()):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="role.deleted", resource_type="role", resource_id=role_id,
        )
    return MessageResponse(message="Role moved to recycle bin")


@router.post("/{role_id}/restore", response_model=MessageResponse)
@requires_permission(MANAGE_ROLES)
async def restore_role(
    role_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await role_service.restore(db, role_id, subject.current_subject_id()):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="role.restored", resource_type="role", resource_id=role_id,
        )
    return MessageResponse(message="Role restored")


@router.delete("/{role_id}/permanent", response_model=MessageResponse)
@requires_permission(MANAGE_ROLES)
async def hard_delete_role(
    role_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await role_service.hard_delete(db, role_id):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="role.purged", resource_type="role", resource_id=role_id,
        )
    return MessageResponse(message="Role permanently deleted")


@router.get("/{role_id}/permissions", response_model=List[RolePermissionOut])
@requires_permission(MANAGE_ROLES)
async def list_role_permissions(role_id: int, db: AsyncSession = Depends(get_db)):
    await role_service.get_role(db, role_id)
    return [RolePermissionOut.model_validate(e) for e in await assignment_service.permissions_for_role(db, role_id)]


@router.post("/{role_id}/permissions", response_model=RolePermissionOut)
@requires_permission(MANAGE_ROLES)
async def grant_role_permission(
    role_id: int,
    body: RolePermissionAssignRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    """Grant a permission; granting one the role already holds is a no-op."""
    edge = await assignment_service.assign_permission(
        db, role_id, body.permission_id, subject.current_subject_id(), body.module
    )
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="role_permission.granted", resource_type="role_permission", resource_id=role_id,
        new_value={"permission_id": body.permission_id, "module": body.module},
    )
    return RolePermissionOut.model_validate(edge)


@router.delete("/{role_id}/permissions/{permission_id}", response_model=MessageResponse)
@requires_permission(MANAGE_ROLES)
async def revoke_role_permission(
    role_id: int,
    permission_id: int,
    request: Request,
    module: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    """Revoke a grant. Seeded system grants are refused."""
    edge = await RolePermissionRepository(db).find(role_id, permission_id, module)
    if edge is not None and edge.is_system_permission:
        raise SystemProtectedError("System permission grants cannot be revoked.")

    if await assignment_service.revoke_permission(db, role_id, permission_id, module):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="role_permission.revoked", resource_type="role_permission", resource_id=role_id,
            old_value={"permission_id": permission_id, "module": module},
        )
    return MessageResponse(message="Permission revoked")
