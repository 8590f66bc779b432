"""Permissions API router: permission catalog and its recycle bin."""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.params import query_options
from gatekeeper.core.guard import CurrentSubject, get_current_subject, requires_permission
from gatekeeper.core.permissions import MANAGE_PERMISSIONS
from gatekeeper.db.session import get_db
from gatekeeper.repositories.base import QueryOptions
from gatekeeper.schemas.schemas import (
    MessageResponse, PermissionCreateRequest, PermissionListOut, PermissionOut, PermissionUpdateRequest,
)
from gatekeeper.services.audit_service import audit_service
from gatekeeper.services.permission_service import permission_service

router = APIRouter(prefix="/admin/permissions", tags=["permissions"])


@router.get("", response_model=PermissionListOut)
@requires_permission(MANAGE_PERMISSIONS)
async def list_permissions(
    options: QueryOptions = Depends(query_options),
    db: AsyncSession = Depends(get_db),
):
    result = await permission_service.list_permissions(db, options)
    return PermissionListOut(
        permissions=[PermissionOut.model_validate(p) for p in result.items],
        total=result.total,
    )


@router.post("", response_model=PermissionOut, status_code=201)
@requires_permission(MANAGE_PERMISSIONS)
async def create_permission(
    body: PermissionCreateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    permission = await permission_service.create_permission(
        db, actor_id=subject.current_subject_id(), **body.model_dump()
    )
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="permission.created", resource_type="permission", resource_id=permission.id,
        new_value=body.model_dump(),
    )
    return PermissionOut.model_validate(permission)


@router.get("/deleted", response_model=List[PermissionOut])
@requires_permission(MANAGE_PERMISSIONS)
async def list_deleted_permissions(db: AsyncSession = Depends(get_db)):
    """Recycle bin."""
    return [PermissionOut.model_validate(p) for p in await permission_service.list_deleted(db)]


@router.get("/{permission_id}", response_model=PermissionOut)
@requires_permission(MANAGE_PERMISSIONS)
async def get_permission(permission_id: int, db: AsyncSession = Depends(get_db)):
    return PermissionOut.model_validate(await permission_service.get_permission(db, permission_id))


@router.put("/{permission_id}", response_model=PermissionOut)
@requires_permission(MANAGE_PERMISSIONS)
async def update_permission(
    permission_id: int,
    body: PermissionUpdateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    changes = body.model_dump(exclude_unset=True)
    permission = await permission_service.update_permission(
        db, permission_id, changes, subject.current_subject_id()
    )
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="permission.updated", resource_type="permission", resource_id=permission_id,
        new_value=changes,
    )
    return PermissionOut.model_validate(permission)


@router.delete("/{permission_id}", response_model=MessageResponse)
@requires_permission(MANAGE_PERMISSIONS)
async def soft_delete_permission(
    permission_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await permission_service.soft_delete(db, permission_id, subject.current_subject_id()):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="permission.deleted", resource_type="permission", resource_id=permission_id,
        )
    return MessageResponse(message="Permission moved to recycle bin")


@router.post("/{permission_id}/restore", response_model=MessageResponse)
@requires_permission(MANAGE_PERMISSIONS)
async def restore_permission(
    permission_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await permission_service.restore(db, permission_id, subject.current_subject_id()):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="permission.restored", resource_type="permission", resource_id=permission_id,
        )
    return MessageResponse(message="Permission restored")


@router.delete("/{permission_id}/permanent", response_model=MessageResponse)
@requires_permission(MANAGE_PERMISSIONS)
async def hard_delete_permission(
    permission_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await permission_service.hard_delete(db, permission_id):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="permission.purged", resource_type="permission", resource_id=permission_id,
        )
    return MessageResponse(message="Permission permanently deleted")
