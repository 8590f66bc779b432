"""Users API router: identity store administration, recycle bin, role grants."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.api.params import query_options
from gatekeeper.core.guard import CurrentSubject, get_current_subject, requires_permission
from gatekeeper.core.permissions import MANAGE_USERS
from gatekeeper.db.session import get_db
from gatekeeper.repositories.base import QueryOptions
from gatekeeper.schemas.schemas import (
    MessageResponse, PasswordChangeRequest, UserCreateRequest, UserListOut, UserOut,
    UserRoleAssignRequest, UserRoleOut, UserStatusRequest, UserUpdateRequest,
)
from gatekeeper.services.assignment_service import assignment_service
from gatekeeper.services.audit_service import audit_service
from gatekeeper.services.user_service import user_service

router = APIRouter(prefix="/admin/users", tags=["users"])


@router.get("", response_model=UserListOut)
@requires_permission(MANAGE_USERS)
async def list_users(
    options: QueryOptions = Depends(query_options),
    role_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Paged list of active users, optionally filtered by role."""
    result = await user_service.list_users(db, options, role_id)
    return UserListOut(
        users=[UserOut.model_validate(u) for u in result.items],
        total=result.total,
    )


@router.post("", response_model=UserOut, status_code=201)
@requires_permission(MANAGE_USERS)
async def create_user(
    body: UserCreateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    user = await user_service.create_user(
        db,
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        is_active=body.is_active,
        role_ids=body.role_ids,
        actor_id=subject.current_subject_id(),
    )
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="user.created", resource_type="user", resource_id=user.id,
        new_value={"username": user.username, "email": user.email, "role_ids": body.role_ids},
    )
    return UserOut.model_validate(user)


@router.get("/deleted", response_model=List[UserOut])
@requires_permission(MANAGE_USERS)
async def list_deleted_users(db: AsyncSession = Depends(get_db)):
    """Recycle bin."""
    return [UserOut.model_validate(u) for u in await user_service.list_deleted(db)]


@router.get("/{user_id}", response_model=UserOut)
@requires_permission(MANAGE_USERS)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return UserOut.model_validate(await user_service.get_user(db, user_id))


@router.put("/{user_id}", response_model=UserOut)
@requires_permission(MANAGE_USERS)
async def update_user(
    user_id: int,
    body: UserUpdateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    changes = body.model_dump(exclude_unset=True)
    user = await user_service.update_user(db, user_id, changes, subject.current_subject_id())
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="user.updated", resource_type="user", resource_id=user_id, new_value=changes,
    )
    return UserOut.model_validate(user)


@router.put("/{user_id}/status", response_model=UserOut)
@requires_permission(MANAGE_USERS)
async def set_user_status(
    user_id: int,
    body: UserStatusRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    """Activate or deactivate; deactivated users cannot sign in."""
    user = await user_service.set_active(db, user_id, body.is_active, subject.current_subject_id())
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="user.activated" if body.is_active else "user.deactivated",
        resource_type="user", resource_id=user_id,
    )
    return UserOut.model_validate(user)


@router.put("/{user_id}/password", response_model=MessageResponse)
@requires_permission(MANAGE_USERS)
async def set_user_password(
    user_id: int,
    body: PasswordChangeRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    await user_service.set_password(db, user_id, body.new_password, subject.current_subject_id())
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="user.password_changed", resource_type="user", resource_id=user_id,
    )
    return MessageResponse(message="Password updated")


@router.delete("/{user_id}", response_model=MessageResponse)
@requires_permission(MANAGE_USERS)
async def soft_delete_user(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await user_service.soft_delete(db, user_id, subject.current_subject_id()):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="user.deleted", resource_type="user", resource_id=user_id,
        )
    return MessageResponse(message="User moved to recycle bin")


@router.post("/{user_id}/restore", response_model=MessageResponse)
@requires_permission(MANAGE_USERS)
async def restore_user(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await user_service.restore(db, user_id, subject.current_subject_id()):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="user.restored", resource_type="user", resource_id=user_id,
        )
    return MessageResponse(message="User restored")


@router.delete("/{user_id}/permanent", response_model=MessageResponse)
@requires_permission(MANAGE_USERS)
async def hard_delete_user(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await user_service.hard_delete(db, user_id):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="user.purged", resource_type="user", resource_id=user_id,
        )
    return MessageResponse(message="User permanently deleted")


@router.get("/{user_id}/roles", response_model=List[UserRoleOut])
@requires_permission(MANAGE_USERS)
async def list_user_roles(user_id: int, db: AsyncSession = Depends(get_db)):
    await user_service.get_user(db, user_id)
    return [UserRoleOut.model_validate(e) for e in await assignment_service.roles_for_user(db, user_id)]


@router.post("/{user_id}/roles", response_model=UserRoleOut)
@requires_permission(MANAGE_USERS)
async def assign_user_role(
    user_id: int,
    body: UserRoleAssignRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    """Grant a role; granting one the user already holds is a no-op."""
    edge = await assignment_service.assign_role(
        db, user_id, body.role_id, body.module, actor_id=subject.current_subject_id()
    )
    await audit_service.log_from_request(
        db, request, subject.claims,
        action="user_role.assigned", resource_type="user_role", resource_id=user_id,
        new_value={"role_id": body.role_id, "module": body.module},
    )
    return UserRoleOut.model_validate(edge)


@router.delete("/{user_id}/roles/{role_id}", response_model=MessageResponse)
@requires_permission(MANAGE_USERS)
async def unassign_user_role(
    user_id: int,
    role_id: int,
    request: Request,
    module: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    subject: CurrentSubject = Depends(get_current_subject),
):
    if await assignment_service.unassign_role(db, user_id, role_id, module):
        await audit_service.log_from_request(
            db, request, subject.claims,
            action="user_role.unassigned", resource_type="user_role", resource_id=user_id,
            old_value={"role_id": role_id, "module": module},
        )
    return MessageResponse(message="Role unassigned")
