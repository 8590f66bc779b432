"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


# ---- Shared ----
class MessageResponse(BaseModel):
    message: str

class LifecycleOut(BaseModel):
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    created_by_user_id: Optional[int] = None
    modified_by_user_id: Optional[int] = None


# ---- Account ----
class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)
    return_url: Optional[str] = None

class SessionUser(BaseModel):
    id: int
    name: str
    email: str
    permissions: List[str] = []

class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: Optional[datetime] = None
    redirect_url: str
    user: SessionUser

class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3)

class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3)
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


# ---- User ----
class UserOut(LifecycleOut):
    id: int
    username: str
    email: str
    first_name: str = ""
    last_name: str = ""
    full_name: str
    is_active: bool = True
    is_system: bool = False
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserCreateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=72)
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    role_ids: List[int] = []

class UserUpdateRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserStatusRequest(BaseModel):
    is_active: bool

class PasswordChangeRequest(BaseModel):
    new_password: str = Field(..., min_length=6, max_length=72)

class UserListOut(BaseModel):
    users: List[UserOut]
    total: int


# ---- Role ----
class RoleOut(LifecycleOut):
    id: int
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    module: Optional[str] = None
    is_active: bool = True
    is_system: bool = False
    display_order: Optional[int] = None

    class Config:
        from_attributes = True

class RoleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = None
    description: Optional[str] = None
    module: Optional[str] = None
    is_active: bool = True
    display_order: Optional[int] = None

class RoleUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    module: Optional[str] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None

class RoleListOut(BaseModel):
    roles: List[RoleOut]
    total: int


# ---- Permission ----
class PermissionOut(LifecycleOut):
    id: int
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    module: Optional[str] = None
    is_system: bool = False

    class Config:
        from_attributes = True

class PermissionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = None
    description: Optional[str] = None
    module: Optional[str] = None

class PermissionUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    module: Optional[str] = None

class PermissionListOut(BaseModel):
    permissions: List[PermissionOut]
    total: int


# ---- Assignments ----
class UserRoleOut(BaseModel):
    user_id: int
    role_id: int
    module: Optional[str] = None
    is_system_assigned: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserRoleAssignRequest(BaseModel):
    role_id: int
    module: Optional[str] = None

class RolePermissionOut(BaseModel):
    role_id: int
    permission_id: int
    module: Optional[str] = None
    is_system_permission: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RolePermissionAssignRequest(BaseModel):
    permission_id: int
    module: Optional[str] = None


# ---- Admin / Audit ----
class AuditLogOut(BaseModel):
    id: int
    actor_id: Optional[int] = None
    actor_email: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    old_value_json: Optional[str] = None
    new_value_json: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PermissionCheckOut(BaseModel):
    permission: str
    module: Optional[str] = None
    granted: bool
