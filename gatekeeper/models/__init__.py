"""Models package: import all models so metadata.create_all can discover them."""

from gatekeeper.models.user import User
from gatekeeper.models.role import Role
from gatekeeper.models.permission import Permission
from gatekeeper.models.user_role import UserRole
from gatekeeper.models.role_permission import RolePermission
from gatekeeper.models.password_reset_token import PasswordResetToken
from gatekeeper.models.audit_log import AuditLog

__all__ = [
    "User", "Role", "Permission", "UserRole", "RolePermission",
    "PasswordResetToken", "AuditLog",
]
