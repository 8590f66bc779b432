"""Role <-> permission assignment edge."""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from gatekeeper.db.base import Base, LifecycleMixin, GLOBAL_SCOPE, scope_value


class RolePermission(Base, LifecycleMixin):
    """Grants a permission to a role, once per module scope.

    ``is_system_permission`` marks seed-critical grants. Nothing here blocks
    revoking them; callers check the flag first.
    """
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint(
            "role_id", "permission_id", "module", name="uq_role_permissions_role_permission_module"
        ),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(
        Integer, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module_key = Column("module", String(100), nullable=False, default=GLOBAL_SCOPE)
    is_system_permission = Column(Boolean, default=False, nullable=False)

    @property
    def module(self):
        return scope_value(self.module_key)
