"""User <-> role assignment edge."""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from gatekeeper.db.base import Base, LifecycleMixin, GLOBAL_SCOPE, scope_value


class UserRole(Base, LifecycleMixin):
    """Grants a role to a user, once per module scope."""
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", "module", name="uq_user_roles_user_role_module"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    module_key = Column("module", String(100), nullable=False, default=GLOBAL_SCOPE)
    is_system_assigned = Column(Boolean, default=False, nullable=False)

    @property
    def module(self):
        return scope_value(self.module_key)
