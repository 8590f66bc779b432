"""Permission model for RBAC."""

from sqlalchemy import Column, Integer, String, Boolean
from gatekeeper.db.base import Base, LifecycleMixin


class Permission(Base, LifecycleMixin):
    """Named capability unit, e.g. ``manage_users``."""
    __tablename__ = "permissions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(255), nullable=True)
    description = Column(String(500), nullable=True)
    module = Column(String(100), nullable=True)
    is_system = Column(Boolean, default=False, nullable=False)
