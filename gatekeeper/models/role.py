"""Role model for RBAC."""

from sqlalchemy import Column, Integer, String, Boolean
from gatekeeper.db.base import Base, LifecycleMixin


class Role(Base, LifecycleMixin):
    """Named access grouping, optionally scoped to a module."""
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)  # immutable once created
    display_name = Column(String(255), nullable=True)
    description = Column(String(500), nullable=True)
    module = Column(String(100), nullable=True)  # NULL = global
    is_active = Column(Boolean, default=True, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, nullable=True)
