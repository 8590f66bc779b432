"""User model."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from gatekeeper.db.base import Base, LifecycleMixin


class User(Base, LifecycleMixin):
    """Identity subject of every authorization decision."""
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)  # lower-cased
    email = Column(String(255), unique=True, nullable=False, index=True)  # lower-cased
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    is_active = Column(Boolean, default=True, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.username
