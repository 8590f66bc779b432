"""Single-use password reset token."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from gatekeeper.db.base import Base, LifecycleMixin, utcnow


class PasswordResetToken(Base, LifecycleMixin):
    __tablename__ = "password_reset_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)  # lower-cased
    token = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)

    def is_valid(self) -> bool:
        return not self.is_used and not self.is_deleted and utcnow() <= self.expires_at
