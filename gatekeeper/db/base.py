"""Declarative base and the lifecycle envelope shared by every administrable table."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Integer
from sqlalchemy.orm import declarative_base

from gatekeeper.core.exceptions import ValidationError

Base = declarative_base()

# Assignment edges persist the global scope as "" so unique indexes see it as a value.
GLOBAL_SCOPE = ""


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every supported engine round-trips."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def scope_key(module: Optional[str]) -> str:
    """Map a public module value (None = global) to its stored form.

    Raises:
        ValidationError: If the module name is blank; only None means global.
    """
    if module is None:
        return GLOBAL_SCOPE
    key = module.strip()
    if not key:
        raise ValidationError("Module name cannot be blank; omit it for a global grant.")
    return key


def scope_value(key: Optional[str]) -> Optional[str]:
    """Inverse of scope_key."""
    return key or None


class LifecycleMixin:
    """Soft-delete envelope with audit attribution.

    A record starts Active, moves to Deleted on soft delete, back to Active
    on restore, and is purged only from the Deleted state.
    """

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    modified_at = Column(DateTime, nullable=True)
    created_by_user_id = Column(Integer, nullable=True)
    modified_by_user_id = Column(Integer, nullable=True)

    @property
    def is_protected(self) -> bool:
        return bool(getattr(self, "is_system", False))

    def mark_created(self, actor_id: Optional[int]) -> None:
        self.created_at = utcnow()
        self.created_by_user_id = actor_id
        self.is_deleted = False

    def mark_modified(self, actor_id: Optional[int], is_deleted: Optional[bool] = None) -> None:
        self.modified_at = utcnow()
        self.modified_by_user_id = actor_id
        if is_deleted is not None:
            self.is_deleted = is_deleted
