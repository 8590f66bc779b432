"""User service: identity store management and the user recycle bin."""

import re
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.exceptions import (
    ResourceConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from gatekeeper.core.security import hash_password
from gatekeeper.db.base import GLOBAL_SCOPE
from gatekeeper.models.user import User
from gatekeeper.models.user_role import UserRole
from gatekeeper.repositories.base import PageResult, QueryOptions
from gatekeeper.repositories.role import RoleRepository
from gatekeeper.repositories.user import UserRepository
from gatekeeper.repositories.user_role import UserRoleRepository

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

TAKEN_MESSAGE = "Username or Email is already taken."
INVALID_ROLES_MESSAGE = "One or more selected roles are invalid or inactive."


def normalize_username(username: str) -> str:
    value = (username or "").strip().lower()
    if not value:
        raise ValidationError("Username is required.")
    return value


def normalize_email(email: str) -> str:
    value = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValidationError("Email format is invalid.")
    return value


class UserService:

    @staticmethod
    async def get_user(db: AsyncSession, user_id: int, include_deleted: bool = False) -> User:
        user = await UserRepository(db).get(user_id, include_deleted=include_deleted)
        if user is None:
            raise ResourceNotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession, options: QueryOptions, role_id: Optional[int] = None
    ) -> PageResult[User]:
        criteria = []
        if role_id is not None:
            criteria.append(User.id.in_(UserRoleRepository(db).user_ids_with_role(role_id)))
        return await UserRepository(db).list_page(options, *criteria)

    @staticmethod
    async def create_user(
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        is_active: bool = True,
        is_system: bool = False,
        role_ids: Iterable[int] = (),
        actor_id: Optional[int] = None,
    ) -> User:
        """Create a user and grant the given global roles.

        Raises:
            ValidationError: If the email is malformed or a role id is not an active role.
            ResourceConflictError: If the username or email is taken, even by a deleted user.
        """
        username = normalize_username(username)
        email = normalize_email(email)
        repo = UserRepository(db)

        if await repo.username_or_email_taken(username, email):
            raise ResourceConflictError(TAKEN_MESSAGE)

        wanted_roles = set(role_ids)
        if wanted_roles:
            active = await RoleRepository(db).active_ids(wanted_roles)
            if active != wanted_roles:
                raise ValidationError(INVALID_ROLES_MESSAGE)

        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            first_name=(first_name or "").strip(),
            last_name=(last_name or "").strip(),
            is_active=is_active,
            is_system=is_system,
        )
        try:
            await repo.add(user, actor_id)
        except IntegrityError:
            await db.rollback()
            raise ResourceConflictError(TAKEN_MESSAGE)

        # Initial roles share the user's transaction; either all land or none do.
        edges = UserRoleRepository(db)
        try:
            for role_id in sorted(wanted_roles):
                await edges.add(UserRole(user_id=user.id, role_id=role_id, module_key=GLOBAL_SCOPE), actor_id)
        except IntegrityError:
            await db.rollback()
            raise ValidationError(INVALID_ROLES_MESSAGE)

        await db.commit()
        return user

    @staticmethod
    async def update_user(
        db: AsyncSession, user_id: int, changes: Dict[str, Any], actor_id: Optional[int] = None
    ) -> User:
        """Update profile fields; username and email are re-normalized and re-checked."""
        repo = UserRepository(db)
        user = await UserService.get_user(db, user_id)
        changes = dict(changes)

        if "username" in changes:
            changes["username"] = normalize_username(changes["username"])
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        if await repo.username_or_email_taken(
            changes.get("username"), changes.get("email"), exclude_id=user.id
        ):
            raise ResourceConflictError(TAKEN_MESSAGE)

        try:
            await repo.update(user, changes, actor_id, excluded_attrs={"hashed_password", "is_system"})
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ResourceConflictError(TAKEN_MESSAGE)
        return user

    @staticmethod
    async def set_active(db: AsyncSession, user_id: int, is_active: bool, actor_id: Optional[int] = None) -> User:
        user = await UserService.get_user(db, user_id)
        user.is_active = is_active
        user.mark_modified(actor_id)
        await db.commit()
        return user

    @staticmethod
    async def set_password(db: AsyncSession, user_id: int, new_password: str, actor_id: Optional[int] = None) -> None:
        user = await UserService.get_user(db, user_id)
        user.hashed_password = hash_password(new_password)
        user.mark_modified(actor_id)
        await db.commit()

    @staticmethod
    async def soft_delete(db: AsyncSession, user_id: int, actor_id: Optional[int] = None) -> bool:
        changed = await UserRepository(db).soft_delete(user_id, actor_id)
        await db.commit()
        return changed

    @staticmethod
    async def restore(db: AsyncSession, user_id: int, actor_id: Optional[int] = None) -> bool:
        changed = await UserRepository(db).restore(user_id, actor_id)
        await db.commit()
        return changed

    @staticmethod
    async def hard_delete(db: AsyncSession, user_id: int) -> bool:
        removed = await UserRepository(db).hard_delete(user_id)
        await db.commit()
        return removed

    @staticmethod
    async def list_deleted(db: AsyncSession) -> List[User]:
        return await UserRepository(db).list_deleted()


user_service = UserService()
