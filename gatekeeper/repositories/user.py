from typing import Optional

from sqlalchemy import or_, select

from gatekeeper.models.user import User
from gatekeeper.repositories.base import LifecycleRepository


class UserRepository(LifecycleRepository[User]):
    model = User
    label = "user"
    search_columns = ("username", "email", "first_name", "last_name")
    sort_columns = {
        "username": "username",
        "email": "email",
        "createdat": "created_at",
        "lastloginat": "last_login_at",
    }

    async def get_by_username(self, username: str) -> Optional[User]:
        """Lookup by lower-cased username; soft-deleted users are not returned."""
        stmt = select(User).where(User.username == username, User.is_deleted.is_(False))
        return (await self.session.scalars(stmt)).one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Lookup by lower-cased email; soft-deleted users are not returned."""
        stmt = select(User).where(User.email == email, User.is_deleted.is_(False))
        return (await self.session.scalars(stmt)).one_or_none()

    async def get_by_login(self, login: str) -> Optional[User]:
        """Lookup by username or email."""
        stmt = select(User).where(
            or_(User.username == login, User.email == login),
            User.is_deleted.is_(False),
        )
        return (await self.session.scalars(stmt)).first()

    async def username_or_email_taken(
        self, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None
    ) -> bool:
        """Uniqueness probe over the whole table, soft-deleted rows included."""
        clauses = []
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            return False
        stmt = select(User.id).where(or_(*clauses))
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return (await self.session.scalars(stmt.limit(1))).first() is not None
