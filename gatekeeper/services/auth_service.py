"""Auth service: password and external login, claim minting, logout."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.exceptions import AuthenticationError
from gatekeeper.core.security import (
    ClaimSet,
    build_claim_set,
    mint_session_token,
    resolve_return_url,
    verify_password,
    verify_session_token,
)
from gatekeeper.db.base import utcnow
from gatekeeper.models.user import User
from gatekeeper.repositories.user import UserRepository
from gatekeeper.services.assignment_service import assignment_service
from gatekeeper.services.cache_service import cache_service

logger = logging.getLogger("gatekeeper")

INVALID_CREDENTIALS = "Invalid credentials."


@dataclass
class LoginResult:
    user: User
    claims: ClaimSet
    token: str
    redirect_url: str


class AuthService:
    """Handles authentication and session issuance.

    Permissions are resolved once, at login, into the session token. A
    session is never refreshed, so grants changed afterwards only apply
    after the next login; use the live check where that matters.
    """

    @staticmethod
    async def mint_claims(db: AsyncSession, user: User) -> ClaimSet:
        """Union of permission names across all of the user's roles and modules."""
        role_ids = await assignment_service.role_ids_for_user(db, user.id)
        permissions = await assignment_service.permission_names_for_roles(db, role_ids)
        return build_claim_set(user.id, user.full_name, user.email, permissions)

    @staticmethod
    async def authenticate(db: AsyncSession, login: str, password: str) -> User:
        """Verify a username-or-email and password pair.

        Raises:
            AuthenticationError: With the same generic message whether the
                account is unknown, deleted, deactivated or the password is wrong.
        """
        login = (login or "").strip().lower()
        user = await UserRepository(db).get_by_login(login)
        if user is None or not user.is_active or not verify_password(password, user.hashed_password):
            logger.info("Failed login attempt for %r", login)
            raise AuthenticationError(INVALID_CREDENTIALS)
        return user

    @staticmethod
    async def _start_session(db: AsyncSession, user: User, return_url: Optional[str]) -> LoginResult:
        claims = await AuthService.mint_claims(db, user)
        user.last_login_at = utcnow()
        await db.commit()

        token = mint_session_token(claims)
        logger.info("User %s signed in with %d permissions", user.id, len(claims.permissions))
        return LoginResult(
            user=user,
            claims=verify_session_token(token),
            token=token,
            redirect_url=resolve_return_url(return_url),
        )

    @staticmethod
    async def login(
        db: AsyncSession, login: str, password: str, return_url: Optional[str] = None
    ) -> LoginResult:
        user = await AuthService.authenticate(db, login, password)
        return await AuthService._start_session(db, user, return_url)

    @staticmethod
    async def login_external(
        db: AsyncSession, verified_email: str, return_url: Optional[str] = None
    ) -> LoginResult:
        """Sign in a user whose email an external identity provider has verified."""
        email = (verified_email or "").strip().lower()
        user = await UserRepository(db).get_by_email(email)
        if user is None or not user.is_active:
            logger.info("Rejected external login for %r", email)
            raise AuthenticationError(INVALID_CREDENTIALS)
        return await AuthService._start_session(db, user, return_url)

    @staticmethod
    async def logout(claims: Optional[ClaimSet]) -> None:
        """Revoke the session id for the remainder of its lifetime."""
        if claims is None:
            return
        await cache_service.revoke_session(claims.jti, claims.expires_at)
        logger.info("User %s signed out", claims.subject_id)


auth_service = AuthService()
