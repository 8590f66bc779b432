"""Request guard for protected areas.

Every endpoint mounted behind a ``ProtectedArea`` is guarded. Resolution
order per request:

1. exempt (``@allow_anonymous`` or listed in ``exempt_paths``) -> allowed
2. ``@requires_permission(name, module)`` -> that permission
3. otherwise the area default permission
4. anonymous caller -> challenged (401)
5. failed live check -> forbidden (403)
6. allowed
"""

import logging
from enum import Enum
from typing import Callable, Iterable, Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import settings
from gatekeeper.core.exceptions import AuthenticationError, forbidden, unauthorized
from gatekeeper.core.security import ClaimSet, extract_session_token, verify_session_token
from gatekeeper.db.session import get_db
from gatekeeper.services.authorization_service import authorization_service
from gatekeeper.services.cache_service import cache_service

logger = logging.getLogger("gatekeeper")

ALLOW_ANONYMOUS_ATTR = "__gatekeeper_allow_anonymous__"
REQUIRED_PERMISSION_ATTR = "__gatekeeper_permission__"

Requirement = Tuple[str, Optional[str]]


class GuardState(str, Enum):
    UNCHECKED = "unchecked"
    CHALLENGED = "challenged"
    FORBIDDEN = "forbidden"
    ALLOWED = "allowed"


def allow_anonymous(endpoint: Callable) -> Callable:
    """Mark an endpoint as reachable without a session."""
    setattr(endpoint, ALLOW_ANONYMOUS_ATTR, True)
    return endpoint


def requires_permission(permission: str, module: Optional[str] = None) -> Callable[[Callable], Callable]:
    """Require ``permission`` (live check) instead of the area default."""

    def decorator(endpoint: Callable) -> Callable:
        setattr(endpoint, REQUIRED_PERMISSION_ATTR, (permission, module))
        return endpoint

    return decorator


class CurrentSubject:
    """The caller as seen by one request."""

    def __init__(self, claims: Optional[ClaimSet] = None):
        self.claims = claims

    def is_authenticated(self) -> bool:
        return self.claims is not None

    def current_subject_id(self) -> Optional[int]:
        return self.claims.subject_id if self.claims else None

    def has_claim(self, permission: str) -> bool:
        """Cheap check against the login-time snapshot."""
        return authorization_service.has_claim(self.claims, permission)

    async def has_permission_live(self, db: AsyncSession, permission: str, module: Optional[str] = None) -> bool:
        """Authoritative check against the store."""
        return await authorization_service.has_permission_live(db, self.current_subject_id(), permission, module)


async def get_current_subject(request: Request) -> CurrentSubject:
    """Resolve the session credential; anything invalid or revoked is anonymous."""
    token = extract_session_token(request)
    if not token:
        return CurrentSubject()
    try:
        claims = verify_session_token(token)
    except AuthenticationError as e:
        logger.debug("Ignoring session credential: %s", e.message)
        return CurrentSubject()
    if await cache_service.is_session_revoked(claims.jti):
        logger.debug("Ignoring revoked session %s", claims.jti)
        return CurrentSubject()
    return CurrentSubject(claims)


class ProtectedArea:
    """Router dependency enforcing fail-closed access to an area."""

    def __init__(
        self,
        default_permission: str = settings.ADMIN_DEFAULT_PERMISSION,
        exempt_paths: Iterable[str] = (),
        login_url: str = settings.ADMIN_LOGIN_URL,
    ):
        self.default_permission = default_permission
        self.exempt_paths = {p.rstrip("/") for p in exempt_paths}
        self.login_url = login_url

    def resolve_requirement(self, endpoint: Optional[Callable], path: str = "") -> Optional[Requirement]:
        """The permission an endpoint needs, or None when it is exempt."""
        if endpoint is not None and getattr(endpoint, ALLOW_ANONYMOUS_ATTR, False):
            return None
        if path.rstrip("/") in self.exempt_paths:
            return None
        explicit = getattr(endpoint, REQUIRED_PERMISSION_ATTR, None) if endpoint is not None else None
        if explicit is not None:
            return explicit
        return (self.default_permission, None)

    async def evaluate(
        self,
        db: AsyncSession,
        subject: CurrentSubject,
        endpoint: Optional[Callable],
        path: str = "",
    ) -> GuardState:
        requirement = self.resolve_requirement(endpoint, path)
        if requirement is None:
            return GuardState.ALLOWED
        if not subject.is_authenticated():
            return GuardState.CHALLENGED
        permission, module = requirement
        if not await subject.has_permission_live(db, permission, module):
            return GuardState.FORBIDDEN
        return GuardState.ALLOWED

    async def __call__(
        self,
        request: Request,
        db: AsyncSession = Depends(get_db),
        subject: CurrentSubject = Depends(get_current_subject),
    ) -> CurrentSubject:
        endpoint = request.scope.get("endpoint")
        state = await self.evaluate(db, subject, endpoint, request.url.path)
        if state is GuardState.CHALLENGED:
            logger.info("Challenged anonymous request to %s", request.url.path)
            raise unauthorized("Authentication required", login_url=self.login_url)
        if state is GuardState.FORBIDDEN:
            logger.info("Forbade user %s on %s", subject.current_subject_id(), request.url.path)
            raise forbidden("Access denied")
        return subject


admin_area = ProtectedArea(exempt_paths=("/api/admin/health",))
