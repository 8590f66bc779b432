"""Password hashing, signed session credentials, and redirect safety helpers."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from urllib.parse import urlsplit

import bcrypt
from fastapi import Request
from jose import JWTError, jwt

from gatekeeper.core.config import settings
from gatekeeper.core.exceptions import AuthenticationError, ValidationError

SESSION_TOKEN_TYPE = "session"

# bcrypt only looks at the first 72 bytes and current releases reject longer input.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Raises:
        ValidationError: If the password is longer than bcrypt accepts.
    """
    pwd_bytes = password.encode("utf-8")
    if len(pwd_bytes) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    if len(pwd_bytes) > MAX_PASSWORD_BYTES:
        return False
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


@dataclass(frozen=True)
class ClaimSet:
    """Facts about a subject captured at login.

    Permissions are a snapshot; role changes made after login are not
    visible here until the subject signs in again.
    """

    subject_id: int
    name: str
    email: str
    permissions: frozenset = field(default_factory=frozenset)
    jti: str = ""
    expires_at: Optional[datetime] = None

    def has_claim(self, permission: str) -> bool:
        return permission in self.permissions


def build_claim_set(subject_id: int, name: str, email: str, permissions: Iterable[str]) -> ClaimSet:
    return ClaimSet(
        subject_id=subject_id,
        name=name,
        email=email,
        permissions=frozenset(permissions),
    )


def mint_session_token(claims: ClaimSet, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a claim set into a session token with a fixed absolute expiry."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.SESSION_LIFETIME_MINUTES))
    to_encode = {
        "sub": str(claims.subject_id),
        "name": claims.name,
        "email": claims.email,
        "permission": sorted(claims.permissions),
        "jti": claims.jti or uuid.uuid4().hex,
        "iat": now,
        "exp": expire,
        "type": SESSION_TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def verify_session_token(token: str) -> ClaimSet:
    """Decode and validate a session token.

    Raises:
        AuthenticationError: If the token is malformed, tampered with, expired,
            or not a session token.
    """
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.SESSION_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired session")

    if payload.get("type") != SESSION_TOKEN_TYPE or payload.get("sub") is None:
        raise AuthenticationError("Invalid session payload")

    try:
        subject_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid session payload")

    return ClaimSet(
        subject_id=subject_id,
        name=payload.get("name", ""),
        email=payload.get("email", ""),
        permissions=frozenset(payload.get("permission", [])),
        jti=payload.get("jti", ""),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def extract_session_token(request: Request) -> Optional[str]:
    """Read the session credential from the cookie, falling back to a Bearer header."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def is_local_url(url: Optional[str]) -> bool:
    """True for same-origin relative paths such as ``/admin/users``."""
    if not url or not url.startswith("/"):
        return False
    if url.startswith("//") or "\\" in url:
        return False
    parts = urlsplit(url)
    return not parts.scheme and not parts.netloc


def resolve_return_url(return_url: Optional[str]) -> str:
    """Return the caller's return location if it is local, else the admin landing page."""
    if is_local_url(return_url):
        return return_url
    return settings.ADMIN_LANDING_URL
