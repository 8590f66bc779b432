"""
Password hashing, session token minting/verification, and redirect safety.
"""

from datetime import timedelta

import pytest
from jose import jwt
from starlette.requests import Request

from gatekeeper.core.config import settings
from gatekeeper.core.exceptions import AuthenticationError, ValidationError
from gatekeeper.core.security import (
    MAX_PASSWORD_BYTES,
    build_claim_set,
    extract_session_token,
    hash_password,
    is_local_url,
    mint_session_token,
    resolve_return_url,
    verify_password,
    verify_session_token,
)


def _request(headers: dict) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


@pytest.mark.unit
class TestPasswords:
    """bcrypt helpers."""

    def test_verify_accepts_the_original_password(self):
        hashed = hash_password("Admin123!")
        assert hashed != "Admin123!"
        assert verify_password("Admin123!", hashed) is True

    def test_verify_rejects_an_overlong_password_without_raising(self):
        hashed = hash_password("Admin123!")
        assert verify_password("x" * 100, hashed) is False

    def test_hash_refuses_passwords_bcrypt_cannot_take(self):
        with pytest.raises(ValidationError):
            hash_password("\u00e9" * (MAX_PASSWORD_BYTES // 2 + 1))

    def test_verify_rejects_a_different_password(self):
        hashed = hash_password("Admin123!")
        assert verify_password("admin123!", hashed) is False


@pytest.mark.unit
class TestSessionToken:
    """Signed session credential round trip."""

    def test_claims_survive_the_round_trip(self):
        claims = build_claim_set(7, "Ada Lovelace", "ada@example.com", ["manage_users", "manage_roles"])
        verified = verify_session_token(mint_session_token(claims))

        assert verified.subject_id == 7
        assert verified.name == "Ada Lovelace"
        assert verified.email == "ada@example.com"
        assert verified.permissions == frozenset({"manage_users", "manage_roles"})
        assert verified.jti
        assert verified.expires_at is not None

    def test_permissions_are_repeated_entries_in_the_payload(self):
        claims = build_claim_set(1, "A", "a@example.com", ["b", "a", "a"])
        payload = jwt.decode(
            mint_session_token(claims), settings.SESSION_SECRET, algorithms=[settings.SESSION_ALGORITHM]
        )
        assert payload["permission"] == ["a", "b"]
        assert payload["type"] == "session"

    def test_lifetime_is_two_hours(self):
        claims = build_claim_set(1, "A", "a@example.com", [])
        payload = jwt.decode(
            mint_session_token(claims), settings.SESSION_SECRET, algorithms=[settings.SESSION_ALGORITHM]
        )
        assert payload["exp"] - payload["iat"] == 120 * 60

    def test_expired_token_is_rejected(self):
        claims = build_claim_set(1, "A", "a@example.com", [])
        token = mint_session_token(claims, expires_delta=timedelta(seconds=-5))
        with pytest.raises(AuthenticationError):
            verify_session_token(token)

    def test_tampered_token_is_rejected(self):
        token = mint_session_token(build_claim_set(1, "A", "a@example.com", []))
        forged = jwt.encode(
            jwt.get_unverified_claims(token) | {"permission": ["full_admin_access"]},
            "not-the-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            verify_session_token(forged)

    def test_non_session_token_is_rejected(self):
        token = jwt.encode(
            {"sub": "1", "type": "access"}, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM
        )
        with pytest.raises(AuthenticationError):
            verify_session_token(token)

    def test_has_claim_checks_the_snapshot(self):
        claims = build_claim_set(1, "A", "a@example.com", ["manage_users"])
        assert claims.has_claim("manage_users") is True
        assert claims.has_claim("manage_roles") is False


@pytest.mark.unit
class TestExtractSessionToken:

    def test_cookie_wins_over_header(self):
        request = _request({
            "cookie": f"{settings.SESSION_COOKIE_NAME}=from-cookie",
            "authorization": "Bearer from-header",
        })
        assert extract_session_token(request) == "from-cookie"

    def test_bearer_header_is_accepted(self):
        assert extract_session_token(_request({"authorization": "Bearer abc"})) == "abc"

    def test_missing_credential_is_none(self):
        assert extract_session_token(_request({"authorization": "Basic abc"})) is None


@pytest.mark.unit
class TestReturnUrl:
    """Only same-origin relative paths are followed after login."""

    @pytest.mark.parametrize("url", ["/admin", "/admin/users?page=2", "/"])
    def test_local_paths_are_accepted(self, url):
        assert is_local_url(url) is True
        assert resolve_return_url(url) == url

    @pytest.mark.parametrize(
        "url",
        [None, "", "https://evil.example/admin", "//evil.example", "/\\evil.example", "admin", "javascript:alert(1)"],
    )
    def test_everything_else_falls_back_to_the_landing_page(self, url):
        assert is_local_url(url) is False
        assert resolve_return_url(url) == settings.ADMIN_LANDING_URL
