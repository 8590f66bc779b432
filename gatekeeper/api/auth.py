"""Account API router: login, logout, password reset, current session."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import settings
from gatekeeper.core.guard import CurrentSubject, allow_anonymous, get_current_subject
from gatekeeper.db.session import get_db
from gatekeeper.schemas.schemas import (
    ForgotPasswordRequest, LoginRequest, LoginResponse, MessageResponse,
    ResetPasswordRequest, SessionUser,
)
from gatekeeper.services.audit_service import audit_service
from gatekeeper.services.auth_service import auth_service
from gatekeeper.services.password_reset_service import password_reset_service

router = APIRouter(prefix="/admin/account", tags=["account"])

FORGOT_PASSWORD_MESSAGE = "If the email is registered, a reset link has been sent."


@router.post("/login", response_model=LoginResponse)
@allow_anonymous
async def login(body: LoginRequest, request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    """Authenticate, set the session cookie, and return the redirect target."""
    result = await auth_service.login(db, body.login, body.password, body.return_url)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=result.token,
        max_age=settings.SESSION_LIFETIME_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    await audit_service.log_from_request(
        db, request, result.claims,
        action="user.login", resource_type="user", resource_id=result.user.id,
    )
    return LoginResponse(
        access_token=result.token,
        expires_at=result.claims.expires_at,
        redirect_url=result.redirect_url,
        user=SessionUser(
            id=result.claims.subject_id,
            name=result.claims.name,
            email=result.claims.email,
            permissions=sorted(result.claims.permissions),
        ),
    )


@router.post("/logout", response_model=MessageResponse)
@allow_anonymous
async def logout(response: Response, subject: CurrentSubject = Depends(get_current_subject)):
    """Revoke the current session and clear the cookie."""
    await auth_service.logout(subject.claims)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse)
@allow_anonymous
async def forgot_password(body: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    await password_reset_service.request_reset(db, body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
@allow_anonymous
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await password_reset_service.reset_password(db, body.email, body.token, body.new_password)
    return MessageResponse(message="Your password has been reset.")


@router.get("/me", response_model=SessionUser)
async def get_me(subject: CurrentSubject = Depends(get_current_subject)):
    """Current session claims."""
    claims = subject.claims
    return SessionUser(
        id=claims.subject_id,
        name=claims.name,
        email=claims.email,
        permissions=sorted(claims.permissions),
    )
