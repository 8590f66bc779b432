"""Password reset: single-use, short-lived tokens tied to an email address."""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import settings
from gatekeeper.core.exceptions import ValidationError
from gatekeeper.core.security import hash_password
from gatekeeper.db.base import utcnow
from gatekeeper.models.password_reset_token import PasswordResetToken
from gatekeeper.repositories.password_reset_token import PasswordResetTokenRepository
from gatekeeper.repositories.user import UserRepository

logger = logging.getLogger("gatekeeper")

INVALID_TOKEN = "Invalid or expired token."


class PasswordResetService:

    @staticmethod
    async def request_reset(db: AsyncSession, email: str) -> Optional[PasswordResetToken]:
        """Issue a token when ``email`` belongs to an active user.

        Returns None otherwise; callers must answer identically in both cases.
        """
        email = (email or "").strip().lower()
        user = await UserRepository(db).get_by_email(email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive email")
            return None

        token = PasswordResetToken(
            email=email,
            token=uuid.uuid4().hex,
            expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
            is_used=False,
        )
        await PasswordResetTokenRepository(db).add(token, user.id)
        await db.commit()

        # No mail transport here; the link goes to the log.
        logger.debug("Password reset link: %s?token=%s&email=%s", settings.PASSWORD_RESET_URL, token.token, email)
        return token

    @staticmethod
    async def reset_password(db: AsyncSession, email: str, token: str, new_password: str) -> None:
        """Set a new password using a valid token; the token is consumed.

        Raises:
            ValidationError: If the token is unknown, used, expired, or issued for another email.
        """
        email = (email or "").strip().lower()
        record = await PasswordResetTokenRepository(db).get_by_token(token)
        if record is None or not record.is_valid() or record.email != email:
            raise ValidationError(INVALID_TOKEN)

        user = await UserRepository(db).get_by_email(email)
        if user is None or not user.is_active:
            raise ValidationError(INVALID_TOKEN)

        user.hashed_password = hash_password(new_password)
        user.mark_modified(user.id)
        record.is_used = True
        record.mark_modified(user.id)
        await db.commit()
        logger.info("Password reset completed for user %s", user.id)


password_reset_service = PasswordResetService()
