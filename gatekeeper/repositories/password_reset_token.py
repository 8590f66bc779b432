from typing import Optional

from sqlalchemy import select

from gatekeeper.models.password_reset_token import PasswordResetToken
from gatekeeper.repositories.base import LifecycleRepository


class PasswordResetTokenRepository(LifecycleRepository[PasswordResetToken]):
    model = PasswordResetToken
    label = "password reset token"

    async def get_by_token(self, token: str) -> Optional[PasswordResetToken]:
        stmt = select(PasswordResetToken).where(PasswordResetToken.token == token)
        return (await self.session.scalars(stmt)).one_or_none()
