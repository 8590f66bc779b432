"""Authorization decisions: cheap claim checks and authoritative live checks."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.permissions import FULL_ADMIN_ACCESS
from gatekeeper.core.security import ClaimSet
from gatekeeper.db.base import scope_key
from gatekeeper.repositories.user import UserRepository
from gatekeeper.services.assignment_service import assignment_service


class AuthorizationService:

    @staticmethod
    def has_claim(claims: Optional[ClaimSet], permission: str) -> bool:
        """Check the login-time snapshot. Stale until the subject signs in again."""
        return claims is not None and claims.has_claim(permission)

    @staticmethod
    async def has_permission_live(
        db: AsyncSession,
        user_id: Optional[int],
        permission: str,
        module: Optional[str] = None,
    ) -> bool:
        """Re-query the assignment graph for ``permission`` in exactly ``module``.

        Holding ``full_admin_access`` (unscoped) grants everything and is
        checked first. Anonymous, missing, deleted and deactivated subjects
        are denied.
        A blank module is rejected with ValidationError.
        """
        scope_key(module)
        if user_id is None:
            return False

        user = await UserRepository(db).get(user_id)
        if user is None or not user.is_active:
            return False

        role_ids = await assignment_service.role_ids_for_user(db, user_id)
        if not role_ids:
            return False

        if await assignment_service.any_role_has_permission(db, role_ids, FULL_ADMIN_ACCESS):
            return True

        return await assignment_service.any_role_has_permission(db, role_ids, permission, module)


authorization_service = AuthorizationService()
