"""Seed the super-admin user from env vars."""

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import settings
from gatekeeper.core.permissions import ADMINISTRATORS_ROLE
from gatekeeper.repositories.role import RoleRepository
from gatekeeper.repositories.user import UserRepository
from gatekeeper.services.assignment_service import assignment_service
from gatekeeper.services.user_service import normalize_email, normalize_username, user_service


async def seed_super_admin(db: AsyncSession) -> None:
    """Create the system administrator if not already present."""
    admin_role = await RoleRepository(db).get_by_name(ADMINISTRATORS_ROLE)
    if not admin_role:
        print(f"⚠️  {ADMINISTRATORS_ROLE} role not found. Run seed_roles first.")
        return

    username = normalize_username(settings.SUPER_ADMIN_USERNAME)
    email = normalize_email(settings.SUPER_ADMIN_EMAIL)
    if await UserRepository(db).username_or_email_taken(username, email):
        print(f"ℹ️  Super admin '{email}' already exists, skipping.")
        return

    admin = await user_service.create_user(
        db,
        username=username,
        email=email,
        password=settings.SUPER_ADMIN_PASSWORD,
        first_name="System",
        last_name="Administrator",
        is_active=True,
        is_system=True,
    )
    await assignment_service.assign_role(db, admin.id, admin_role.id, is_system_assigned=True)
    print(f"✅ Created super admin: {email}")
