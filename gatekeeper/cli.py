"""Gatekeeper CLI tool (gatekeeperctl)."""

import asyncio
from typing import Optional

import typer

app = typer.Typer(name="gatekeeperctl", help="Gatekeeper access-control CLI")
db_app = typer.Typer(help="Database management commands")
users_app = typer.Typer(help="User and role assignment commands")
app.add_typer(db_app, name="db")
app.add_typer(users_app, name="users")


async def _create_tables() -> None:
    import gatekeeper.models  # noqa: F401  registers every table on Base.metadata
    from gatekeeper.db.base import Base
    from gatekeeper.db.session import engine

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


async def _seed() -> None:
    from gatekeeper.db.session import SessionLocal, engine
    from gatekeeper.db.seeds.seed_roles import seed_roles
    from gatekeeper.db.seeds.seed_super_admin import seed_super_admin

    try:
        async with SessionLocal() as db:
            await seed_roles(db)
            await seed_super_admin(db)
    finally:
        await engine.dispose()


@db_app.command("init")
def db_init():
    """Create all tables that do not exist yet."""
    asyncio.run(_create_tables())
    typer.echo("✅ Tables created")


@db_app.command("seed")
def db_seed():
    """Seed system permissions, roles, and the super-admin."""
    asyncio.run(_seed())
    typer.echo("✅ All seeds applied")


@users_app.command("grant-role")
def grant_role(
    username: str = typer.Argument(..., help="Username or email"),
    role: str = typer.Argument(..., help="Role name"),
    module: Optional[str] = typer.Option(None, help="Module scope; omit for a global grant"),
):
    """Assign a role to a user (no-op if already assigned)."""

    async def _run() -> None:
        from gatekeeper.db.session import SessionLocal, engine
        from gatekeeper.repositories.role import RoleRepository
        from gatekeeper.repositories.user import UserRepository
        from gatekeeper.services.assignment_service import assignment_service

        try:
            async with SessionLocal() as db:
                user = await UserRepository(db).get_by_login(username.strip().lower())
                role_obj = await RoleRepository(db).get_by_name(role)
                if user is None or role_obj is None:
                    typer.echo("❌ User or role not found", err=True)
                    raise typer.Exit(code=1)
                await assignment_service.assign_role(db, user.id, role_obj.id, module)
        finally:
            await engine.dispose()

    asyncio.run(_run())
    typer.echo(f"✅ Role '{role}' assigned to {username}")


@app.command("check")
def check_permission(
    username: str = typer.Argument(..., help="Username or email"),
    permission: str = typer.Argument(..., help="Permission name"),
    module: Optional[str] = typer.Option(None, help="Module scope"),
):
    """Run a live permission check for a user."""

    async def _run() -> bool:
        from gatekeeper.db.session import SessionLocal, engine
        from gatekeeper.repositories.user import UserRepository
        from gatekeeper.services.authorization_service import authorization_service

        try:
            async with SessionLocal() as db:
                user = await UserRepository(db).get_by_login(username.strip().lower())
                user_id = user.id if user else None
                return await authorization_service.has_permission_live(db, user_id, permission, module)
        finally:
            await engine.dispose()

    if asyncio.run(_run()):
        typer.echo(f"✅ {username} has '{permission}'")
    else:
        typer.echo(f"🚫 {username} lacks '{permission}'")
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("gatekeeper.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
