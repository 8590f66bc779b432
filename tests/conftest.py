"""
Shared fixtures: an in-memory SQLite database per test, an in-memory stand-in
for the Redis revocation store, data factories, and an HTTP client bound to
the ASGI app.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

from typing import Optional  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import gatekeeper.models  # noqa: E402,F401
from gatekeeper.db.base import Base  # noqa: E402
from gatekeeper.models.permission import Permission  # noqa: E402
from gatekeeper.models.role import Role  # noqa: E402
from gatekeeper.models.user import User  # noqa: E402
from gatekeeper.services.assignment_service import assignment_service  # noqa: E402
from gatekeeper.services.auth_service import auth_service  # noqa: E402
from gatekeeper.services.cache_service import cache_service  # noqa: E402
from gatekeeper.services.permission_service import permission_service  # noqa: E402
from gatekeeper.services.role_service import role_service  # noqa: E402
from gatekeeper.services.user_service import user_service  # noqa: E402

DEFAULT_PASSWORD = "Secret123!"


def _enable_savepoints(engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT works on SQLite."""

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def fake_cache(monkeypatch):
    """Dict-backed replacement for the Redis calls; no server needed."""
    store = {}

    async def fake_get(key):
        return store.get(key)

    async def fake_set(key, value, ttl_seconds=600):
        store[key] = value

    async def fake_health_check():
        return True

    monkeypatch.setattr(cache_service, "get", fake_get)
    monkeypatch.setattr(cache_service, "set", fake_set)
    monkeypatch.setattr(cache_service, "health_check", fake_health_check)
    return store


class Factory:
    """Creates catalog, identity and graph rows through the services."""

    def __init__(self, db):
        self.db = db

    async def permission(self, name: str, module: Optional[str] = None, is_system: bool = False) -> Permission:
        return await permission_service.create_permission(self.db, name, module=module, is_system=is_system)

    async def role(
        self, name: str, is_active: bool = True, is_system: bool = False, module: Optional[str] = None
    ) -> Role:
        return await role_service.create_role(
            self.db, name, is_active=is_active, is_system=is_system, module=module
        )

    async def user(
        self,
        username: str,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
        is_system: bool = False,
    ) -> User:
        return await user_service.create_user(
            self.db,
            username=username,
            email=email or f"{username}@example.com",
            password=password,
            first_name=username.title(),
            last_name="Tester",
            is_active=is_active,
            is_system=is_system,
        )

    async def grant(self, role: Role, permission: Permission, module: Optional[str] = None, is_system: bool = False):
        return await assignment_service.assign_permission(
            self.db, role.id, permission.id, module=module, is_system_permission=is_system
        )

    async def assign(self, user: User, role: Role, module: Optional[str] = None):
        return await assignment_service.assign_role(self.db, user.id, role.id, module)

    async def user_with_permissions(self, username: str, *permission_names: str) -> User:
        """A user holding one fresh role that carries the named permissions."""
        role = await self.role(f"{username}_role")
        for name in permission_names:
            permission = await self.permission_named(name)
            await self.grant(role, permission)
        user = await self.user(username)
        await self.assign(user, role)
        return user

    async def permission_named(self, name: str) -> Permission:
        from gatekeeper.repositories.permission import PermissionRepository

        existing = await PermissionRepository(self.db).get_by_name(name)
        if existing is not None:
            return existing
        return await self.permission(name)


@pytest.fixture
def factory(db) -> Factory:
    return Factory(db)


class ApiClient:
    """httpx client that closes the fixture session's transaction before each call.

    The test session and the app share one SQLite connection.
    """

    def __init__(self, client: httpx.AsyncClient, db):
        self.client = client
        self.db = db

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        await self.db.commit()
        return await self.client.request(method, url, **kwargs)

    async def get(self, url: str, **kwargs):
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs):
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs):
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs):
        return await self.request("DELETE", url, **kwargs)

    async def login_headers(self, login: str, password: str = DEFAULT_PASSWORD) -> dict:
        await self.db.commit()
        result = await auth_service.login(self.db, login, password)
        await self.db.commit()
        return {"Authorization": f"Bearer {result.token}"}


@pytest_asyncio.fixture
async def api(db, session_factory):
    from gatekeeper.db.session import get_db
    from gatekeeper.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield ApiClient(client, db)
    app.dependency_overrides.clear()
