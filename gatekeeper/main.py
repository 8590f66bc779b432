"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from gatekeeper.core.config import settings
from gatekeeper.core.middleware import setup_middleware
from gatekeeper.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusinessRuleViolation,
    GatekeeperError,
    ResourceNotFoundError,
    ValidationError,
)
from gatekeeper.core.guard import admin_area

from gatekeeper.api.auth import router as auth_router
from gatekeeper.api.users import router as users_router
from gatekeeper.api.roles import router as roles_router
from gatekeeper.api.permissions import router as permissions_router
from gatekeeper.api.admin import router as admin_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("gatekeeper")

ERROR_STATUS = (
    (ResourceNotFoundError, 404),
    (BusinessRuleViolation, 409),
    (ValidationError, 422),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("🚀 Starting Gatekeeper API")
    from gatekeeper.services.cache_service import cache_service
    if await cache_service.health_check():
        logger.info("✅ Redis connected")
    else:
        logger.warning("⚠️  Redis not available, logout revocation disabled")

    yield

    logger.info("🔻 Shutting down Gatekeeper API")


app = FastAPI(
    title="Gatekeeper API",
    description="Role-based access control and lifecycle management for the admin area",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)


@app.exception_handler(GatekeeperError)
async def gatekeeper_exception_handler(request: Request, exc: GatekeeperError):
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


# Everything under /api/admin is guarded unless exempt
protected = [Depends(admin_area)]
app.include_router(auth_router, prefix="/api", dependencies=protected)
app.include_router(users_router, prefix="/api", dependencies=protected)
app.include_router(roles_router, prefix="/api", dependencies=protected)
app.include_router(permissions_router, prefix="/api", dependencies=protected)
app.include_router(admin_router, prefix="/api", dependencies=protected)


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }
