"""CORS, request-id, and access logging middleware."""

import uuid
import time
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from gatekeeper.core.config import settings

logger = logging.getLogger("gatekeeper")

REQUEST_ID_HEADER = "X-Request-Id"
ADMIN_PATH_PREFIX = "/api/admin"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, time it, and keep admin responses out of caches."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        duration = round((time.perf_counter() - started) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)
        if request.url.path.startswith(ADMIN_PATH_PREFIX):
            response.headers["Cache-Control"] = "no-store"

        logger.info(
            "[%s] %s %s %s %sms",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application."""
    # CORS; credentials allowed so the session cookie travels
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.add_middleware(RequestContextMiddleware)
