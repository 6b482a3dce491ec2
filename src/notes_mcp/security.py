"""Security helpers for the notes MCP server."""

from __future__ import annotations

import hmac
import logging
from collections.abc import Awaitable, Callable

from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

HEALTH_PATH = "/mcp/health"
SECRET_HEADER = "x-mcp-secret"


class SharedSecretMiddleware(BaseHTTPMiddleware):
    """Middleware enforcing a shared secret header on requests."""

    def __init__(self, app: ASGIApp, secret: str) -> None:
        super().__init__(app)
        if not secret:
            raise ValueError("Shared secret must be configured")
        self._secret = secret

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path == HEALTH_PATH:
            return await call_next(request)

        provided = request.headers.get(SECRET_HEADER, "")
        if not hmac.compare_digest(provided.encode(), self._secret.encode()):
            logger.warning("Rejected request to %s: bad or missing secret", request.url.path)
            return JSONResponse({"detail": "Unauthorized"}, status_code=401)

        return await call_next(request)


def build_security_middleware(secret: str | None) -> list[Middleware]:
    """Create the security middleware stack.

    With a shared secret configured every request except the health check must
    carry it. Without one only the permissive CORS middleware is installed, so
    local deployments keep working.
    """

    middleware: list[Middleware] = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    ]

    if secret:
        middleware.insert(0, Middleware(SharedSecretMiddleware, secret=secret))

    return middleware
