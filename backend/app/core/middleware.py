"""
Campus Connect - HTTP Middleware

- RequestLoggingMiddleware: request id, timing headers, one log line per request
- SecurityHeadersMiddleware: static hardening headers
- RequestSizeLimitMiddleware: rejects oversized bodies before multipart parsing
"""

import time
from typing import Callable, FrozenSet

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.config import settings
from app.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


SLOW_REQUEST_MS = 1000

# Probes and docs are too chatty to log
QUIET_PATHS: FrozenSet[str] = frozenset({
    "/",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
    f"{settings.API_PREFIX}/health",
    f"{settings.API_PREFIX}/health/ready",
})


def should_skip_logging(path: str) -> bool:
    # Issue photos are served by the static mount
    return path in QUIET_PATHS or path.startswith("/uploads/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an id and log how it ended.

    A caller-supplied X-Request-ID is reused so a client can correlate its
    own logs with ours. The user id context is filled later by the auth
    dependency and cleared here once the response is out.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        path = request.url.path
        quiet = should_skip_logging(path)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.log_error_with_context(
                exc,
                f"{request.method} {path}",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        else:
            duration_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

            if not quiet:
                logger.log_request(
                    request.method,
                    path,
                    response.status_code,
                    duration_ms,
                    client_ip=request.client.host if request.client else "unknown",
                )
                if duration_ms > SLOW_REQUEST_MS:
                    logger.warning(
                        f"Slow request: {request.method} {path} took {duration_ms:.0f}ms",
                        extra={"event_type": "slow_request", "http_path": path, "duration_ms": duration_ms},
                    )
            return response
        finally:
            set_request_id("")
            set_user_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Refuse bodies whose declared length exceeds ``max_size``.

    The per-image limit is enforced by the upload service; this only stops
    clients from streaming arbitrarily large forms at the server.
    """

    def __init__(self, app: ASGIApp, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")

        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {request.method} {request.url.path}: body of {declared} bytes",
                extra={"event_type": "request_too_large", "content_length": int(declared)},
            )
            return JSONResponse(
                status_code=413,
                content={"message": f"Request body too large. Maximum size is {self.max_size // (1024 * 1024)}MB"},
            )

        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "should_skip_logging",
]
