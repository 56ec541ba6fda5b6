"""
Cross-cutting HTTP middleware: request ids, access logs, security headers,
body size limits and the catch-all error handler.

All functions follow the ``@app.middleware("http")`` signature and are
registered in ``main.py``.
"""

import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Action forms are a handful of short fields
MAX_BODY_BYTES = 1024 * 1024

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


async def limit_request_body_size(request: Request, call_next):
    """Reject oversized bodies before they are parsed."""
    if request.method in ("POST", "PUT", "PATCH"):
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > MAX_BODY_BYTES:
            return JSONResponse(
                status_code=413,
                content={"detail": "Request body too large"},
            )
    return await call_next(request)


def _request_id_from(request: Request) -> str:
    incoming = request.headers.get("X-Request-ID")
    if incoming:
        try:
            # Only UUIDs are echoed so callers cannot inject into log lines
            return str(uuid.UUID(incoming))
        except ValueError:
            pass
    return str(uuid.uuid4())


async def add_request_id(request: Request, call_next):
    """Attach ``request.state.request_id`` and echo it as ``X-Request-ID``."""
    request_id = _request_id_from(request)
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


async def log_requests(request: Request, call_next):
    """One access log line per request, health probes excluded."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
    response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

    path = request.url.path
    if not path.startswith("/api/v1/health"):
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
    return response


async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(SECURITY_HEADERS)
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Turn infrastructure faults into a generic 500.

    Production logs carry only the exception type and a truncated message so
    connection strings never reach the log pipeline.
    """
    if settings.is_production:
        logger.error("Unhandled exception: %s: %s", type(exc).__name__, str(exc)[:200])
    else:
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
