"""SaaS Starter - Main FastAPI Application."""

import logging
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.middleware.http import (
    add_request_id,
    add_security_headers,
    limit_request_body_size,
    log_requests,
    unhandled_exception_handler,
)
from api.middleware.rate_limit import limiter
from api.middleware.session import refresh_session_middleware
from api.routes import api_router
from infrastructure.config import get_settings
from infrastructure.database import close_db, init_db
from infrastructure.logging_config import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


def init_sentry() -> None:
    """Enable Sentry error tracking when SENTRY_DSN is configured."""
    if not settings.sentry_dsn:
        return
    if not settings.sentry_dsn.startswith("https://"):
        logger.warning("SENTRY_DSN looks malformed, Sentry stays disabled")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        integrations=[
            FastApiIntegration(transaction_style="url"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        send_default_pii=False,
    )
    logger.info("Sentry initialised (env=%s)", settings.environment)


# Module level so import-time failures are reported too
init_sentry()


def warn_on_foreign_cors_origins() -> None:
    """Session cookies go to every allowed origin; flag ones outside the frontend host."""
    frontend_host = urlparse(settings.frontend_url).netloc
    for origin in settings.cors_origins_list:
        host = urlparse(origin).netloc
        if host and host != frontend_host and not host.endswith("." + frontend_host):
            logger.warning("CORS origin %s is outside FRONTEND_URL host %s", origin, frontend_host)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging(
        json_output=settings.is_production and not settings.debug,
        level="DEBUG" if settings.debug else "INFO",
    )
    logger.info("Starting %s v%s (%s)", settings.app_name, settings.app_version, settings.environment)

    settings.validate_production_secrets()
    if settings.is_production:
        warn_on_foreign_cors_origins()

    if settings.is_development:
        await init_db()

    yield

    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant SaaS starter: accounts, teams and subscriptions",
    version=settings.app_version,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# slowapi reads the limiter from app.state; the middleware enforces the default limit
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Registered innermost first; add_request_id runs outermost
app.middleware("http")(limit_request_body_size)
app.middleware("http")(refresh_session_middleware)
app.middleware("http")(log_requests)
app.middleware("http")(add_security_headers)
app.middleware("http")(add_request_id)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With", "X-Request-ID"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Service banner."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.is_development else "disabled",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.workers,
    )
