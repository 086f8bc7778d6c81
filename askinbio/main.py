"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from askinbio.api.v1.router import router as v1_router
from askinbio.core.config import get_settings
from askinbio.core.database import close_db
from askinbio.core.exceptions import register_exception_handlers
from askinbio.core.middleware import SecurityHeadersMiddleware
from askinbio.core.observability import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from askinbio.core.rate_limit import limiter
from askinbio.core.supabase import create_auth_client
from askinbio.services.geoip import close_geoip_service
from askinbio.services.session import AuthEventChannel, log_auth_event

settings = get_settings()

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting AskInBio API", version=settings.app_version)
    app.state.auth_client = create_auth_client()
    app.state.auth_events = AuthEventChannel()
    subscription = app.state.auth_events.subscribe(log_auth_event)
    yield
    logger.info("Shutting down AskInBio API")
    subscription.unsubscribe()
    await app.state.auth_client.aclose()
    close_geoip_service()
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Link-in-bio profiles with click analytics",
    lifespan=lifespan,
)

# Set up observability (logging, tracing, metrics, Sentry)
setup_observability(app)

# Rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

register_exception_handlers(app)

# Middleware stack (first added = innermost)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=not settings.debug,
)

# Holds the PKCE verifier during the OAuth round trip
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie="askinbio_session",
    max_age=600,
    same_site="lax",
    https_only=not settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(v1_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    return {"message": "Welcome to AskInBio API", "version": settings.app_version}
