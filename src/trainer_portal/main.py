"""FastAPI application for the Trainer Portal."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from . import __version__
from .config import DEFAULT_JWT_SECRET, get_settings
from .api.routes import (
    admin,
    analytics,
    auth,
    debug,
    feedback,
    pdf,
    reviews,
    sitemap,
    training_days,
    videos,
)
from .api.exception_handlers import register_exception_handlers
from .api.middleware.rate_limit import limiter
from .api.middleware.security_headers import SecurityHeadersMiddleware
from .db.database import close_database, get_database
from .exceptions import ErrorCode
from .services.admin_bootstrap import bootstrap_admin_from_settings
from .services.reminder_scheduler import get_reminder_scheduler, shutdown_reminder_scheduler
from .utils.log_sanitizer import install_log_sanitizer

# Install log sanitization filter to prevent credential/PII leakage
# This must be done before any logging occurs
install_log_sanitizer()

logger = logging.getLogger(__name__)


def validate_security_keys(settings) -> None:
    """Validate critical security keys at startup.

    Raises:
        SystemExit: If the JWT secret is left at its default in production.
    """
    if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        if settings.is_production:
            logger.critical("JWT_SECRET_KEY must be set in production")
            raise SystemExit(1)
        logger.warning("JWT_SECRET_KEY is the development default; do not deploy like this")
    else:
        logger.info("JWT_SECRET_KEY: configured")

    if not settings.storage_configured:
        logger.warning("R2 storage not configured. Video URLs will be unavailable.")
    if settings.email_enabled and not settings.notification_email:
        logger.warning("EMAIL_ENABLED is set but NOTIFICATION_EMAIL is empty")
    if not settings.analytics_configured:
        logger.info("Vercel analytics not configured")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Trainer Portal v{__version__} ({settings.environment})")
    validate_security_keys(settings)

    db = get_database()
    if bootstrap_admin_from_settings(db, settings) is None:
        logger.info("ADMIN_PASSWORD not set, skipping admin bootstrap")

    if settings.checkin_reminders_enabled:
        try:
            get_reminder_scheduler(db).start()
        except Exception as e:
            logger.warning(f"Failed to start reminder scheduler: {e}")
    else:
        logger.info("Check-in reminders are disabled")

    yield

    # Shutdown
    logger.info("Shutting down Trainer Portal")
    shutdown_reminder_scheduler()
    close_database()


app = FastAPI(
    title="Trainer Portal API",
    description="Client videos, training plans, reviews and check-ins for a personal trainer",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,  # Prevent 307 redirects that break auth through proxies
)

# Rate limiting
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded exceptions (also called directly by SlowAPIMiddleware)."""
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": {
                "code": ErrorCode.RATE_LIMITED.value,
                "message": f"Too many requests: {exc.detail}",
            },
            "retry_after": getattr(exc, "retry_after", None),
        },
    )


settings = get_settings()

# Note: Middleware is added in reverse order (last added = first executed)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=settings.is_production or settings.security_enable_hsts,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(training_days.router, prefix="/api")
app.include_router(reviews.admin_router, prefix="/api")
app.include_router(videos.router, prefix="/api")
app.include_router(pdf.router, prefix="/api")
app.include_router(reviews.router, prefix="/api")
app.include_router(feedback.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")
app.include_router(debug.router, prefix="/api")
app.include_router(sitemap.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Trainer Portal API",
        "version": __version__,
        "status": "healthy",
    }


@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": get_settings().environment,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
