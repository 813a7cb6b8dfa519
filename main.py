"""Main application entry point for the champion reviews API.

Sets up FastAPI app with security middleware, error handlers and the review routes.
Run with: uvicorn main:app --reload
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from config import settings, load_settings_from_env, DEFAULT_SECRET_KEY
from routers import reviews
from services.error_handler import handle_exception, handle_validation_error

import os
import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = FastAPI(
    title="Champion Reviews API",
    version="1.0.0",
    description="Ratings and text reviews for champions"
)

# Setup rate limiter
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

logger = logging.getLogger(__name__)


def is_production(local_settings) -> bool:
    """Production is signalled by a real PRODUCTION_URL or ENVIRONMENT/ENV=production."""
    return any([
        bool(local_settings.PRODUCTION_URL.strip()) and "localhost" not in local_settings.PRODUCTION_URL,
        os.getenv("ENVIRONMENT") == "production",
        os.getenv("ENV") == "production",
    ])


@app.on_event("startup")
async def validate_security_configuration():
    """Validate critical security settings on startup.

    Raises RuntimeError for issues that must be fixed before running.
    """
    local_settings = load_settings_from_env()
    production = is_production(local_settings)

    # TEST_MODE accepts unsigned dev tokens
    if local_settings.TEST_MODE and production:
        raise RuntimeError(
            "CRITICAL SECURITY ERROR: TEST_MODE=true in production environment!\n"
            "Dev tokens would let anyone impersonate any user.\n"
            "Set TEST_MODE=false and restart the application."
        )

    if production:
        if local_settings.SECRET_KEY == DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "CRITICAL SECURITY ERROR: Default SECRET_KEY in production!\n"
                "Generate one with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )

        if len(local_settings.SECRET_KEY) < 32:
            raise RuntimeError(
                f"CRITICAL SECURITY ERROR: SECRET_KEY too short ({len(local_settings.SECRET_KEY)} chars)!\n"
                "Production requires a SECRET_KEY of at least 32 characters."
            )

    if local_settings.TEST_MODE:
        logger.warning("TEST_MODE enabled - dev-token-<user_id> bearer tokens are accepted")

    if local_settings.SECRET_KEY == DEFAULT_SECRET_KEY and not production:
        logger.warning("Using default SECRET_KEY in development")

    logger.info(
        f"Security configuration validated: production={production} "
        f"test_mode={local_settings.TEST_MODE} cors_origins={len(get_cors_origins())}"
    )


def get_cors_origins():
    """Build strict CORS allowlist from environment.

    Security: Never use wildcard origins with credentials.
    """
    origins = set()

    if settings.FRONTEND_URL:
        origins.add(settings.FRONTEND_URL)
    if settings.PRODUCTION_URL:
        origins.add(settings.PRODUCTION_URL)

    # Support additional origins via env var (comma-separated)
    extra = os.getenv("CORS_EXTRA_ORIGINS", "")
    if extra:
        origins.update(o.strip() for o in extra.split(",") if o.strip())

    return list(origins)

origins = get_cors_origins()

# ============================================================================
# Security Middleware
# ============================================================================

@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    # HSTS (only outside test mode)
    if not settings.TEST_MODE:
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )

    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,  # Explicit allowlist only
    allow_credentials=True,  # Required for Authorization headers
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Trusted hosts (prevent host header injection)
allowed_hosts = ["localhost", "127.0.0.1", "0.0.0.0"]
# Allow testserver for TestClient in tests
if settings.TEST_MODE:
    allowed_hosts.append("testserver")

for url in (settings.PRODUCTION_URL, settings.FRONTEND_URL):
    host = url.replace("https://", "").replace("http://", "").split("/")[0].split(":")[0]
    if host and host not in allowed_hosts:
        allowed_hosts.append(host)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=allowed_hosts
)

app.add_exception_handler(RequestValidationError, handle_validation_error)
app.add_exception_handler(Exception, handle_exception)

# ============================================================================
# Root Endpoints
# ============================================================================

@app.get("/")
@limiter.limit("60/minute")  # Prevent abuse
async def root(request: Request):
    """API root endpoint."""
    return {
        "message": "Champion Reviews API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint (no rate limit for monitoring)."""
    current_settings = load_settings_from_env()

    return {
        "status": "healthy",
        "mode": "production" if is_production(current_settings) else "development",
        "test_mode": current_settings.TEST_MODE,
        "database": current_settings.DATABASE_URL.split(":", 1)[0],
    }


app.include_router(reviews.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
