"""FastAPI application entry point."""

import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from tableside.api.deps import close_notifier, get_kv_store
from tableside.api.routes import api_router
from tableside.core.config import settings
from tableside.core.exceptions import TablesideError
from tableside.core.rate_limit import limiter
from tableside.core.security import decode_access_token
from tableside.db.base import Base
from tableside.db.session import SessionLocal, engine

import tableside.models  # noqa: F401  (register tables on Base.metadata)

VERSION = "1.0.0"

# Customer venue routes are public; every other /api/v1 write needs a token
PUBLIC_PREFIX = f"{settings.api_v1_prefix}/venues/"

PUBLIC_WRITE_PATHS = [
    f"{settings.api_v1_prefix}/auth/login",
    f"{settings.api_v1_prefix}/auth/register",
]

PUBLIC_EXACT_PATHS = [
    "/",
    "/health",
    "/health/ready",
]

# Configure logging - use JSON format in production, human-readable in dev
root_logger = logging.getLogger()
root_logger.setLevel(getattr(logging, settings.log_level))
root_logger.handlers.clear()

if settings.debug:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
else:
    import json as _json

    class JSONFormatter(logging.Formatter):
        def format(self, record):
            return _json.dumps({
                "ts": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
                "module": record.module,
                "line": record.lineno,
            })

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

root_logger.addHandler(handler)
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("requests")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class AuthEnforcementMiddleware(BaseHTTPMiddleware):
    """Require a valid token on /api/v1 writes outside the public venue routes.

    Route dependencies still check roles; this catches any route that
    forgets to.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        method = request.method

        if method in ("OPTIONS", "GET", "HEAD") or path in PUBLIC_EXACT_PATHS:
            return await call_next(request)
        if path.startswith(PUBLIC_PREFIX):
            return await call_next(request)
        for pub_path in PUBLIC_WRITE_PATHS:
            if path.startswith(pub_path):
                return await call_next(request)

        if path.startswith(f"{settings.api_v1_prefix}/"):
            payload = None
            auth_header = request.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                token = auth_header.split(" ", 1)[1]
                if token:
                    payload = decode_access_token(token)
            # Fall back to cookie if no Bearer or Bearer was invalid
            if payload is None and "access_token" in request.cookies:
                payload = decode_access_token(request.cookies["access_token"])

            if payload is None or not all(
                payload.get(k) for k in ("sub", "email", "role", "tenant_id")
            ):
                return JSONResponse(
                    status_code=401,
                    content={"detail": "Authentication required for this operation"},
                    headers={"WWW-Authenticate": "Bearer"},
                )

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next):
        # Skip logging for health checks
        if request.url.path in ["/health", "/", "/docs", "/openapi.json"]:
            return await call_next(request)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            request_logger.error(
                f"Error: {request.method} {request.url.path} - "
                f"Exception: {str(e)} - Time: {process_time:.3f}s - Client: {client_ip}"
            )
            raise

        process_time = time.time() - start_time
        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_logger.log(
            log_level,
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - Time: {process_time:.3f}s - Client: {client_ip}"
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Tableside ordering service")

    if settings.database_url.startswith("sqlite:///"):
        db_path = settings.database_url.replace("sqlite:///", "", 1)
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")

    # Connect the feedback store early so a bad REDIS_URL shows up at startup
    get_kv_store()

    if not settings.telegram_configured:
        logger.warning("TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not set - staff alerts will not be delivered")

    yield

    await close_notifier()
    logger.info("Shutting down Tableside ordering service")


app = FastAPI(
    title="Tableside",
    description="Table ordering, bill tracking and staff approval API",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(TablesideError)
async def tableside_error_handler(request: Request, exc: TablesideError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuthEnforcementMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - MUST be added last so it runs first (Starlette LIFO order).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"status": "healthy", "version": VERSION}


@app.get("/health/ready")
def readiness_check():
    """Readiness probe with database and Redis connectivity check."""
    checks = {"database": "unknown", "redis": "unknown", "telegram": "unknown"}

    db = None
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = "unhealthy"
    finally:
        if db:
            db.close()

    if settings.redis_url:
        try:
            import redis
            r = redis.from_url(settings.redis_url, socket_connect_timeout=2)
            r.ping()
            checks["redis"] = "healthy"
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            checks["redis"] = "unhealthy"
    else:
        checks["redis"] = "not configured"

    checks["telegram"] = "configured" if settings.telegram_configured else "not configured"

    all_healthy = checks["database"] == "healthy" and checks["redis"] != "unhealthy"
    return {
        "status": "ready" if all_healthy else "degraded",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Tableside API",
        "docs": "/docs",
        "health": "/health",
    }
