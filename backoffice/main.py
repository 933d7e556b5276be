"""FastAPI application entry point"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from prometheus_fastapi_instrumentator import Instrumentator

from backoffice import __version__
from backoffice.api import admins, audit, health, setup
from backoffice.config import settings
from backoffice.core.audit import InvalidCursor
from backoffice.core.errors import ConflictError, NotFoundError, Rejection, RejectionKind, TransientError
from backoffice.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Backoffice starting up", extra={
        "version": __version__,
        "log_level": settings.LOG_LEVEL,
        "rate_limiting": settings.RATE_LIMIT_ENABLED,
        "monitoring": settings.METRICS_ENABLED
    })
    yield
    logger.info("Backoffice shutting down")


app = FastAPI(
    title="Backoffice",
    description="Role-gated admin endpoints with an append-only audit trail",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    from backoffice.middleware.monitoring import MonitoringMiddleware
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting
from backoffice.middleware.rate_limit import limiter  # noqa: E402
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={
            "path": request.url.path,
            "method": request.method,
            "client": request.client.host if request.client else "unknown"
        }
    )
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
        }
    )

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(setup.router)
app.include_router(admins.router)
app.include_router(audit.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "backoffice",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

@app.exception_handler(Rejection)
async def rejection_handler(request: Request, exc: Rejection):
    """401 for unauthenticated callers, 403 for admins (or non-admins) lacking a grant"""
    if exc.kind is RejectionKind.UNAUTHENTICATED:
        return JSONResponse(
            status_code=401,
            content={"success": False, "error": exc.kind.value, "message": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return JSONResponse(
        status_code=403,
        content={"success": False, "error": exc.kind.value, "message": exc.message},
    )


@app.exception_handler(InvalidCursor)
async def invalid_cursor_handler(request: Request, exc: InvalidCursor):
    return JSONResponse(status_code=400, content={"success": False, "error": "invalid_cursor", "message": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"success": False, "error": "not_found", "message": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"success": False, "error": "conflict", "message": str(exc)})


@app.exception_handler(TransientError)
async def transient_handler(request: Request, exc: TransientError):
    logger.warning(f"Dependency unavailable: {exc}", extra={"path": request.url.path})
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": "unavailable", "message": "Service temporarily unavailable"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please contact support."
        }
    )
