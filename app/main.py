"""
Main FastAPI Application

Entry point for the multi-tenant IT asset management API.
Configures middleware, routes, error handlers, and startup/shutdown events.

Every response under /api uses the envelope {success, data?, error?}.
Status codes follow the error kind: 401 unauthorized, 400 validation,
404 not found, 409 conflict, 500 internal.
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import time
from contextlib import asynccontextmanager

from app.config import get_settings
from app.database import engine, init_db
from app.middleware.tenant import AuthContextMiddleware
from app.utils.logging import setup_logging, get_logger
from app.core.exceptions import AppError
from app.services.actions import format_validation_error
from app.services.cache import get_cache

# Import routers
from app.api.endpoints import accessories, assets, audit_logs, co2, licenses, lookups, maintenance, users

settings = get_settings()

# Setup logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")

    # Initialize database tables (dev only - use migrations in production)
    if settings.ENVIRONMENT == "development":
        logger.warning("Initializing database tables (dev mode)")
        init_db()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="IT Asset Management API",
    description="Multi-tenant tracking of assets, licenses, accessories and the people who hold them",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

# Request timing middleware (for monitoring)
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to track request duration."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Resolves the session principal before any route runs
app.add_middleware(AuthContextMiddleware)

# CORS is added last so it wraps everything, including 401 answers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Errors raised outside run_action, e.g. by get_request_context."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
        headers=headers
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are a 400 with a readable message."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": format_validation_error(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.

    SECURITY: Don't expose internal errors in production.
    Log full details but return generic error to client.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
            "company_id": getattr(request.state, "company_id", None)
        }
    )

    message = str(exc) if settings.DEBUG else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": message}
    )


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
def health_check():
    """
    Health check endpoint for load balancers.

    Reports 503 when the database does not answer. The list cache is
    optional, so a missing Redis only shows up as "disabled".
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check could not reach the database: {e}")
        database = "unavailable"

    healthy = database == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "environment": settings.ENVIRONMENT,
            "version": "1.0.0",
            "database": database,
            "cache": "enabled" if get_cache().enabled else "disabled",
        }
    )


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "IT Asset Management API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


# Register API routers under /api
app.include_router(co2.router, prefix="/api")
app.include_router(assets.router, prefix="/api")
app.include_router(accessories.router, prefix="/api")
app.include_router(licenses.router, prefix="/api")
app.include_router(maintenance.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(audit_logs.router, prefix="/api")
for lookup_router in lookups.routers:
    app.include_router(lookup_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    logger.info("=" * 80)
    logger.info("IT Asset Management API")
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.DEBUG}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info("=" * 80)

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
