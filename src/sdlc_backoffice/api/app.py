"""
SDLC Backoffice FastAPI Application.

CRUD API for projects, repositories, developments and webhook events.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sdlc_backoffice.api.routes import developments, projects, repositories, webhooks
from sdlc_backoffice.config import settings
from sdlc_backoffice.logging_config import setup_logging
from sdlc_backoffice.startup import run_all_startup_checks

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Runs startup checks before the application starts serving requests,
    so the API never serves against a missing database or schema.
    """
    setup_logging(context="api")

    logger.info("Running startup checks...")
    run_all_startup_checks()
    logger.info("✓ Startup checks passed")

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    lifespan=lifespan,
    title="SDLC Backoffice API",
    description="Administration API for the SDLC automation platform",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for the backoffice UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors with traceback and hide internals from clients."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    from sdlc_backoffice.db.connection import check_connection

    db_status = "healthy" if check_connection() else "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
    }


@app.get("/ready")
async def ready(response: Response) -> dict:
    """
    Readiness probe endpoint for container orchestration and load balancers.

    Returns 200 OK if ready to serve requests, 503 Service Unavailable otherwise.
    Includes startup metrics and current health status.
    """
    from sdlc_backoffice.startup import check_readiness

    is_ready, details = check_readiness()

    if not is_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return details


app.include_router(
    projects.router, prefix=f"{API_PREFIX}/projects", tags=["projects"]
)
app.include_router(
    repositories.router, prefix=f"{API_PREFIX}/repositories", tags=["repositories"]
)
app.include_router(
    developments.router, prefix=f"{API_PREFIX}/developments", tags=["developments"]
)
app.include_router(
    webhooks.router, prefix=f"{API_PREFIX}/webhook-events", tags=["webhook-events"]
)
