"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from insura_ops.api.v1.router import api_router
from insura_ops.core.config import settings
from insura_ops.core.exceptions import ConfigurationError
from insura_ops.database import create_backend_clients
from insura_ops.schemas.responses import HealthCheckResponse
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__, level=settings.log_level)


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the backend clients once at startup. Missing configuration stops
    startup with ``ConfigurationError``. With ``DEBUG`` enabled the app starts
    degraded instead: ``app.state.backend_clients`` stays unset, diagnostics
    routes answer 503 and ``/health`` reports ``degraded``.

    Args:
        app: FastAPI application instance

    Yields:
        None

    Raises:
        ConfigurationError: If required backend settings are missing and
            debug mode is off
    """
    LOGGER.info(
        "Starting application",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        },
    )

    app.state.backend_clients = None
    try:
        app.state.backend_clients = create_backend_clients(settings)
        LOGGER.info("Backend clients initialized successfully")
    except ConfigurationError as e:
        LOGGER.error(
            "Failed to initialize backend clients",
            exc_info=True,
            extra={"error": str(e)},
        )
        if not settings.debug:
            raise
        LOGGER.warning("Debug mode: starting without backend clients")

    yield

    LOGGER.info("Shutting down application")
    app.state.backend_clients = None


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Data access and diagnostics for insurance operations on Supabase",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check endpoint",
    description="Check if the service is running and whether the backend is configured",
    operation_id="get_service_health_status",
)
async def health_check(request: Request) -> HealthCheckResponse:
    """Health check endpoint.

    Returns:
        HealthCheckResponse: Service health status
    """
    clients = getattr(request.app.state, "backend_clients", None)

    return HealthCheckResponse(
        status="healthy" if clients is not None else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        backend_configured=clients is not None,
        privileged_access=bool(clients and clients.has_service_key()),
    )


# Root endpoint
@app.get(
    "/",
    response_model=RootResponse,
    tags=["Root"],
    summary="Root endpoint",
    description="Get basic information about the API",
    operation_id="get_public_root_metadata",
)
async def root() -> RootResponse:
    """Root endpoint.

    Returns:
        RootResponse: Basic API information
    """
    return RootResponse(
        message="Server is running",
        version=settings.app_version,
        docs="/docs",
        health="/health",
    )


# Include routers
app.include_router(api_router, prefix=settings.api_v1_prefix)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "insura_ops.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
