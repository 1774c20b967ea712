"""FastAPI application factory and entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from autoab_catalog.config import get_settings
from autoab_catalog.core.exceptions import (
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from autoab_catalog.core.logging import RequestLoggingMiddleware, logger
from autoab_catalog.routers import entries_router, export_router, health_router
from autoab_catalog.schemas.responses import ErrorResponse
from autoab_catalog.services.catalog_service import close_catalog_service

settings = get_settings()


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "Health",
        "description": "Health check and system status endpoints",
    },
    {
        "name": "Entries",
        "description": "Listing, search, cascading facets and statistics over catalog entries",
    },
    {
        "name": "Data Export",
        "description": "Catalog export as JSON or CSV",
    },
]


def _error(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    if settings.storage_backend == "duckdb":
        logger.info(f"Storage: duckdb ({settings.duckdb_path})")
    else:
        logger.info(f"Storage: memory ({settings.records_path})")

    if settings.allowed_origins == "*":
        logger.warning("CORS: Allowing all origins (*) - this is insecure in production")

    yield

    logger.info("Shutting down...")
    close_catalog_service()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description=(
            "REST API for a curated catalog of diseases, their autoantibodies and "
            "target autoantigens. Supports filtered listing, relevance-ranked search, "
            "cascading facets, statistics and CSV export."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    # Middleware (processed in reverse order of add_middleware calls)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return _error(400, exc.message, exc.constraint)

    @app.exception_handler(NotFoundError)
    async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, str(exc), "not_found")

    @app.exception_handler(StorageUnavailableError)
    async def storage_exception_handler(
        request: Request, exc: StorageUnavailableError
    ) -> JSONResponse:
        logger.error(f"Storage unavailable: {exc}")
        return _error(503, "Catalog storage is unavailable", "storage_unavailable")

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions.

        Stack traces and internal paths are logged server-side only.
        """
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        if settings.debug and settings.environment == "development":
            error = type(exc).__name__
        else:
            error = None
        return _error(500, "Internal server error", error)

    # Include routers
    api_prefix = settings.api_v1_prefix

    app.include_router(health_router, prefix=api_prefix)
    app.include_router(entries_router, prefix=api_prefix)
    app.include_router(export_router, prefix=api_prefix)

    @app.get("/")
    async def root():
        """API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "api": settings.api_v1_prefix,
        }

    return app


# Create app instance
app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "autoab_catalog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        workers=1 if settings.debug else 4,
    )


if __name__ == "__main__":
    main()
