"""Health check endpoints."""

from fastapi import APIRouter, Depends

from autoab_catalog.config import get_settings
from autoab_catalog.schemas.responses import HealthResponse
from autoab_catalog.services.catalog_service import CatalogService, get_catalog_service

router = APIRouter(prefix="/health", tags=["Health"])
settings = get_settings()


@router.get("", response_model=HealthResponse)
async def health_check(
    service: CatalogService = Depends(get_catalog_service),
) -> HealthResponse:
    """
    Check API health status.

    Reports the storage backend; a DuckDB file that has gone missing
    makes the service "degraded".
    """
    info = service.storage.describe()
    status = "healthy" if info.get("available", True) else "degraded"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        storage=info["backend"],
        environment=settings.environment,
    )


@router.get("/live")
async def liveness_check() -> dict:
    """
    Kubernetes liveness check.

    Returns 200 if the service is alive.
    """
    return {"alive": True}
