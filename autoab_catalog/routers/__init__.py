"""API routers."""

from autoab_catalog.routers.entries import router as entries_router
from autoab_catalog.routers.export import router as export_router
from autoab_catalog.routers.health import router as health_router

__all__ = [
    "entries_router",
    "export_router",
    "health_router",
]
