"""Service layer."""

from autoab_catalog.services.catalog_service import (
    CatalogService,
    close_catalog_service,
    get_catalog_service,
)
from autoab_catalog.services.export import EXPORT_FILENAME, records_to_csv

__all__ = [
    "CatalogService",
    "EXPORT_FILENAME",
    "close_catalog_service",
    "get_catalog_service",
    "records_to_csv",
]
