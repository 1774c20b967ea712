"""Core infrastructure components."""

from autoab_catalog.core.exceptions import (
    CatalogError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)

__all__ = [
    "CatalogError",
    "NotFoundError",
    "StorageUnavailableError",
    "ValidationError",
]
