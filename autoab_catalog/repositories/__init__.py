"""Record storage engines."""

from autoab_catalog.config import Settings
from autoab_catalog.repositories.base import BaseRecordStorage
from autoab_catalog.repositories.duckdb_repository import DuckDBRecordStorage
from autoab_catalog.repositories.memory_repository import InMemoryRecordStorage
from autoab_catalog.repositories.protocols import RecordStorage, SortKey


def create_storage(settings: Settings) -> RecordStorage:
    """Instantiate the storage engine selected by ``storage_backend``."""
    if settings.storage_backend == "duckdb":
        return DuckDBRecordStorage(settings.duckdb_path)
    return InMemoryRecordStorage.from_json(settings.records_path)


__all__ = [
    "BaseRecordStorage",
    "DuckDBRecordStorage",
    "InMemoryRecordStorage",
    "RecordStorage",
    "SortKey",
    "create_storage",
]
