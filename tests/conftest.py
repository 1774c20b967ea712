"""Pytest configuration and shared fixtures for the catalog API tests."""

import os
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import orjson
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set environment variables before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "false"
os.environ["STORAGE_BACKEND"] = "memory"

from autoab_catalog.config import Settings  # noqa: E402
from autoab_catalog.repositories.duckdb_repository import DuckDBRecordStorage  # noqa: E402
from autoab_catalog.repositories.memory_repository import InMemoryRecordStorage  # noqa: E402
from autoab_catalog.schemas.record import Record  # noqa: E402
from autoab_catalog.services.catalog_service import CatalogService  # noqa: E402


# ---------------------------------------------------------------------------
# Sample data (small, inline)
# ---------------------------------------------------------------------------

SAMPLE_DOCUMENTS: list[dict[str, Any]] = [
    {
        "id": "e001",
        "disease": "Systemic lupus erythematosus (SLE)",
        "autoantibody": "Anti-dsDNA",
        "autoantigen": "Double-stranded DNA",
        "metadata": {
            "source": "curated",
            "dateAdded": "2024-01-10T08:00:00Z",
            "lastUpdated": "2024-03-01T23:30:00Z",
            "verified": True,
        },
        "createdAt": "2024-01-15T10:00:00Z",
    },
    {
        "id": "e002",
        "disease": "Systemic lupus erythematosus (SLE)",
        "autoantibody": "Anti-Sm",
        "autoantigen": "Smith antigen",
        "epitope": "SmD1 83-119",
        "uniprotId": "P62314",
        "metadata": {"verified": True},
        "createdAt": "2024-02-01T00:00:00Z",
    },
    {
        "id": "e003",
        "disease": "Rheumatoid arthritis",
        "autoantibody": "Anti-CCP",
        "autoantigen": "Citrullinated peptides",
        "uniprotId": "Multiple",
        "metadata": {"verified": False},
        "createdAt": "2024-02-10T00:00:00Z",
    },
    {
        "id": "e004",
        "disease": "Lupus nephritis",
        "autoantibody": "Anti-C1q",
        "autoantigen": "C1q (complement)",
        "epitope": "Collagen-like region",
        "uniprotId": "P02745",
        "metadata": {"verified": True},
        "createdAt": "2024-03-05T12:00:00Z",
    },
    {
        "id": "e005",
        "disease": "Myasthenia gravis",
        "autoantibody": "Anti-AChR",
        "autoantigen": "Acetylcholine receptor",
        "epitope": "Main immunogenic region",
        "uniprotId": "P02708",
        "metadata": {"dateAdded": "2023-12-01T00:00:00Z", "verified": False},
    },
    {
        "id": "e006",
        "disease": "Sjögren syndrome",
        "autoantibody": "Anti-Ro/SSA",
        "autoantigen": "Ro60",
        "uniprotId": "P10155",
        "additional": {"assay": "ELISA", "Reference": "PMID:1"},
        "metadata": {"verified": False},
        "createdAt": "2024-04-01T00:00:00Z",
    },
    {
        "id": "e007",
        "disease": "Antiphospholipid syndrome",
        "autoantibody": "Anti-Lupus",
        "autoantigen": "Beta-2 glycoprotein I",
        "uniprotId": "P02749",
        "metadata": {"verified": False},
        "createdAt": "2024-04-02T00:00:00Z",
    },
    {
        "id": "e008",
        "disease": "Rheumatoid arthritis",
        "autoantibody": "Rheumatoid factor",
        "autoantigen": "IgG Fc",
        "epitope": "CH2-CH3 interface",
        "metadata": {"verified": True},
        "createdAt": "2024-05-01T00:00:00Z",
    },
]


@pytest.fixture
def sample_documents() -> list[dict[str, Any]]:
    """Raw camelCase documents as they appear in a JSON snapshot."""
    return [dict(doc) for doc in SAMPLE_DOCUMENTS]


@pytest.fixture
def sample_records(sample_documents) -> list[Record]:
    return [Record.model_validate(doc) for doc in sample_documents]


@pytest.fixture
def make_record():
    """Factory building a record with placeholder values for required fields."""

    def _make(record_id: str = "x001", **fields: Any) -> Record:
        doc = {
            "id": record_id,
            "disease": "Disease",
            "autoantibody": "Antibody",
            "autoantigen": "Antigen",
        }
        doc.update(fields)
        return Record.model_validate(doc)

    return _make


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def records_json(tmp_path, sample_documents) -> Path:
    """JSON snapshot file of the sample documents."""
    path = tmp_path / "records.json"
    path.write_bytes(orjson.dumps(sample_documents))
    return path


@pytest.fixture
def memory_storage(sample_records) -> InMemoryRecordStorage:
    return InMemoryRecordStorage(sample_records)


@pytest.fixture
def duckdb_path(tmp_path, sample_records) -> Path:
    path = tmp_path / "catalog.duckdb"
    DuckDBRecordStorage.write_database(path, sample_records)
    return path


@pytest.fixture
def duckdb_storage(duckdb_path):
    storage = DuckDBRecordStorage(duckdb_path)
    yield storage
    storage.close()


@pytest.fixture(params=["memory", "duckdb"])
def storage(request):
    """Each storage engine over the same sample records."""
    if request.param == "memory":
        return request.getfixturevalue("memory_storage")
    return request.getfixturevalue("duckdb_storage")


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def catalog_service(storage, settings) -> CatalogService:
    return CatalogService(storage, settings)


# ---------------------------------------------------------------------------
# HTTP test client using httpx.AsyncClient + ASGITransport
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_client(memory_storage, settings) -> AsyncGenerator[AsyncClient, None]:
    """Async test client over the sample records (no network I/O)."""
    from autoab_catalog.main import app
    from autoab_catalog.services.catalog_service import get_catalog_service

    service = CatalogService(memory_storage, settings)
    app.dependency_overrides[get_catalog_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
