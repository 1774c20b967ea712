"""Tests for the JSON to DuckDB conversion command."""

from autoab_catalog.convert import main
from autoab_catalog.query.predicates import MATCH_ALL
from autoab_catalog.repositories.duckdb_repository import DuckDBRecordStorage


async def test_convert_creates_database(tmp_path, records_json, sample_records):
    output = tmp_path / "out" / "catalog.duckdb"

    assert main([str(records_json), "--output", str(output)]) == 0

    storage = DuckDBRecordStorage(output)
    try:
        assert await storage.count(MATCH_ALL) == len(sample_records)
        assert (await storage.get("e006")).additional == {"assay": "ELISA", "Reference": "PMID:1"}
    finally:
        storage.close()


def test_refuses_to_overwrite(tmp_path, records_json):
    output = tmp_path / "catalog.duckdb"
    output.write_bytes(b"existing")

    assert main([str(records_json), "--output", str(output)]) == 1
    assert output.read_bytes() == b"existing"


def test_force_replaces_existing_file(tmp_path, records_json):
    output = tmp_path / "catalog.duckdb"
    output.write_bytes(b"existing")

    assert main([str(records_json), "--output", str(output), "--force"]) == 0
    assert output.stat().st_size > len(b"existing")


def test_missing_source(tmp_path):
    assert main([str(tmp_path / "missing.json"), "--output", str(tmp_path / "x.duckdb")]) == 1
