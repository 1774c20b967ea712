"""Unit tests for the storage engines."""

import orjson
import pytest

from autoab_catalog.core.exceptions import StorageUnavailableError
from autoab_catalog.query.predicates import (
    MATCH_ALL,
    AllOf,
    AnyOf,
    FieldEquals,
    FieldMatch,
    IsVerified,
)
from autoab_catalog.repositories.base import normalize_raw_record, sort_records
from autoab_catalog.repositories.duckdb_repository import (
    DuckDBRecordStorage,
    compile_order,
    compile_predicate,
)
from autoab_catalog.repositories.memory_repository import InMemoryRecordStorage
from autoab_catalog.repositories.protocols import SortKey
from autoab_catalog.schemas.query import SortField
from autoab_catalog.schemas.record import SearchField


class TestNormalizeRawRecord:
    def test_mongo_export_document(self):
        raw = {
            "_id": {"$oid": "65a1f0c2e4b0a1b2c3d4e5f6"},
            "disease": " Graves disease ",
            "autoantibody": "TRAb",
            "autoantigen": "TSH receptor",
            "uniprotId": "P16473",
            "metadata": {"dateAdded": {"$date": "2024-01-02T03:04:05Z"}, "verified": True},
        }
        record = normalize_raw_record(raw, fallback_id="unused")

        assert record.id == "65a1f0c2e4b0a1b2c3d4e5f6"
        assert record.disease == "Graves disease"
        assert record.metadata.date_added.year == 2024
        assert record.metadata.verified is True

    def test_fallback_id(self):
        raw = {"disease": "D", "autoantibody": "A", "autoantigen": "G"}
        assert normalize_raw_record(raw, fallback_id="rec000001").id == "rec000001"


class TestSortRecords:
    def test_missing_values_last_then_id(self, make_record):
        records = [
            make_record("c"),
            make_record("b", epitope="zeta"),
            make_record("a"),
            make_record("d", epitope="alpha"),
        ]
        asc = sort_records(records, [SortKey(SortField.EPITOPE)])
        desc = sort_records(records, [SortKey(SortField.EPITOPE, descending=True)])

        assert [r.id for r in asc] == ["d", "b", "a", "c"]
        assert [r.id for r in desc] == ["b", "d", "a", "c"]

    def test_multiple_keys(self, sample_records):
        ordered = sort_records(
            sample_records,
            [SortKey(SortField.DISEASE), SortKey(SortField.AUTOANTIBODY, descending=True)],
        )
        assert [r.id for r in ordered][3:5] == ["e008", "e003"]


class TestInMemoryRecordStorage:
    def test_from_json(self, records_json):
        storage = InMemoryRecordStorage.from_json(records_json)
        assert len(storage.records) == 8
        assert storage.describe()["records"] == 8

    def test_from_json_data_envelope(self, tmp_path, sample_documents):
        path = tmp_path / "wrapped.json"
        path.write_bytes(orjson.dumps({"data": sample_documents[:2]}))
        assert len(InMemoryRecordStorage.from_json(path).records) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(StorageUnavailableError):
            InMemoryRecordStorage.from_json(tmp_path / "missing.json")


class TestCompilePredicate:
    def test_match_all(self):
        params = []
        assert compile_predicate(MATCH_ALL, params) == "TRUE"
        assert params == []

    def test_values_become_parameters(self):
        params = []
        predicate = AllOf(
            (
                FieldMatch(SearchField.DISEASE, "lupus"),
                AnyOf(
                    (
                        FieldEquals(SearchField.UNIPROT_ID, "P02745"),
                        IsVerified(),
                    )
                ),
            )
        )
        sql = compile_predicate(predicate, params)

        assert sql == (
            "(regexp_matches(coalesce(disease, ''), $1, 'i') AND "
            "(coalesce(uniprot_id, '') = $2 OR coalesce(verified, FALSE)))"
        )
        assert params == ["lupus", "P02745"]

    def test_injection_stays_in_parameters(self):
        params = []
        sql = compile_predicate(FieldMatch(SearchField.DISEASE, "'; DROP TABLE records; --"), params)
        assert "DROP" not in sql

    def test_order_by(self):
        assert compile_order([SortKey(SortField.CREATED_AT, descending=True)]) == (
            " ORDER BY created_at DESC NULLS LAST, id ASC"
        )


class TestDuckDBRecordStorage:
    def test_missing_file(self, tmp_path):
        storage = DuckDBRecordStorage(tmp_path / "missing.duckdb")
        assert storage.describe()["available"] is False
        with pytest.raises(StorageUnavailableError):
            storage._get_conn()

    async def test_round_trip_preserves_records(self, duckdb_storage, sample_records):
        stored = await duckdb_storage.find(MATCH_ALL, sort=[])
        assert stored == sorted(sample_records, key=lambda r: r.id)

    async def test_empty_database(self, tmp_path):
        path = tmp_path / "empty.duckdb"
        assert DuckDBRecordStorage.write_database(path, []) == 0

        storage = DuckDBRecordStorage(path)
        try:
            assert await storage.count(MATCH_ALL) == 0
            assert await storage.find(MATCH_ALL) == []
        finally:
            storage.close()

    async def test_query_count(self, duckdb_storage):
        await duckdb_storage.count(MATCH_ALL)
        await duckdb_storage.get("e001")
        assert duckdb_storage.describe()["query_count"] == 2


class TestStorageProtocol:
    """Behaviour every engine must share."""

    async def test_get(self, storage):
        record = await storage.get("e004")
        assert record.autoantigen == "C1q (complement)"
        assert await storage.get("nope") is None

    async def test_literal_metacharacters(self, storage):
        predicate = FieldMatch(SearchField.AUTOANTIGEN, r"C1q \(complement\)")
        assert [r.id for r in await storage.find(predicate)] == ["e004"]

    async def test_count(self, storage):
        assert await storage.count(MATCH_ALL) == 8
        assert await storage.count(IsVerified()) == 4
        assert await storage.count(FieldMatch(SearchField.DISEASE, "LUPUS")) == 3

    async def test_skip_and_limit(self, storage):
        sort = [SortKey(SortField.DISEASE)]
        page = await storage.find(MATCH_ALL, sort=sort, skip=2, limit=2)
        assert [r.id for r in page] == ["e005", "e003"]

    async def test_sort_by_timestamp(self, storage):
        rows = await storage.find(MATCH_ALL, sort=[SortKey(SortField.CREATED_AT, descending=True)])
        # e005 has no createdAt
        assert [r.id for r in rows] == [
            "e008", "e007", "e006", "e004", "e003", "e002", "e001", "e005",
        ]

    async def test_distinct_includes_absent(self, storage):
        values = await storage.distinct(SearchField.EPITOPE, FieldMatch(SearchField.DISEASE, "SLE"))
        assert sorted(values, key=lambda v: (v is None, v)) == ["SmD1 83-119", None]

    async def test_value_counts(self, storage):
        counts = await storage.value_counts(SearchField.DISEASE)
        assert counts["Rheumatoid arthritis"] == 2
        assert sum(counts.values()) == 8

    async def test_additional_keys(self, storage):
        assert await storage.additional_keys() == ["Reference", "assay"]

    async def test_aggregate_ranked_returns_all_candidates(self, storage):
        predicate = AnyOf(
            tuple(FieldMatch(field, "lupus") for field in SearchField)
        )
        rows = await storage.aggregate_ranked(predicate)
        assert {r.id for r in rows} == {"e001", "e002", "e004", "e007"}


@pytest.mark.parametrize(
    "predicate",
    [
        MATCH_ALL,
        FieldMatch(SearchField.EPITOPE, "region"),
        FieldMatch(SearchField.UNIPROT_ID, "p0"),
        AnyOf((FieldEquals(SearchField.DISEASE, "Rheumatoid arthritis"), IsVerified())),
        AllOf((FieldMatch(SearchField.DISEASE, "s"), FieldMatch(SearchField.AUTOANTIBODY, "anti"))),
    ],
)
async def test_engines_agree(predicate, memory_storage, duckdb_storage):
    sort = [SortKey(SortField.AUTOANTIGEN, descending=True)]
    expected = await memory_storage.find(predicate, sort=sort)
    actual = await duckdb_storage.find(predicate, sort=sort)

    assert [r.id for r in actual] == [r.id for r in expected]
    assert await duckdb_storage.count(predicate) == await memory_storage.count(predicate)
