"""DuckDB-backed storage engine for catalog records.

The database is opened read-only and every query runs through
``asyncio.run_in_executor`` so it never blocks the event loop.  Predicates
are compiled to parameterised SQL; user-supplied values only ever reach
DuckDB as parameters.

Case-insensitive "contains" clauses compile to
``regexp_matches(coalesce(col, ''), $n, 'i')``, which matches exactly what
:meth:`FieldMatch.matches` does in memory because every pattern has been
through the sanitizer and contains only literals and escaped metacharacters.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any

import duckdb
import orjson

from autoab_catalog.config import get_settings
from autoab_catalog.core.exceptions import StorageUnavailableError
from autoab_catalog.query.predicates import (
    AllOf,
    AnyOf,
    FieldEquals,
    FieldMatch,
    IsVerified,
    MatchAll,
    Predicate,
)
from autoab_catalog.repositories.base import BaseRecordStorage
from autoab_catalog.repositories.protocols import SortKey
from autoab_catalog.schemas.query import SortField
from autoab_catalog.schemas.record import Record, SearchField

logger = logging.getLogger(__name__)

TABLE = "records"

_CREATE_TABLE = f"""
    CREATE TABLE {TABLE} (
        id VARCHAR PRIMARY KEY,
        disease VARCHAR NOT NULL,
        autoantibody VARCHAR NOT NULL,
        autoantigen VARCHAR NOT NULL,
        epitope VARCHAR,
        uniprot_id VARCHAR,
        type VARCHAR,
        additional VARCHAR,
        source VARCHAR,
        date_added TIMESTAMP,
        last_updated TIMESTAMP,
        verified BOOLEAN,
        created_at TIMESTAMP,
        updated_at TIMESTAMP
    )
"""

_INSERT = f"INSERT INTO {TABLE} VALUES ({', '.join(f'${i}' for i in range(1, 15))})"

_FIELD_COLUMNS: dict[SearchField, str] = {
    SearchField.DISEASE: "disease",
    SearchField.AUTOANTIBODY: "autoantibody",
    SearchField.AUTOANTIGEN: "autoantigen",
    SearchField.EPITOPE: "epitope",
    SearchField.UNIPROT_ID: "uniprot_id",
}

_SORT_COLUMNS: dict[SortField, str] = {
    SortField.DISEASE: "disease",
    SortField.AUTOANTIBODY: "autoantibody",
    SortField.AUTOANTIGEN: "autoantigen",
    SortField.EPITOPE: "epitope",
    SortField.UNIPROT_ID: "uniprot_id",
    SortField.CREATED_AT: "created_at",
    SortField.UPDATED_AT: "updated_at",
}


def compile_predicate(predicate: Predicate, params: list[Any]) -> str:
    """Compile *predicate* to a SQL boolean expression, appending to *params*.

    Parameters are DuckDB positional (``$1``, ``$2``, ...), numbered by
    their position in *params*.
    """
    if isinstance(predicate, MatchAll):
        return "TRUE"
    if isinstance(predicate, FieldMatch):
        params.append(predicate.pattern)
        col = _FIELD_COLUMNS[predicate.field]
        return f"regexp_matches(coalesce({col}, ''), ${len(params)}, 'i')"
    if isinstance(predicate, FieldEquals):
        params.append(predicate.value)
        col = _FIELD_COLUMNS[predicate.field]
        return f"coalesce({col}, '') = ${len(params)}"
    if isinstance(predicate, IsVerified):
        return "coalesce(verified, FALSE)"
    if isinstance(predicate, AnyOf):
        if not predicate.clauses:
            return "FALSE"
        return "(" + " OR ".join(compile_predicate(c, params) for c in predicate.clauses) + ")"
    if isinstance(predicate, AllOf):
        if not predicate.clauses:
            return "TRUE"
        return "(" + " AND ".join(compile_predicate(c, params) for c in predicate.clauses) + ")"
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def compile_order(sort: Sequence[SortKey]) -> str:
    """ORDER BY clause with NULLS LAST on every key and id as final tie-break."""
    terms = [
        f"{_SORT_COLUMNS[key.field]} {'DESC' if key.descending else 'ASC'} NULLS LAST"
        for key in sort
    ]
    terms.append("id ASC")
    return " ORDER BY " + ", ".join(terms)


def _to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _record_row(record: Record) -> list[Any]:
    meta = record.metadata
    return [
        record.id,
        record.disease,
        record.autoantibody,
        record.autoantigen,
        record.epitope,
        record.uniprot_id,
        record.type,
        orjson.dumps(record.additional).decode() if record.additional else None,
        meta.source,
        _to_naive_utc(meta.date_added),
        _to_naive_utc(meta.last_updated),
        meta.verified,
        _to_naive_utc(record.created_at),
        _to_naive_utc(record.updated_at),
    ]


def _row_to_record(row: dict[str, Any]) -> Record:
    return Record.model_validate(
        {
            "id": row["id"],
            "disease": row["disease"],
            "autoantibody": row["autoantibody"],
            "autoantigen": row["autoantigen"],
            "epitope": row["epitope"],
            "uniprot_id": row["uniprot_id"],
            "type": row["type"],
            "additional": orjson.loads(row["additional"]) if row["additional"] else {},
            "metadata": {
                "source": row["source"],
                "date_added": row["date_added"],
                "last_updated": row["last_updated"],
                "verified": bool(row["verified"]),
            },
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }
    )


class DuckDBRecordStorage(BaseRecordStorage):
    """Read-only DuckDB storage implementing the ``RecordStorage`` protocol.

    Parameters
    ----------
    db_path : Path | None
        Explicit path to the ``.duckdb`` file.  Falls back to the
        ``duckdb_path`` setting.
    """

    backend_name = "duckdb"

    def __init__(self, db_path: Path | None = None) -> None:
        settings = get_settings()
        self._db_path: Path = db_path or settings.duckdb_path
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._query_count: int = 0

    # ------------------------------------------------------------------
    #  Building a database file
    # ------------------------------------------------------------------

    @staticmethod
    def write_database(db_path: Path, records: Iterable[Record]) -> int:
        """Create *db_path* holding *records*; returns the number written."""
        rows = [_record_row(r) for r in records]
        conn = duckdb.connect(str(db_path))
        try:
            conn.execute(_CREATE_TABLE)
            if rows:
                conn.executemany(_INSERT, rows)
        finally:
            conn.close()
        logger.info(f"Wrote {len(rows)} records to {db_path}")
        return len(rows)

    # ------------------------------------------------------------------
    #  Connection management
    # ------------------------------------------------------------------

    def _get_conn(self) -> duckdb.DuckDBPyConnection:
        """Return (or lazily create) a read-only DuckDB connection."""
        if self._conn is None:
            if not self._db_path.exists():
                raise StorageUnavailableError(f"DuckDB file not found: {self._db_path}")
            self._conn = duckdb.connect(str(self._db_path), read_only=True)
            logger.info(f"Opened DuckDB catalog {self._db_path}")
        return self._conn

    def _run_sync(self, fn: Any, *args: Any) -> Any:
        """Schedule *fn* on the default executor (non-blocking)."""
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(None, partial(fn, *args))

    def _fetch(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        # One cursor per call; a DuckDB connection must not be shared
        # between threads without it.
        cursor = self._get_conn().cursor()
        try:
            result = cursor.execute(sql, params)
            columns = [desc[0] for desc in result.description]
            rows = result.fetchall()
        finally:
            cursor.close()
        self._query_count += 1
        return [dict(zip(columns, row)) for row in rows]

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    #  RecordStorage protocol
    # ------------------------------------------------------------------

    async def find(
        self,
        predicate: Predicate,
        sort: Sequence[SortKey] = (),
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Record]:
        params: list[Any] = []
        where = compile_predicate(predicate, params)
        sql = f"SELECT * FROM {TABLE} WHERE {where}{compile_order(sort)}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        if skip:
            sql += f" OFFSET {int(skip)}"

        rows = await self._run_sync(self._fetch, sql, params)
        return [_row_to_record(row) for row in rows]

    async def count(self, predicate: Predicate) -> int:
        params: list[Any] = []
        where = compile_predicate(predicate, params)
        rows = await self._run_sync(
            self._fetch, f"SELECT count(*) AS n FROM {TABLE} WHERE {where}", params
        )
        return int(rows[0]["n"])

    async def distinct(self, field: SearchField, predicate: Predicate) -> list[Any]:
        params: list[Any] = []
        where = compile_predicate(predicate, params)
        col = _FIELD_COLUMNS[field]
        rows = await self._run_sync(
            self._fetch, f"SELECT DISTINCT {col} AS val FROM {TABLE} WHERE {where}", params
        )
        return [row["val"] for row in rows]

    async def value_counts(self, field: SearchField) -> dict[Any, int]:
        col = _FIELD_COLUMNS[field]
        rows = await self._run_sync(
            self._fetch,
            f"SELECT {col} AS val, count(*) AS n FROM {TABLE} GROUP BY {col}",
            [],
        )
        return {row["val"]: int(row["n"]) for row in rows}

    async def get(self, record_id: str) -> Record | None:
        rows = await self._run_sync(
            self._fetch, f"SELECT * FROM {TABLE} WHERE id = $1", [record_id]
        )
        return _row_to_record(rows[0]) if rows else None

    async def additional_keys(self) -> list[str]:
        rows = await self._run_sync(
            self._fetch,
            f"SELECT additional FROM {TABLE} WHERE additional IS NOT NULL",
            [],
        )
        keys: set[str] = set()
        for row in rows:
            keys.update(orjson.loads(row["additional"]))
        return sorted(keys)

    def describe(self) -> dict[str, Any]:
        return {
            "backend": self.backend_name,
            "db_path": str(self._db_path),
            "available": self._db_path.exists(),
            "query_count": self._query_count,
        }
