"""In-memory storage engine backed by a JSON snapshot."""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import orjson

from autoab_catalog.core.exceptions import StorageUnavailableError
from autoab_catalog.query.predicates import Predicate
from autoab_catalog.repositories.base import (
    BaseRecordStorage,
    normalize_raw_record,
    sort_records,
)
from autoab_catalog.repositories.protocols import SortKey
from autoab_catalog.schemas.record import Record, SearchField

logger = logging.getLogger(__name__)


class InMemoryRecordStorage(BaseRecordStorage):
    """
    Storage holding an immutable tuple of records.

    Predicates are evaluated directly with :meth:`Predicate.matches`.
    Suitable for small catalogs and for tests.
    """

    backend_name = "memory"

    def __init__(self, records: Iterable[Record] = (), source: Path | None = None):
        self._records: tuple[Record, ...] = tuple(records)
        self._by_id: dict[str, Record] = {r.id: r for r in self._records}
        self._source = source

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryRecordStorage":
        """
        Load records from a JSON array of documents.

        Raises:
            StorageUnavailableError: If the file does not exist
        """
        if not path.exists():
            raise StorageUnavailableError(f"Records file not found: {path}")

        with open(path, "rb") as f:
            raw = orjson.loads(f.read())

        if isinstance(raw, dict):
            raw = raw.get("data", [])

        records = [
            normalize_raw_record(doc, fallback_id=f"rec{index:06d}")
            for index, doc in enumerate(raw, start=1)
        ]
        logger.info(f"Loaded {len(records)} records from {path}")
        return cls(records, source=path)

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    def _matching(self, predicate: Predicate) -> list[Record]:
        return [r for r in self._records if predicate.matches(r)]

    async def find(
        self,
        predicate: Predicate,
        sort: Sequence[SortKey] = (),
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Record]:
        rows = sort_records(self._matching(predicate), sort)
        end = None if limit is None else skip + limit
        return rows[skip:end]

    async def count(self, predicate: Predicate) -> int:
        return sum(1 for r in self._records if predicate.matches(r))

    async def distinct(self, field: SearchField, predicate: Predicate) -> list[Any]:
        seen: dict[Any, None] = {}
        for record in self._matching(predicate):
            seen.setdefault(_raw_value(record, field), None)
        return list(seen)

    async def value_counts(self, field: SearchField) -> dict[Any, int]:
        return dict(Counter(_raw_value(r, field) for r in self._records))

    async def get(self, record_id: str) -> Record | None:
        return self._by_id.get(record_id)

    async def additional_keys(self) -> list[str]:
        keys = {key for r in self._records for key in r.additional}
        return sorted(keys)

    def describe(self) -> dict[str, Any]:
        return {
            "backend": self.backend_name,
            "records": len(self._records),
            "source": str(self._source) if self._source else None,
        }


def _raw_value(record: Record, field: SearchField) -> Any:
    """Stored value of *field*, keeping None for absent optional fields."""
    value = record.value_of(field)
    return value if value else None
