"""Base storage implementation with shared functionality."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from autoab_catalog.query.predicates import Predicate
from autoab_catalog.repositories.protocols import SortKey
from autoab_catalog.schemas.query import SortField
from autoab_catalog.schemas.record import Record

_SORT_ACCESSORS = {
    SortField.DISEASE: lambda r: r.disease,
    SortField.AUTOANTIBODY: lambda r: r.autoantibody,
    SortField.AUTOANTIGEN: lambda r: r.autoantigen,
    SortField.EPITOPE: lambda r: r.epitope,
    SortField.UNIPROT_ID: lambda r: r.uniprot_id,
    SortField.CREATED_AT: lambda r: r.created_at,
    SortField.UPDATED_AT: lambda r: r.updated_at,
}


def _unwrap_extended_json(value: Any) -> Any:
    """Unwrap MongoDB extended-JSON scalars such as ``{"$oid": ...}``."""
    if isinstance(value, dict) and len(value) == 1:
        key = next(iter(value))
        if key in ("$oid", "$date", "$numberLong"):
            return value[key]
    return value


def normalize_raw_record(raw: dict[str, Any], fallback_id: str) -> Record:
    """
    Build a :class:`Record` from a loosely-shaped source document.

    Accepts camelCase or snake_case keys and MongoDB export conventions
    (``_id``, ``{"$oid": ...}``, ``{"$date": ...}``).

    Args:
        raw: Source document
        fallback_id: Identifier to use when the document carries none

    Returns:
        Validated record

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid
    """
    doc = {key: _unwrap_extended_json(value) for key, value in raw.items()}

    record_id = doc.pop("_id", None) or doc.get("id") or fallback_id
    doc["id"] = str(record_id)

    metadata = doc.get("metadata")
    if isinstance(metadata, dict):
        doc["metadata"] = {k: _unwrap_extended_json(v) for k, v in metadata.items()}

    return Record.model_validate(doc)


def sort_records(records: list[Record], sort: Sequence[SortKey]) -> list[Record]:
    """
    Order records by *sort*, then by id.

    Absent values go last in both directions.  Python's sort is stable, so
    sorting by the least significant key first yields the combined order.
    """
    ordered = sorted(records, key=lambda r: r.id)
    for key in reversed(sort):
        accessor = _SORT_ACCESSORS[key.field]
        present = [r for r in ordered if accessor(r) is not None]
        missing = [r for r in ordered if accessor(r) is None]
        present.sort(key=accessor, reverse=key.descending)
        ordered = present + missing
    return ordered


class BaseRecordStorage(ABC):
    """
    Abstract base storage with behaviour shared by all engines.

    Subclasses implement the data access primitives.
    """

    backend_name = "base"

    @abstractmethod
    async def find(
        self,
        predicate: Predicate,
        sort: Sequence[SortKey] = (),
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Record]:
        ...

    async def aggregate_ranked(self, match_predicate: Predicate) -> list[Record]:
        """Candidates for ranking; scoring itself happens in-process."""
        return await self.find(match_predicate)

    def describe(self) -> dict[str, Any]:
        return {"backend": self.backend_name}

    def close(self) -> None:
        """Release engine resources; nothing to do by default."""
