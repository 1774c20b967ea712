"""Protocol definitions for record storage engines (PEP 544)."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from autoab_catalog.query.predicates import Predicate
from autoab_catalog.schemas.query import SortField
from autoab_catalog.schemas.record import Record, SearchField


@dataclass(frozen=True)
class SortKey:
    """One ORDER BY term.  Absent values always sort last."""

    field: SortField
    descending: bool = False


class RecordStorage(Protocol):
    """
    Protocol for catalog record storage.

    Engines differ in how they execute a predicate, never in what it
    matches: every engine must return the same records in the same order
    for the same arguments.  Ties left by *sort* are broken by record id.
    """

    async def find(
        self,
        predicate: Predicate,
        sort: Sequence[SortKey] = (),
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Record]:
        """
        Fetch matching records.

        Args:
            predicate: Records to include
            sort: Ordering terms, applied left to right
            skip: Number of leading records to drop
            limit: Maximum number of records, or None for all

        Returns:
            List of records
        """
        ...

    async def count(self, predicate: Predicate) -> int:
        """Number of records matching *predicate*."""
        ...

    async def distinct(self, field: SearchField, predicate: Predicate) -> list[Any]:
        """Raw distinct values of *field* among matching records (may include None)."""
        ...

    async def value_counts(self, field: SearchField) -> dict[Any, int]:
        """Number of records per distinct value of *field*."""
        ...

    async def aggregate_ranked(self, match_predicate: Predicate) -> list[Record]:
        """Every candidate record for relevance ranking."""
        ...

    async def get(self, record_id: str) -> Record | None:
        """Record with the given id, or None."""
        ...

    async def additional_keys(self) -> list[str]:
        """Distinct keys used in records' ``additional`` annotations."""
        ...

    def describe(self) -> dict[str, Any]:
        """Backend name and status for health reporting."""
        ...

    def close(self) -> None:
        """Release any open handles."""
        ...
