"""Engine-independent query predicates.

A predicate is an immutable tree describing "records where ...".  Storage
engines either evaluate it directly (:meth:`Predicate.matches`) or compile it
to their own query language; both must agree on the semantics defined here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from autoab_catalog.schemas.record import Record, SearchField


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a sanitized pattern for case-insensitive searching."""
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class MatchAll:
    """Matches every record."""

    def matches(self, record: Record) -> bool:
        return True


@dataclass(frozen=True)
class FieldMatch:
    """Case-insensitive regex search on one field (absent values are '')."""

    field: SearchField
    pattern: str

    def matches(self, record: Record) -> bool:
        return compile_pattern(self.pattern).search(record.value_of(self.field)) is not None


@dataclass(frozen=True)
class FieldEquals:
    """Exact, case-sensitive equality on one field."""

    field: SearchField
    value: str

    def matches(self, record: Record) -> bool:
        return record.value_of(self.field) == self.value


@dataclass(frozen=True)
class IsVerified:
    """Records whose metadata marks them as verified."""

    def matches(self, record: Record) -> bool:
        return record.metadata.verified


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of clauses."""

    clauses: tuple[Predicate, ...]

    def matches(self, record: Record) -> bool:
        return any(clause.matches(record) for clause in self.clauses)


@dataclass(frozen=True)
class AllOf:
    """Conjunction of clauses."""

    clauses: tuple[Predicate, ...]

    def matches(self, record: Record) -> bool:
        return all(clause.matches(record) for clause in self.clauses)


Predicate = Union[MatchAll, FieldMatch, FieldEquals, IsVerified, AnyOf, AllOf]

MATCH_ALL = MatchAll()


def combine_all(clauses: list[Predicate]) -> Predicate:
    """AND clauses together, leaving a lone clause unwrapped.

    Downstream engines may treat an implicit single clause differently from
    an explicit one-element conjunction, so the single clause is returned
    verbatim.
    """
    if not clauses:
        return MATCH_ALL
    if len(clauses) == 1:
        return clauses[0]
    return AllOf(tuple(clauses))
