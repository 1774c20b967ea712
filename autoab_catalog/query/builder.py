"""Merge free-text search and structured filters into one predicate."""

from autoab_catalog.query.predicates import (
    AnyOf,
    FieldMatch,
    Predicate,
    combine_all,
)
from autoab_catalog.query.sanitizer import contains_pattern
from autoab_catalog.schemas.query import FilterSet, SearchScope
from autoab_catalog.schemas.record import SearchField

# Fields covered by a search with field=all, in clause order.
SEARCHABLE_FIELDS: tuple[SearchField, ...] = (
    SearchField.DISEASE,
    SearchField.AUTOANTIBODY,
    SearchField.AUTOANTIGEN,
    SearchField.EPITOPE,
    SearchField.UNIPROT_ID,
)


def field_match(field: SearchField, raw: str | None) -> FieldMatch | None:
    """Substring clause on *field*, or None when *raw* is blank."""
    pattern = contains_pattern(raw)
    if pattern is None:
        return None
    return FieldMatch(field, pattern)


def any_field_match(raw: str | None) -> AnyOf | None:
    """Substring clause matching any searchable field, or None when blank."""
    pattern = contains_pattern(raw)
    if pattern is None:
        return None
    return AnyOf(tuple(FieldMatch(field, pattern) for field in SEARCHABLE_FIELDS))


class QueryBuilder:
    """Stateless builder turning a :class:`FilterSet` into a predicate."""

    def search_clause(self, search: str | None, scope: SearchScope) -> Predicate | None:
        field = scope.as_field()
        if field is None:
            return any_field_match(search)
        return field_match(field, search)

    def build(self, filters: FilterSet) -> Predicate:
        clauses: list[Predicate] = []

        search = self.search_clause(filters.search, filters.field)
        if search is not None:
            clauses.append(search)

        structured = (
            (SearchField.DISEASE, filters.disease),
            (SearchField.AUTOANTIBODY, filters.autoantibody),
            (SearchField.AUTOANTIGEN, filters.autoantigen),
            (SearchField.EPITOPE, filters.epitope),
        )
        for field, value in structured:
            clause = field_match(field, value)
            if clause is not None:
                clauses.append(clause)

        return combine_all(clauses)
