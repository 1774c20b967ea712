"""Cascading facet resolution.

Facets follow a fixed dependency order (disease, autoantibody, autoantigen,
epitope).  The values offered for a facet are narrowed only by the values
already chosen for facets earlier in that order.
"""

import logging
import unicodedata
from collections.abc import Iterable
from typing import Any

from autoab_catalog.query.builder import field_match
from autoab_catalog.query.predicates import MATCH_ALL, Predicate, combine_all
from autoab_catalog.repositories.protocols import RecordStorage
from autoab_catalog.schemas.query import FACET_ORDER, FacetField, FacetRequest
from autoab_catalog.schemas.record import SearchField

logger = logging.getLogger(__name__)


def collation_key(value: str) -> tuple[str, str]:
    """Sort key comparing base letters only ("a", "A" and "á" collate together).

    The raw value breaks ties so the ordering is total.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), value


def clean_values(values: Iterable[Any]) -> list[str]:
    """Drop blanks, trim, de-duplicate and sort raw distinct values."""
    cleaned = {str(v).strip() for v in values if v is not None}
    cleaned.discard("")
    return sorted(cleaned, key=collation_key)


class FacetResolver:
    """Resolves the distinct values a facet may still take."""

    def __init__(self, storage: RecordStorage):
        self.storage = storage

    def constraint_for(self, request: FacetRequest) -> Predicate | None:
        """Predicate narrowing *request.target_field*, or None for "offer nothing"."""
        position = FACET_ORDER.index(request.target_field)
        chosen = (
            (FacetField.DISEASE, SearchField.DISEASE, request.disease),
            (FacetField.AUTOANTIBODY, SearchField.AUTOANTIBODY, request.autoantibody),
            (FacetField.AUTOANTIGEN, SearchField.AUTOANTIGEN, request.autoantigen),
        )

        clauses: list[Predicate] = []
        for facet, field, value in chosen:
            if FACET_ORDER.index(facet) >= position:
                continue
            clause = field_match(field, value)
            if clause is not None:
                clauses.append(clause)

        # Unconstrained epitope lists are too large to be useful
        if request.target_field is FacetField.EPITOPE and not clauses:
            return None
        return combine_all(clauses)

    async def resolve(self, request: FacetRequest) -> list[str]:
        predicate = self.constraint_for(request)
        if predicate is None:
            return []

        field = SearchField(request.target_field.value)
        values = await self.storage.distinct(field, predicate)
        logger.debug("Facet %s: %d raw values", field.value, len(values))
        return clean_values(values)

    async def unique_values(self, field: SearchField) -> list[str]:
        """Unconstrained distinct values of any searchable field."""
        return clean_values(await self.storage.distinct(field, MATCH_ALL))
