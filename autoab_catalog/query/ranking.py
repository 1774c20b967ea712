"""Relevance scoring and ranking for free-text search.

Ranking is done in two steps: the storage engine returns every record that
matches the term in any searchable field, then each candidate is scored
in-process and sorted.  Scores are a weighted sum of per-field matches, so
they are deterministic and independent of the storage engine.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from autoab_catalog.core.exceptions import ValidationError
from autoab_catalog.query.builder import SEARCHABLE_FIELDS
from autoab_catalog.query.paging import clamp_limit
from autoab_catalog.query.predicates import AnyOf, FieldMatch, compile_pattern
from autoab_catalog.query.sanitizer import clean, escape
from autoab_catalog.schemas.record import Record, SearchField
from autoab_catalog.schemas.responses import SearchStats

logger = logging.getLogger(__name__)

RELEVANCE_WEIGHTS: dict[SearchField, int] = {
    SearchField.DISEASE: 10,
    SearchField.AUTOANTIBODY: 8,
    SearchField.AUTOANTIGEN: 6,
    SearchField.EPITOPE: 4,
    SearchField.UNIPROT_ID: 2,
}


@dataclass(frozen=True)
class ScoredRecord:
    """A candidate record and its relevance score."""

    record: Record
    score: int


class RelevanceRanker:
    """Scores and ranks candidate records against a search term."""

    def __init__(
        self,
        min_term_length: int = 2,
        default_limit: int = 50,
        max_limit: int = 100,
    ):
        self.min_term_length = min_term_length
        self.default_limit = default_limit
        self.max_limit = max_limit

    def validate_term(self, term: str | None) -> str:
        """Return the trimmed term, rejecting missing or too-short input."""
        value = clean(term)
        if value is None:
            raise ValidationError("q.required", "Search term is required")
        if len(value) < self.min_term_length:
            raise ValidationError(
                "q.min_length",
                f"Search term must be at least {self.min_term_length} characters long",
            )
        return value

    def candidate_predicate(self, term: str) -> AnyOf:
        """Disjunction over all searchable fields used to fetch candidates."""
        pattern = escape(self.validate_term(term))
        return AnyOf(tuple(FieldMatch(field, pattern) for field in SEARCHABLE_FIELDS))

    def score(self, term: str, record: Record) -> int:
        regex = compile_pattern(escape(term.strip()))
        return sum(
            weight
            for field, weight in RELEVANCE_WEIGHTS.items()
            if regex.search(record.value_of(field))
        )

    def rank(
        self,
        term: str,
        candidates: Iterable[Record],
        limit: int | str | None = None,
    ) -> list[ScoredRecord]:
        """Score, sort and truncate *candidates*.

        Ordering is score descending, then disease ascending, then record id
        so that equal inputs always produce the same output.
        """
        term = self.validate_term(term)
        size = clamp_limit(limit, self.default_limit, self.max_limit)

        scored = [ScoredRecord(record, self.score(term, record)) for record in candidates]
        scored.sort(key=lambda s: (-s.score, s.record.disease, s.record.id))

        logger.debug("Ranked %d candidates for %r (limit=%d)", len(scored), term, size)
        return scored[:size]

    def statistics(self, candidates: Sequence[Record]) -> SearchStats:
        """Aggregate counts over every candidate, regardless of any limit."""
        return SearchStats(
            total_matches=len(candidates),
            unique_diseases_count=len({r.disease for r in candidates}),
            unique_antibodies_count=len({r.autoantibody for r in candidates}),
            unique_antigens_count=len({r.autoantigen for r in candidates}),
        )
