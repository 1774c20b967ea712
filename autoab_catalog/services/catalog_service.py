"""Catalog service: listing, search, facets, statistics and export."""

import logging
import re

from autoab_catalog.config import Settings, get_settings
from autoab_catalog.core.exceptions import NotFoundError, ValidationError
from autoab_catalog.query.assembler import ResultAssembler, normalize_page
from autoab_catalog.query.builder import QueryBuilder, field_match
from autoab_catalog.query.facets import FacetResolver, clean_values
from autoab_catalog.query.predicates import AnyOf, FieldEquals, Predicate
from autoab_catalog.query.paging import clamp_limit, parse_int
from autoab_catalog.query.ranking import RelevanceRanker
from autoab_catalog.query.sanitizer import clean
from autoab_catalog.repositories import RecordStorage, SortKey, create_storage
from autoab_catalog.schemas.query import (
    FacetField,
    FacetRequest,
    FilterSet,
    SearchScope,
    SortField,
)
from autoab_catalog.schemas.record import UNIPROT_MULTIPLE, Record, SearchField
from autoab_catalog.schemas.responses import (
    AppliedFilters,
    CatalogStatistics,
    ListResult,
    RankedRecord,
    SearchStats,
)

logger = logging.getLogger(__name__)

RECORD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

BY_DISEASE_THEN_ANTIBODY = (SortKey(SortField.DISEASE), SortKey(SortField.AUTOANTIBODY))
BY_ANTIBODY_THEN_ANTIGEN = (SortKey(SortField.AUTOANTIBODY), SortKey(SortField.AUTOANTIGEN))


def _parse_enum(enum_cls, value: str | None, param: str):
    """Convert *value* to *enum_cls*, naming the allowed values on failure."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"{param}.enum",
            f"Invalid field specified. Must be one of: {allowed}",
        ) from None


class CatalogService:
    """Orchestrates the query engine over a storage backend."""

    def __init__(self, storage: RecordStorage, settings: Settings | None = None):
        self.storage = storage
        self.settings = settings or get_settings()
        self.builder = QueryBuilder()
        self.ranker = RelevanceRanker(
            min_term_length=self.settings.min_ranked_term_length,
            default_limit=self.settings.ranked_default_limit,
            max_limit=self.settings.max_page_limit,
        )
        self.facets = FacetResolver(storage)
        self.assembler = ResultAssembler(storage)

    # ------------------------------------------------------------------
    #  Listing
    # ------------------------------------------------------------------

    async def list_entries(
        self,
        search: str | None = None,
        field: str | None = None,
        disease: str | None = None,
        autoantibody: str | None = None,
        autoantigen: str | None = None,
        epitope: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        page: int | str | None = None,
        limit: int | str | None = None,
    ) -> tuple[ListResult, AppliedFilters]:
        """Filtered, sorted, paginated listing."""
        scope = _parse_enum(SearchScope, field or SearchScope.ALL.value, "field")
        filters = FilterSet(
            search=search,
            field=scope,
            disease=disease,
            autoantibody=autoantibody,
            autoantigen=autoantigen,
            epitope=epitope,
        )
        predicate = self.builder.build(filters)
        page_request = normalize_page(
            page,
            limit,
            sort_by,
            sort_order,
            default_limit=self.settings.default_page_limit,
            max_limit=self.settings.max_page_limit,
        )
        logger.debug(f"Listing with predicate {predicate!r}")

        result = await self.assembler.assemble(predicate, page_request)
        applied = AppliedFilters(
            search=search or None,
            field=field or None,
            disease=disease or None,
            autoantibody=autoantibody or None,
            autoantigen=autoantigen or None,
            epitope=epitope or None,
            sort_by=page_request.sort_by.value,
            sort_order=page_request.sort_order.value,
        )
        return result, applied

    # ------------------------------------------------------------------
    #  Search
    # ------------------------------------------------------------------

    async def search_entries(
        self,
        q: str | None,
        field: str | None = None,
        limit: int | str | None = None,
    ) -> tuple[str, list[Record]]:
        """Unranked search sorted by disease then autoantibody."""
        term = clean(q)
        if term is None:
            raise ValidationError("q.required", "Search term is required")
        scope = _parse_enum(SearchScope, field or SearchScope.ALL.value, "field")

        predicate = self.builder.build(FilterSet(search=term, field=scope))
        size = clamp_limit(
            limit, self.settings.simple_search_default_limit, self.settings.max_page_limit
        )
        records = await self.storage.find(predicate, sort=BY_DISEASE_THEN_ANTIBODY, limit=size)
        return term, records

    async def advanced_search(
        self,
        q: str | None,
        limit: int | str | None = None,
        include_stats: bool = False,
    ) -> tuple[str, list[RankedRecord], SearchStats | None]:
        """Relevance-ranked search, optionally with statistics over all matches."""
        term = self.ranker.validate_term(q)
        candidates = await self.storage.aggregate_ranked(self.ranker.candidate_predicate(term))

        ranked = [
            RankedRecord(**scored.record.model_dump(), relevance_score=scored.score)
            for scored in self.ranker.rank(term, candidates, limit)
        ]
        stats = self.ranker.statistics(candidates) if include_stats else None

        logger.info(f"Ranked search {term!r}: {len(candidates)} matches, returning {len(ranked)}")
        return term, ranked, stats

    # ------------------------------------------------------------------
    #  Lookups
    # ------------------------------------------------------------------

    async def get_entry(self, record_id: str) -> tuple[Record, list[Record]]:
        """A record plus up to ``related_entries_limit`` related records."""
        if not RECORD_ID_PATTERN.match(record_id or ""):
            raise ValidationError("id.format", "Valid entry ID is required")

        record = await self.storage.get(record_id)
        if record is None:
            raise NotFoundError(f"Entry not found: {record_id}")

        return record, await self.related_entries(record)

    async def related_entries(self, record: Record) -> list[Record]:
        """Records sharing the disease, the autoantigen or a concrete UniProt ID."""
        clauses: list[Predicate] = [
            FieldEquals(SearchField.DISEASE, record.disease),
            FieldEquals(SearchField.AUTOANTIGEN, record.autoantigen),
        ]
        if record.uniprot_id and record.uniprot_id != UNIPROT_MULTIPLE:
            clauses.append(FieldEquals(SearchField.UNIPROT_ID, record.uniprot_id))

        size = self.settings.related_entries_limit
        # One extra row in case the record itself is among the first matches
        candidates = await self.storage.find(
            AnyOf(tuple(clauses)), sort=BY_DISEASE_THEN_ANTIBODY, limit=size + 1
        )
        return [r for r in candidates if r.id != record.id][:size]

    async def entries_by_disease(self, disease: str) -> list[Record]:
        clause = field_match(SearchField.DISEASE, disease)
        if clause is None:
            raise ValidationError("disease.required", "Disease name is required")
        return await self.storage.find(clause, sort=BY_ANTIBODY_THEN_ANTIGEN)

    async def entries_by_uniprot(self, uniprot_id: str) -> list[Record]:
        value = clean(uniprot_id)
        if value is None:
            raise ValidationError("uniprotId.required", "UniProt ID is required")
        predicate = FieldEquals(SearchField.UNIPROT_ID, value.upper())
        return await self.storage.find(predicate, sort=BY_DISEASE_THEN_ANTIBODY)

    # ------------------------------------------------------------------
    #  Facets and statistics
    # ------------------------------------------------------------------

    async def unique_values(self, field: str) -> list[str]:
        return await self.facets.unique_values(_parse_enum(SearchField, field, "field"))

    async def filtered_unique_values(
        self,
        field: str,
        disease: str | None = None,
        autoantibody: str | None = None,
        autoantigen: str | None = None,
    ) -> list[str]:
        request = FacetRequest(
            target_field=_parse_enum(FacetField, field, "field"),
            disease=disease,
            autoantibody=autoantibody,
            autoantigen=autoantigen,
        )
        return await self.facets.resolve(request)

    async def additional_keys(self) -> list[str]:
        return clean_values(await self.storage.additional_keys())

    async def statistics(self) -> CatalogStatistics:
        return await self.assembler.overview()

    # ------------------------------------------------------------------
    #  Export
    # ------------------------------------------------------------------

    async def export_entries(
        self,
        disease: str | None = None,
        autoantibody: str | None = None,
        autoantigen: str | None = None,
        limit: int | str | None = None,
    ) -> list[Record]:
        """Records for export; *limit* applies only when it parses to a positive integer."""
        predicate = self.builder.build(
            FilterSet(disease=disease, autoantibody=autoantibody, autoantigen=autoantigen)
        )
        requested = parse_int(limit)
        size = None
        if requested is not None and requested > 0:
            size = min(requested, self.settings.export_max_limit)
        return await self.storage.find(predicate, sort=BY_DISEASE_THEN_ANTIBODY, limit=size)


# Singleton instance
_catalog_service: CatalogService | None = None


def get_catalog_service() -> CatalogService:
    """Get or create the catalog service singleton."""
    global _catalog_service
    if _catalog_service is None:
        settings = get_settings()
        _catalog_service = CatalogService(create_storage(settings), settings)
    return _catalog_service


def close_catalog_service() -> None:
    """Close the singleton's storage and forget it."""
    global _catalog_service
    if _catalog_service is not None:
        _catalog_service.storage.close()
        _catalog_service = None
