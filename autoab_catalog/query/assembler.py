"""Pagination, sort whitelisting and catalog statistics."""

import logging
import math

from autoab_catalog.query.paging import clamp_limit, clamp_page
from autoab_catalog.query.predicates import MATCH_ALL, IsVerified, Predicate
from autoab_catalog.repositories.protocols import RecordStorage, SortKey
from autoab_catalog.schemas.query import PageRequest, SortField, SortOrder
from autoab_catalog.schemas.record import SearchField
from autoab_catalog.schemas.responses import (
    CatalogOverview,
    CatalogStatistics,
    ListResult,
    Pagination,
    ValueCount,
)

logger = logging.getLogger(__name__)

TOP_DISEASES = 20
TOP_ANTIBODIES = 10
TOP_ANTIGENS = 10


def normalize_page(
    page: int | str | None = None,
    limit: int | str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    default_limit: int = 10,
    max_limit: int = 100,
) -> PageRequest:
    """Turn loose client parameters into a valid :class:`PageRequest`.

    Unknown sort fields silently fall back to ``disease``; any order other
    than ``desc`` is ascending.
    """
    try:
        sort_field = SortField(sort_by) if sort_by else SortField.DISEASE
    except ValueError:
        sort_field = SortField.DISEASE

    order = SortOrder.DESC if sort_order == SortOrder.DESC.value else SortOrder.ASC

    return PageRequest(
        page=clamp_page(page),
        limit=clamp_limit(limit, default_limit, max_limit),
        sort_by=sort_field,
        sort_order=order,
    )


def _top(counts: dict, n: int) -> list[ValueCount]:
    ordered = sorted(
        ((value, count) for value, count in counts.items() if value is not None),
        key=lambda item: (-item[1], item[0]),
    )
    return [ValueCount(value=value, count=count) for value, count in ordered[:n]]


class ResultAssembler:
    """Shapes storage results into pages and summary statistics."""

    def __init__(self, storage: RecordStorage):
        self.storage = storage

    async def assemble(self, predicate: Predicate, page_request: PageRequest) -> ListResult:
        sort = (
            SortKey(
                page_request.sort_by,
                descending=page_request.sort_order is SortOrder.DESC,
            ),
        )
        records = await self.storage.find(
            predicate,
            sort=sort,
            skip=page_request.skip,
            limit=page_request.limit,
        )
        total = await self.storage.count(predicate)
        pages = math.ceil(total / page_request.limit)

        return ListResult(
            records=records,
            pagination=Pagination(
                page=page_request.page,
                limit=page_request.limit,
                total=total,
                pages=pages,
                has_next=page_request.page < pages,
                has_prev=page_request.page > 1,
            ),
        )

    async def overview(self) -> CatalogStatistics:
        """Catalog-wide counts and the most frequent values per field."""
        total = await self.storage.count(MATCH_ALL)
        verified = await self.storage.count(IsVerified())

        diseases = await self.storage.value_counts(SearchField.DISEASE)
        antibodies = await self.storage.value_counts(SearchField.AUTOANTIBODY)
        antigens = await self.storage.value_counts(SearchField.AUTOANTIGEN)
        uniprot_ids = await self.storage.distinct(SearchField.UNIPROT_ID, MATCH_ALL)

        return CatalogStatistics(
            overview=CatalogOverview(
                total_entries=total,
                verified_entries=verified,
                unique_diseases_count=len(diseases),
                unique_antibodies_count=len(antibodies),
                unique_antigens_count=len(antigens),
                unique_uniprot_ids_count=len([u for u in uniprot_ids if u is not None]),
            ),
            disease_breakdown=_top(diseases, TOP_DISEASES),
            top_antibodies=_top(antibodies, TOP_ANTIBODIES),
            top_antigens=_top(antigens, TOP_ANTIGENS),
        )
