"""Catalog entry endpoints: listing, search, facets and statistics."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from autoab_catalog.schemas.responses import (
    EntryListResponse,
    EntryResponse,
    RankedSearchResponse,
    RecordsResponse,
    SimpleSearchResponse,
    StatisticsResponse,
    ValuesResponse,
)
from autoab_catalog.services.catalog_service import CatalogService, get_catalog_service

router = APIRouter(prefix="/entries", tags=["Entries"])


@router.get("", response_model=EntryListResponse)
async def list_entries(
    search: Annotated[str | None, Query(description="Free-text search term")] = None,
    field: Annotated[
        str | None,
        Query(description="Field to search: all, disease, autoantibody, autoantigen, epitope, uniprotId"),
    ] = None,
    disease: Annotated[str | None, Query(description="Disease contains")] = None,
    autoantibody: Annotated[str | None, Query(description="Autoantibody contains")] = None,
    autoantigen: Annotated[str | None, Query(description="Autoantigen contains")] = None,
    epitope: Annotated[str | None, Query(description="Epitope contains")] = None,
    sort_by: Annotated[str | None, Query(alias="sortBy", description="Sort field")] = None,
    sort_order: Annotated[
        str | None, Query(alias="sortOrder", description="asc or desc")
    ] = None,
    page: Annotated[str | None, Query(description="Page number (1-based)")] = None,
    limit: Annotated[str | None, Query(description="Results per page (1-100)")] = None,
    service: CatalogService = Depends(get_catalog_service),
) -> EntryListResponse:
    """List catalog entries with search, per-field filters, sorting and paging.

    Unknown ``sortBy`` values fall back to ``disease``.  ``page`` and
    ``limit`` that are missing, unparsable or zero take their defaults (1 and
    10); ``limit`` is then clamped to [1, 100].

    **Examples:**
    - `GET /api/v1/entries?search=lupus` - any field contains "lupus"
    - `GET /api/v1/entries?disease=sle&autoantigen=dna&sortBy=autoantibody`
    """
    result, applied = await service.list_entries(
        search=search,
        field=field,
        disease=disease,
        autoantibody=autoantibody,
        autoantigen=autoantigen,
        epitope=epitope,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return EntryListResponse(
        data=result.records,
        pagination=result.pagination,
        applied_filters=applied,
    )


@router.get("/search", response_model=SimpleSearchResponse)
async def search_entries(
    q: Annotated[str | None, Query(description="Search term")] = None,
    field: Annotated[str | None, Query(description="Field to search (default all)")] = None,
    limit: Annotated[str | None, Query(description="Maximum results (default 20)")] = None,
    service: CatalogService = Depends(get_catalog_service),
) -> SimpleSearchResponse:
    """Unranked search, sorted by disease then autoantibody."""
    term, records = await service.search_entries(q, field=field, limit=limit)
    return SimpleSearchResponse(data=records, count=len(records), search_term=term)


@router.get("/search/advanced", response_model=RankedSearchResponse)
async def advanced_search(
    q: Annotated[str | None, Query(description="Search term, at least 2 characters")] = None,
    limit: Annotated[str | None, Query(description="Maximum results (default 50)")] = None,
    include_stats: Annotated[
        bool, Query(alias="includeStats", description="Add statistics over all matches")
    ] = False,
    service: CatalogService = Depends(get_catalog_service),
) -> RankedSearchResponse:
    """Relevance-ranked search across every searchable field.

    Each match scores disease 10, autoantibody 8, autoantigen 6, epitope 4
    and UniProt ID 2; results are ordered by score, then disease.
    """
    term, ranked, stats = await service.advanced_search(
        q, limit=limit, include_stats=include_stats
    )
    return RankedSearchResponse(data=ranked, count=len(ranked), search_term=term, stats=stats)


@router.get("/disease/{disease}", response_model=RecordsResponse)
async def entries_by_disease(
    disease: str,
    service: CatalogService = Depends(get_catalog_service),
) -> RecordsResponse:
    """Entries whose disease contains the given text."""
    records = await service.entries_by_disease(disease)
    return RecordsResponse(data=records, count=len(records))


@router.get("/uniprot/{uniprot_id}", response_model=RecordsResponse)
async def entries_by_uniprot(
    uniprot_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> RecordsResponse:
    """Entries with exactly this UniProt accession (case-insensitive)."""
    records = await service.entries_by_uniprot(uniprot_id)
    return RecordsResponse(data=records, count=len(records))


@router.get("/unique/{field}", response_model=ValuesResponse)
async def unique_values(
    field: str,
    service: CatalogService = Depends(get_catalog_service),
) -> ValuesResponse:
    values = await service.unique_values(field)
    return ValuesResponse(data=values, count=len(values))


@router.get("/unique-filtered/{field}", response_model=ValuesResponse)
async def filtered_unique_values(
    field: str,
    disease: Annotated[str | None, Query(description="Chosen disease")] = None,
    autoantibody: Annotated[str | None, Query(description="Chosen autoantibody")] = None,
    autoantigen: Annotated[str | None, Query(description="Chosen autoantigen")] = None,
    service: CatalogService = Depends(get_catalog_service),
) -> ValuesResponse:
    """Cascading facet values.

    Only selections made for facets earlier in the order disease,
    autoantibody, autoantigen, epitope narrow the result.  Epitope values
    are returned only once something upstream is chosen.
    """
    values = await service.filtered_unique_values(
        field, disease=disease, autoantibody=autoantibody, autoantigen=autoantigen
    )
    return ValuesResponse(
        data=values,
        count=len(values),
        applied_filters={
            "disease": disease,
            "autoantibody": autoantibody,
            "autoantigen": autoantigen,
        },
    )


@router.get("/additional/keys", response_model=ValuesResponse)
async def additional_keys(
    service: CatalogService = Depends(get_catalog_service),
) -> ValuesResponse:
    keys = await service.additional_keys()
    return ValuesResponse(data=keys, count=len(keys))


@router.get("/statistics/overview", response_model=StatisticsResponse)
async def statistics_overview(
    service: CatalogService = Depends(get_catalog_service),
) -> StatisticsResponse:
    """Catalog totals plus the most frequent diseases, antibodies and antigens."""
    return StatisticsResponse(data=await service.statistics())


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(
    entry_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> EntryResponse:
    """A single entry with up to five related entries."""
    record, related = await service.get_entry(entry_id)
    return EntryResponse(data=record, related_entries=related)
