"""Response envelopes returned by the catalog endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from autoab_catalog.schemas.record import CamelModel, Record


class ErrorResponse(BaseModel):
    """Error response schema."""

    success: bool = False
    message: str
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    storage: str
    environment: str


class Pagination(CamelModel):
    """Page position within a filtered listing."""

    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class AppliedFilters(CamelModel):
    """Echo of the filters and sort actually applied to a listing."""

    search: str | None = None
    field: str | None = None
    disease: str | None = None
    autoantibody: str | None = None
    autoantigen: str | None = None
    epitope: str | None = None
    sort_by: str
    sort_order: str


class ListResult(BaseModel):
    """One page of records with its pagination block."""

    records: list[Record]
    pagination: Pagination


class EntryListResponse(CamelModel):
    success: bool = True
    data: list[Record]
    pagination: Pagination
    applied_filters: AppliedFilters


class EntryResponse(CamelModel):
    success: bool = True
    data: Record
    related_entries: list[Record] = Field(default_factory=list)


class RecordsResponse(CamelModel):
    """Plain record list with a count."""

    success: bool = True
    data: list[Record]
    count: int


class SimpleSearchResponse(RecordsResponse):
    search_term: str


class RankedRecord(Record):
    """A record annotated with its relevance score."""

    relevance_score: int


class SearchStats(CamelModel):
    """Aggregates over every ranked-search match, not just the returned page."""

    total_matches: int = 0
    unique_diseases_count: int = 0
    unique_antibodies_count: int = 0
    unique_antigens_count: int = 0


class RankedSearchResponse(CamelModel):
    success: bool = True
    data: list[RankedRecord]
    count: int
    search_term: str
    stats: SearchStats | None = None


class ValuesResponse(CamelModel):
    """Sorted distinct values of a field."""

    success: bool = True
    data: list[str]
    count: int
    applied_filters: dict[str, str | None] | None = None


class ValueCount(BaseModel):
    value: str
    count: int


class CatalogOverview(CamelModel):
    total_entries: int
    verified_entries: int
    unique_diseases_count: int
    unique_antibodies_count: int
    unique_antigens_count: int
    unique_uniprot_ids_count: int


class CatalogStatistics(CamelModel):
    overview: CatalogOverview
    disease_breakdown: list[ValueCount]
    top_antibodies: list[ValueCount]
    top_antigens: list[ValueCount]


class StatisticsResponse(BaseModel):
    success: bool = True
    data: CatalogStatistics


class ExportResponse(CamelModel):
    success: bool = True
    data: list[Record]
    count: int
    export_format: str
    applied_filters: dict[str, Any]
