"""Pydantic schemas for records, requests and responses."""

from autoab_catalog.schemas.query import (
    FACET_ORDER,
    FacetField,
    FacetRequest,
    FilterSet,
    PageRequest,
    SearchScope,
    SortField,
    SortOrder,
)
from autoab_catalog.schemas.record import Record, RecordMetadata, SearchField

__all__ = [
    "FACET_ORDER",
    "FacetField",
    "FacetRequest",
    "FilterSet",
    "PageRequest",
    "Record",
    "RecordMetadata",
    "SearchField",
    "SearchScope",
    "SortField",
    "SortOrder",
]
