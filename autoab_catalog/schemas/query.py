"""Transient request value objects for queries, facets and paging."""

from enum import Enum

from pydantic import BaseModel, Field

from autoab_catalog.schemas.record import SearchField


class SearchScope(str, Enum):
    """Target of a free-text search: one field, or all of them."""

    ALL = "all"
    DISEASE = "disease"
    AUTOANTIBODY = "autoantibody"
    AUTOANTIGEN = "autoantigen"
    EPITOPE = "epitope"
    UNIPROT_ID = "uniprotId"

    def as_field(self) -> SearchField | None:
        """The single field this scope names, or None for ALL."""
        if self is SearchScope.ALL:
            return None
        return SearchField(self.value)


class FacetField(str, Enum):
    """Fields enumerable as cascading facets, in dependency order."""

    DISEASE = "disease"
    AUTOANTIBODY = "autoantibody"
    AUTOANTIGEN = "autoantigen"
    EPITOPE = "epitope"


FACET_ORDER: tuple[FacetField, ...] = (
    FacetField.DISEASE,
    FacetField.AUTOANTIBODY,
    FacetField.AUTOANTIGEN,
    FacetField.EPITOPE,
)


class SortField(str, Enum):
    """Whitelisted sort keys."""

    DISEASE = "disease"
    AUTOANTIBODY = "autoantibody"
    AUTOANTIGEN = "autoantigen"
    EPITOPE = "epitope"
    UNIPROT_ID = "uniprotId"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterSet(BaseModel):
    """Free-text search plus structured per-field filters for one request."""

    search: str | None = None
    field: SearchScope = SearchScope.ALL
    disease: str | None = None
    autoantibody: str | None = None
    autoantigen: str | None = None
    epitope: str | None = None


class FacetRequest(BaseModel):
    """Values already chosen upstream of a facet."""

    target_field: FacetField
    disease: str | None = None
    autoantibody: str | None = None
    autoantigen: str | None = None


class PageRequest(BaseModel):
    """Normalised pagination and sort parameters."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: SortField = SortField.DISEASE
    sort_order: SortOrder = SortOrder.ASC

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit
