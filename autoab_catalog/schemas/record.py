"""Catalog record schemas."""

import re
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNIPROT_PATTERN = re.compile(r"^[A-Z][0-9A-Z]{5}$")
UNIPROT_MULTIPLE = "Multiple"


class SearchField(str, Enum):
    """Fields a free-text search may target."""

    DISEASE = "disease"
    AUTOANTIBODY = "autoantibody"
    AUTOANTIGEN = "autoantigen"
    EPITOPE = "epitope"
    UNIPROT_ID = "uniprotId"


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC so that all values compare."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either case on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RecordMetadata(CamelModel):
    """Provenance information attached to a record."""

    source: str | None = None
    date_added: datetime | None = None
    last_updated: datetime | None = None
    verified: bool = False

    @field_validator("date_added", "last_updated")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class Record(CamelModel):
    """A disease / autoantibody / autoantigen catalog entry."""

    id: str = Field(..., description="Opaque storage-assigned identifier")
    disease: str = Field(..., description="Disease name")
    autoantibody: str = Field(..., description="Autoantibody name")
    autoantigen: str = Field(..., description="Target autoantigen")
    epitope: str | None = Field(None, description="Epitope, when known")
    uniprot_id: str | None = Field(
        None,
        description="UniProt accession, or 'Multiple' for several targets",
    )
    type: str | None = Field(None, description="Free-form category")
    additional: dict[str, str] = Field(
        default_factory=dict,
        description="Open-ended annotations; passed through untouched",
    )
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("disease", "autoantibody", "autoantigen")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("epitope", "type", mode="before")
    @classmethod
    def strip_optional(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("uniprot_id", mode="before")
    @classmethod
    def validate_uniprot(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        if not v:
            return None
        if v != UNIPROT_MULTIPLE and not UNIPROT_PATTERN.match(v):
            raise ValueError(f"Invalid UniProt ID format: {v!r}")
        return v

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @field_validator("additional", mode="before")
    @classmethod
    def stringify_additional(cls, v):
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(k): "" if val is None else str(val) for k, val in v.items()}
        return v

    def value_of(self, field: SearchField) -> str:
        """Return the text of a searchable field, absent values as ''."""
        return _FIELD_ACCESSORS[field](self) or ""


_FIELD_ACCESSORS = {
    SearchField.DISEASE: lambda r: r.disease,
    SearchField.AUTOANTIBODY: lambda r: r.autoantibody,
    SearchField.AUTOANTIGEN: lambda r: r.autoantigen,
    SearchField.EPITOPE: lambda r: r.epitope,
    SearchField.UNIPROT_ID: lambda r: r.uniprot_id,
}
