"""Data export endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from autoab_catalog.query.paging import parse_int
from autoab_catalog.schemas.responses import ExportResponse
from autoab_catalog.services.catalog_service import CatalogService, get_catalog_service
from autoab_catalog.services.export import EXPORT_FILENAME, records_to_csv

router = APIRouter(prefix="/export", tags=["Data Export"])


def _to_csv(text: str, filename: str) -> StreamingResponse:
    """Wrap rendered CSV text in a download response."""
    return StreamingResponse(
        iter([text]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("", response_model=None)
async def export_entries(
    format: str = Query("json", pattern="^(csv|json)$"),
    disease: Annotated[str | None, Query(description="Disease contains")] = None,
    autoantibody: Annotated[str | None, Query(description="Autoantibody contains")] = None,
    autoantigen: Annotated[str | None, Query(description="Autoantigen contains")] = None,
    limit: Annotated[
        str | None, Query(description="Maximum rows; ignored unless a positive integer, capped at 10000")
    ] = None,
    service: CatalogService = Depends(get_catalog_service),
) -> ExportResponse | StreamingResponse:
    """
    Export catalog entries sorted by disease then autoantibody.

    Args:
        format: 'json' or 'csv'
        disease, autoantibody, autoantigen: contains-filters
        limit: optional row cap
    """
    records = await service.export_entries(
        disease=disease, autoantibody=autoantibody, autoantigen=autoantigen, limit=limit
    )

    if format == "csv":
        return _to_csv(records_to_csv(records), EXPORT_FILENAME)

    return ExportResponse(
        data=records,
        count=len(records),
        export_format=format,
        applied_filters={
            "disease": disease,
            "autoantibody": autoantibody,
            "autoantigen": autoantigen,
            "limit": parse_int(limit),
        },
    )
