"""CSV rendering of catalog records."""

from datetime import datetime, timezone

from autoab_catalog.schemas.record import Record

CSV_HEADERS = (
    "Disease",
    "Autoantibody",
    "Autoantigen",
    "Epitope",
    "UniProt ID",
    "Date Added",
    "Last Updated",
    "Verified",
)

EXPORT_FILENAME = "disease_database.csv"


def escape_csv(value: str | None) -> str:
    """Quote a field only when it contains a comma, quote or newline."""
    if not value:
        return ""
    text = str(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def format_date(value: datetime | None) -> str:
    """Render a timestamp as its UTC calendar day."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def record_to_row(record: Record) -> str:
    date_added = record.created_at or record.metadata.date_added
    fields = [
        escape_csv(record.disease),
        escape_csv(record.autoantibody),
        escape_csv(record.autoantigen),
        escape_csv(record.epitope),
        escape_csv(record.uniprot_id),
        format_date(date_added),
        format_date(record.metadata.last_updated),
        "Yes" if record.metadata.verified else "No",
    ]
    return ",".join(fields)


def records_to_csv(records: list[Record]) -> str:
    """Render *records* as CSV text; an empty list yields an empty string.

    Rows are joined with a bare newline and there is no trailing newline.
    """
    if not records:
        return ""
    lines = [",".join(CSV_HEADERS)]
    lines.extend(record_to_row(r) for r in records)
    return "\n".join(lines)
