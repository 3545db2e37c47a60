"""
CSV and JSON export/import of a schema's records.

Exports keep the column order of the schema and camelCase JSON keys
(`schemaId`, `createdAt`, `standardDeviation`), so files
produced here line up with earlier exports. Imports only read raw values; they
are validated by `Catalog.import_rows` like any other submission.
"""

from __future__ import annotations

import csv
import json
import re
from typing import IO, Any, Dict, Iterable, Iterator, List, Mapping, Optional

from schemastats.domain.models import Record, Schema
from schemastats.statistics import FieldSummary


def export_filename(schema: Schema, fmt: str) -> str:
    """`<schema name>_export.<fmt>` with filesystem-unfriendly characters replaced."""
    safe = re.sub(r"[^\w.-]+", "_", schema.name).strip("_") or "schema"
    return f"{safe}_export.{fmt}"


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def write_csv(schema: Schema, records: Iterable[Record], stream: IO[str]) -> int:
    """
    Write records as CSV, one column per schema field in schema order.

    Returns the number of data rows written.
    """
    writer = csv.writer(stream)
    writer.writerow(schema.field_names)
    rows = 0
    for record in records:
        data = record.plain_data()
        writer.writerow([_format_cell(data.get(name)) for name in schema.field_names])
        rows += 1
    return rows


def _schema_document(schema: Schema) -> Dict[str, Any]:
    return {
        "id": schema.id,
        "name": schema.name,
        "fields": [f.model_dump(mode="json", exclude_none=True) for f in schema.fields],
        "createdAt": schema.created_at.isoformat(),
    }


def _entry_document(record: Record) -> Dict[str, Any]:
    return {
        "id": record.id,
        "schemaId": record.schema_id,
        "data": record.plain_data(),
        "createdAt": record.created_at.isoformat(),
    }


def export_json(schema: Schema, records: Iterable[Record]) -> Dict[str, Any]:
    """Build the `{"schema": ..., "entries": [...]}` export document."""
    return {
        "schema": _schema_document(schema),
        "entries": [_entry_document(record) for record in records],
    }


def statistics_json(summaries: Mapping[str, FieldSummary]) -> Dict[str, Dict[str, Any]]:
    """Field name to camelCase summary dict."""
    return {name: summary.to_dict() for name, summary in summaries.items()}


def dumps(document: Any) -> str:
    return json.dumps(document, indent=2)


def read_csv_rows(stream: IO[str]) -> Iterator[Dict[str, Optional[str]]]:
    """
    Yield each CSV data row as a field-name mapping of raw strings.

    Empty cells come back as empty strings, which validation treats as absent.
    """
    reader = csv.DictReader(stream)
    for row in reader:
        yield {key: value for key, value in row.items() if key is not None}


def read_json_entries(document: Any) -> List[Mapping[str, Any]]:
    """
    Extract raw data mappings from a JSON export.

    Accepts a full export document (`{"entries": [{"data": {...}}]}`), a bare
    list of entries, or a bare list of data mappings.
    """
    if isinstance(document, Mapping):
        entries = document.get("entries", [])
    elif isinstance(document, list):
        entries = document
    else:
        raise ValueError("JSON import expects an export document or a list of entries")

    payloads: List[Mapping[str, Any]] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ValueError(f"JSON import entries must be objects, got {type(entry).__name__}")
        data = entry.get("data", entry)
        if isinstance(data, str):
            data = json.loads(data)
        payloads.append(data)
    return payloads


__all__ = [
    "dumps",
    "export_filename",
    "export_json",
    "read_csv_rows",
    "read_json_entries",
    "statistics_json",
    "write_csv",
]
