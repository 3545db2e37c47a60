"""
Synthetic data generation for schema-stats.

Writes deterministic pseudo-random rows for a schema to CSV and, unless
--no-load is given, creates the schema in the configured store and imports the
rows through the regular validation path. A --dirty-ratio injects unparseable
numbers, which validation rejects on load.
"""

from __future__ import annotations

import csv
import json
import random
import sys
import tempfile
import time
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, List, Sequence

import typer

from schemastats.catalog import Catalog, open_store
from schemastats.export import read_csv_rows

app = typer.Typer(help="Generate synthetic records as CSV and optionally load them.")

DEMO_FIELDS: List[Dict[str, Any]] = [
    {"name": "age", "type": "number", "required": True},
    {"name": "score", "type": "number"},
    {"name": "group", "type": "select", "options": ["control", "treatment"], "required": True},
    {"name": "visit_date", "type": "date"},
    {"name": "notes", "type": "text"},
]

_WORDS = ["steady", "improved", "relapsed", "follow-up", "baseline", "n/a"]
_JUNK = ["n/a", "oops", "?", "--"]


def _load_fields(schema_path: Path | None) -> List[Dict[str, Any]]:
    if schema_path is None:
        return DEMO_FIELDS
    with schema_path.open("r", encoding="utf-8") as f:
        document = json.load(f)
    if isinstance(document, dict):
        document = document.get("schema", document).get("fields", [])
    return list(document)


def _fake_value(field: Dict[str, Any], rng: random.Random, dirty_ratio: float) -> str:
    kind = field.get("type", "text")
    if kind == "number":
        if dirty_ratio and rng.random() < dirty_ratio:
            return rng.choice(_JUNK)
        return f"{rng.gauss(50, 15):.2f}"
    if kind == "select":
        return rng.choice(list(field["options"]))
    if kind == "date":
        return (date(2024, 1, 1) + timedelta(days=rng.randint(0, 365))).isoformat()
    return rng.choice(_WORDS)


def _generate_rows_csv(
    csv_path: Path,
    fields: Sequence[Dict[str, Any]],
    rows: int,
    seed: int,
    dirty_ratio: float = 0.0,
) -> None:
    rng = random.Random(seed)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([field["name"] for field in fields])
        for _ in range(rows):
            writer.writerow([_fake_value(field, rng, dirty_ratio) for field in fields])


def _load_into_store(name: str, fields: Sequence[Dict[str, Any]], csv_path: Path) -> str:
    with Catalog(open_store()) as catalog:
        schema = catalog.create_schema(name, fields)
        with csv_path.open("r", encoding="utf-8", newline="") as f:
            report = catalog.import_rows(schema.id, read_csv_rows(f))
    typer.echo(
        f"Schema {schema.id}: {len(report.accepted)} rows stored, {len(report.rejected)} rejected"
    )
    return schema.id


@app.command()
def main(
    rows: int = typer.Option(100, "--rows", "-r", help="Number of rows to generate."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    schema_file: Path | None = typer.Option(
        None,
        "--schema",
        help="JSON file with a field list or an export document (default: demo schema).",
    ),
    name: str = typer.Option("Demo Survey", "--name", help="Schema name used when loading."),
    dirty_ratio: float = typer.Option(
        0.0, "--dirty-ratio", min=0.0, max=1.0, help="Share of numeric cells replaced by junk."
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into the configured store.",
    ),
) -> None:
    """
    Generate synthetic records and optionally load them into the store.
    """
    start = time.perf_counter()
    fields = _load_fields(schema_file)
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="schemastats_csv_"))
        csv_path = tmpdir / "records.csv"

    typer.echo(f"Generating {rows:,} rows -> {csv_path} (seed={seed}, dirty={dirty_ratio})")
    _generate_rows_csv(csv_path, fields, rows=rows, seed=seed, dirty_ratio=dirty_ratio)
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    _load_into_store(name, fields, csv_path)


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
