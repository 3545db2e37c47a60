from __future__ import annotations

import io
import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

import psycopg
import typer

from schemastats.catalog import Catalog, open_store
from schemastats.config import get_settings
from schemastats.domain.errors import SchemaStatsError
from schemastats.export import (
    dumps,
    export_filename,
    export_json,
    read_csv_rows,
    read_json_entries,
    statistics_json,
    write_csv,
)
from schemastats.reporter import (
    print_failures,
    print_import_report,
    print_records,
    print_schema,
    print_schemas,
    print_statistics,
)
from schemastats.storage.db_factory import check_connection
from schemastats.utils.logging import configure_logging

app = typer.Typer(help="Schema-driven records and descriptive statistics.")
schema_app = typer.Typer(help="Define and inspect schemas.")
record_app = typer.Typer(help="Enter, list and delete records.")
app.add_typer(schema_app, name="schema")
app.add_typer(record_app, name="record")


def parse_field_spec(spec: str) -> Dict[str, Any]:
    """
    Parse `name:type[:required][:options=a|b|c]` into a field definition.
    """
    parts = spec.split(":")
    if len(parts) < 2 or not parts[0].strip():
        raise typer.BadParameter(f"'{spec}' is not of the form name:type[:required][:options=a|b]")

    definition: Dict[str, Any] = {
        "name": parts[0].strip(),
        "type": parts[1].strip().lower(),
        "required": False,
    }
    for token in (p.strip() for p in parts[2:]):
        if token.lower() == "required":
            definition["required"] = True
        elif token.lower().startswith("options="):
            definition["options"] = token[len("options="):].split("|")
        elif token:
            raise typer.BadParameter(f"Unknown field flag '{token}' in '{spec}'")
    return definition


def parse_assignments(pairs: List[str]) -> Dict[str, str]:
    """Turn `key=value` arguments into a raw data mapping."""
    data: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{pair}'")
        data[key.strip()] = value
    return data


@contextmanager
def _catalog() -> Generator[Catalog, None, None]:
    try:
        catalog = Catalog(open_store())
    except (SchemaStatsError, ValueError) as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    try:
        yield catalog
    except SchemaStatsError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    finally:
        catalog.close()


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info(
    check: bool = typer.Option(False, "--check", help="Also verify the storage backend is usable."),
) -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    location = (
        f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
        if settings.storage_backend == "postgres"
        else str(settings.data_file)
    )
    typer.echo(
        f"backend={settings.storage_backend} ({location}) | "
        f"cache={'on' if settings.stats_cache_enabled else 'off'} "
        f"decimals={settings.display_decimals} log_level={settings.log_level}"
    )
    if not check:
        return

    try:
        if settings.storage_backend == "postgres":
            detail = f"server {check_connection()}"
        else:
            open_store().close()
            detail = "store readable"
    except (psycopg.Error, SchemaStatsError, ValueError) as exc:
        typer.secho(f"storage check failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    typer.echo(f"storage check ok ({detail})")


@schema_app.command("create")
def schema_create(
    name: str = typer.Argument(..., help="Human-readable schema name."),
    field: List[str] = typer.Option(
        ...,
        "--field",
        "-f",
        help="Field spec name:type[:required][:options=a|b|c]; repeat in column order.",
    ),
) -> None:
    """
    Create a schema from an ordered list of field specs.
    """
    definitions = [parse_field_spec(spec) for spec in field]
    with _catalog() as catalog:
        schema = catalog.create_schema(name, definitions)
        typer.echo(schema.id)


@schema_app.command("list")
def schema_list() -> None:
    """List all schemas."""
    with _catalog() as catalog:
        print_schemas(catalog.list_schemas())


@schema_app.command("show")
def schema_show(schema_id: str = typer.Argument(..., help="Schema identifier.")) -> None:
    """Show the field list of a schema."""
    with _catalog() as catalog:
        print_schema(catalog.get_schema(schema_id))


@schema_app.command("delete")
def schema_delete(
    schema_id: str = typer.Argument(..., help="Schema identifier."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete a schema together with all of its records."""
    if not yes:
        typer.confirm(f"Delete schema {schema_id} and all its records?", abort=True)
    with _catalog() as catalog:
        removed = catalog.delete_schema(schema_id)
        typer.echo(f"Schema deleted ({removed} records removed).")


@record_app.command("add")
def record_add(
    schema_id: str = typer.Argument(..., help="Schema identifier."),
    values: Optional[List[str]] = typer.Argument(None, help="Field values as key=value."),
    data_json: Optional[str] = typer.Option(
        None, "--json", help="Record data as a JSON object (merged under key=value pairs)."
    ),
) -> None:
    """
    Validate and store one record.
    """
    raw: Dict[str, Any] = {}
    if data_json:
        try:
            loaded = json.loads(data_json)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"--json is not valid JSON: {exc}") from exc
        if not isinstance(loaded, dict):
            raise typer.BadParameter("--json must be a JSON object")
        raw.update(loaded)
    raw.update(parse_assignments(values or []))

    with _catalog() as catalog:
        submission = catalog.submit_record(schema_id, raw)
        if not submission.ok:
            print_failures(submission.failures)
            raise typer.Exit(code=1)
        typer.echo(submission.record.id)


@record_app.command("list")
def record_list(schema_id: str = typer.Argument(..., help="Schema identifier.")) -> None:
    """List the records of a schema."""
    with _catalog() as catalog:
        schema = catalog.get_schema(schema_id)
        print_records(schema, catalog.list_records(schema_id))


@record_app.command("delete")
def record_delete(
    record_id: str = typer.Argument(..., help="Record identifier."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete one record."""
    if not yes:
        typer.confirm(f"Delete record {record_id}?", abort=True)
    with _catalog() as catalog:
        catalog.delete_record(record_id)
        typer.echo("Entry deleted successfully.")


@app.command()
def stats(
    schema_id: str = typer.Argument(..., help="Schema identifier."),
    as_json: bool = typer.Option(False, "--json", help="Print the summaries as JSON."),
) -> None:
    """
    Compute descriptive statistics of every numeric field.
    """
    settings = get_settings()
    with _catalog() as catalog:
        schema = catalog.get_schema(schema_id)
        summaries = catalog.statistics(schema_id)
    if as_json:
        typer.echo(dumps(statistics_json(summaries)))
    else:
        print_statistics(schema, summaries, decimals=settings.display_decimals)


@app.command("export")
def export_(
    schema_id: str = typer.Argument(..., help="Schema identifier."),
    fmt: str = typer.Option("csv", "--format", help="csv or json."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Destination file or directory (default: stdout)."
    ),
) -> None:
    """
    Export the records of a schema as CSV or JSON.
    """
    fmt = fmt.lower()
    if fmt not in ("csv", "json"):
        raise typer.BadParameter("--format must be csv or json")

    with _catalog() as catalog:
        schema = catalog.get_schema(schema_id)
        records = catalog.list_records(schema_id)

    if fmt == "csv":
        buffer = io.StringIO()
        write_csv(schema, records, buffer)
        content = buffer.getvalue()
    else:
        content = dumps(export_json(schema, records)) + "\n"

    if output is None:
        typer.echo(content, nl=False)
        return
    if output.is_dir():
        output = output / export_filename(schema, fmt)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    typer.echo(f"Exported {len(records)} entries -> {output}")


@app.command("import")
def import_(
    schema_id: str = typer.Argument(..., help="Schema identifier."),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV or JSON file."),
) -> None:
    """
    Import records from a CSV or JSON export; every row is validated.

    Exits with code 1 when at least one row was rejected.
    """
    with path.open("r", encoding="utf-8", newline="") as f:
        if path.suffix.lower() == ".json":
            try:
                rows = read_json_entries(json.load(f))
            except (json.JSONDecodeError, ValueError) as exc:
                raise typer.BadParameter(f"Cannot read {path}: {exc}") from exc
        else:
            rows = list(read_csv_rows(f))

    with _catalog() as catalog:
        report = catalog.import_rows(schema_id, rows)
    print_import_report(report)
    if report.rejected:
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
