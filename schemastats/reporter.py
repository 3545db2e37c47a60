from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from schemastats.catalog import ImportReport
from schemastats.domain.errors import FieldFailure
from schemastats.domain.models import Record, Schema
from schemastats.statistics import FieldSummary

_SUMMARY_COLUMNS = (
    ("Count", "count"),
    ("Mean", "mean"),
    ("Median", "median"),
    ("Min", "min"),
    ("Max", "max"),
    ("Std Dev", "standard_deviation"),
    ("Variance", "variance"),
)


def _console(console: Optional[Console]) -> Console:
    return console or Console()


def print_schemas(schemas: Sequence[Schema], console: Optional[Console] = None) -> None:
    """Render the schema catalog, oldest first."""
    console = _console(console)
    if not schemas:
        console.print("[yellow]No schemas defined.[/yellow]")
        return

    table = Table(title="Schemas", box=box.ROUNDED)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Fields", justify="right", style="magenta")
    table.add_column("Created", style="dim")
    for schema in schemas:
        table.add_row(
            schema.id,
            escape(schema.name),
            str(len(schema.fields)),
            schema.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


def print_schema(schema: Schema, console: Optional[Console] = None) -> None:
    """Render the field list of one schema."""
    console = _console(console)
    table = Table(title=f"{escape(schema.name)} [dim]({schema.id})[/dim]", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Required", justify="center")
    table.add_column("Options")
    for position, descriptor in enumerate(schema.fields, start=1):
        table.add_row(
            str(position),
            escape(descriptor.name),
            descriptor.type.value,
            "[red]*[/red]" if descriptor.required else "",
            escape(", ".join(descriptor.options or ())),
        )
    console.print(table)


def print_records(
    schema: Schema, records: Sequence[Record], console: Optional[Console] = None
) -> None:
    """Render records as a table with one column per schema field."""
    console = _console(console)
    if not records:
        console.print("[yellow]No records yet.[/yellow]")
        return

    table = Table(
        title=f"Records - {escape(schema.name)}",
        box=box.ROUNDED,
        caption=f"Total entries: {len(records)}",
    )
    table.add_column("ID", style="cyan", no_wrap=True)
    for name in schema.field_names:
        table.add_column(escape(name))
    for record in records:
        data = record.plain_data()
        table.add_row(record.id, *[_cell(data.get(name)) for name in schema.field_names])
    console.print(table)


def _cell(value: object) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return escape(str(value))


def print_statistics(
    schema: Schema,
    summaries: Mapping[str, FieldSummary],
    decimals: int = 2,
    console: Optional[Console] = None,
) -> None:
    """
    Render per-field summaries; floats rounded to `decimals` places.
    """
    console = _console(console)
    if not summaries:
        console.print("[yellow]No numerical data found for statistical analysis.[/yellow]")
        return

    table = Table(title=f"Statistical Analysis - {escape(schema.name)}", box=box.ROUNDED)
    table.add_column("Field", style="cyan", no_wrap=True)
    for header, _ in _SUMMARY_COLUMNS:
        table.add_column(header, justify="right", style="green" if header != "Count" else "magenta")

    for name, summary in summaries.items():
        cells: List[str] = []
        for _, attr in _SUMMARY_COLUMNS:
            value = getattr(summary, attr)
            cells.append(str(value) if attr == "count" else f"{value:,.{decimals}f}")
        table.add_row(escape(name), *cells)
    console.print(table)


def print_failures(
    failures: Iterable[FieldFailure],
    title: str = "Validation failed",
    console: Optional[Console] = None,
) -> None:
    """Render a field-by-field correction list."""
    console = _console(console)
    table = Table(title=f"[red]{escape(title)}[/red]", box=box.ROUNDED)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Reason", style="red")
    table.add_column("Value")
    for failure in failures:
        table.add_row(
            escape(failure.field_name),
            failure.reason.value,
            "" if failure.raw_value is None else escape(repr(failure.raw_value)),
        )
    console.print(table)


def print_import_report(report: ImportReport, console: Optional[Console] = None) -> None:
    console = _console(console)
    console.print(
        f"Imported [green]{len(report.accepted)}[/green] of {report.total} rows"
        + (f", [red]{len(report.rejected)} rejected[/red]" if report.rejected else "")
    )
    for rejected in report.rejected:
        print_failures(rejected.failures, title=f"Row {rejected.row_number}", console=console)
