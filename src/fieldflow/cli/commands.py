"""CLI commands for FieldFlow."""

from datetime import date
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..config import FieldFlowConfig, generate_default_config
from ..data.registry import WellRegistry
from ..records.schemas import RecordKind
from ..records.storage import MemoryBlobStore, RecordStore, SQLiteBlobStore

app = typer.Typer(
    name="fieldflow",
    help="Well registry and field inspection record capture",
    add_completion=False,
)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "-c", "--config",
        help="YAML config file (use 'fieldflow init' to generate template)",
        exists=True,
    )
]
WellsOption = Annotated[
    Optional[str],
    typer.Option(
        "--wells",
        help="Well master table path or URL (overrides config)",
    )
]
DbOption = Annotated[
    Optional[Path],
    typer.Option(
        "--db",
        help="Record database path (overrides config)",
    )
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "-v", "--verbose",
            help="Show debug logging",
        )
    ] = False,
) -> None:
    """Capture well inspection readings and export them as CSV."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(config: Path | None) -> FieldFlowConfig:
    """Load config file or use defaults, exiting on invalid values."""
    if not config:
        return FieldFlowConfig()
    try:
        return FieldFlowConfig.from_yaml(config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _open_registry(ff_config: FieldFlowConfig, wells: str | None) -> WellRegistry:
    """Create and load the well registry. A failed load leaves it empty."""
    registry = WellRegistry(
        source=wells or ff_config.registry.source,
        timeout=ff_config.registry.timeout,
        duplicate_policy=ff_config.registry.duplicate_policy,
        attendants=ff_config.roster.attendants,
    )
    if not registry.load():
        typer.echo(
            f"Warning: well registry unavailable ({registry.error}); "
            "well lookups will be blank",
            err=True,
        )
    return registry


def _open_store(ff_config: FieldFlowConfig, db: Path | None) -> RecordStore:
    if ff_config.storage.backend == "memory" and db is None:
        return RecordStore(MemoryBlobStore())
    return RecordStore(SQLiteBlobStore(db or ff_config.storage.path))


def _parse_kind(kind: str) -> RecordKind:
    try:
        return RecordKind.parse(kind)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "-o", "--output",
            help="Output file path",
        )
    ] = Path("fieldflow.yaml"),
) -> None:
    """Generate a default configuration file.

    Example:
        fieldflow init -o site.yaml
    """
    if output.exists():
        overwrite = typer.confirm(f"{output} already exists. Overwrite?")
        if not overwrite:
            raise typer.Exit(0)

    generate_default_config(output)
    typer.echo(f"Config file created: {output}")
    typer.echo("\nEdit this file to point at your well master table, then use:")
    typer.echo(f"  fieldflow wells --config {output}")


@app.command()
def wells(
    field: Annotated[
        Optional[str],
        typer.Argument(help="Field to list wells for (omit to list fields)"),
    ] = None,
    config: ConfigOption = None,
    wells_source: WellsOption = None,
    obs_only: Annotated[
        bool,
        typer.Option(
            "--obs",
            help="Only list observation wells",
        )
    ] = False,
) -> None:
    """List fields, or the wells of one field, from the well master table."""
    ff_config = _load_config(config)
    registry = _open_registry(ff_config, wells_source)

    if field is None:
        fields = registry.fields()
        typer.echo(f"Fields: {len(fields)}")
        for name in fields:
            typer.echo(f"  {name}: {len(registry.wells_in_field(name))} wells")
        if registry.duplicates:
            typer.echo(f"Duplicate field/well rows: {', '.join(registry.duplicates)}")
        return

    names = registry.observation_wells(field) if obs_only else registry.wells_in_field(field)
    if not names:
        typer.echo(f"No wells found for field '{field}'.")
        raise typer.Exit(1)

    for name in names:
        well = registry.lookup(field, name)
        typer.echo(f"  {name}: id={well.id} orifice={well.orifice_size:g}"
                   + (" obs" if well.is_observation else ""))


@app.command()
def record(
    kind: Annotated[
        str,
        typer.Argument(help="Record kind: daily_pressure, annual, shut_in, obs, well_status, daily_activity"),
    ],
    field: Annotated[
        Optional[str],
        typer.Option("-f", "--field", help="Field name"),
    ] = None,
    well: Annotated[
        Optional[str],
        typer.Option("-w", "--well", help="Well name"),
    ] = None,
    reading_date: Annotated[
        Optional[str],
        typer.Option("-d", "--date", help="Reading date YYYY-MM-DD (default: today)"),
    ] = None,
    attendant: Annotated[
        Optional[str],
        typer.Option("-a", "--attendant", help="Attendant name"),
    ] = None,
    values: Annotated[
        Optional[list[str]],
        typer.Option(
            "-s", "--set",
            help="Reading value as key=value (repeatable), e.g. -s psi=410",
        )
    ] = None,
    entries: Annotated[
        Optional[list[str]],
        typer.Option("--entry", help="Daily activity entry (repeatable)"),
    ] = None,
    config: ConfigOption = None,
    wells_source: WellsOption = None,
    db: DbOption = None,
) -> None:
    """Record a reading and append it to its collection.

    Example:
        fieldflow record daily_pressure -f Dixon -w "Cory 1" -s upstream=410 -s mcfhr=12.5
    """
    from ..records.builders import save

    record_kind = _parse_kind(kind)
    ff_config = _load_config(config)

    raw: dict[str, object] = {
        "date": reading_date or date.today().isoformat(),
        "attendant": attendant or "",
    }
    if field is not None:
        raw["field"] = field
    if well is not None:
        raw["well"] = well
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            typer.echo(f"Error: Invalid value '{item}'. Use key=value.", err=True)
            raise typer.Exit(1)
        raw[key.strip()] = value
    if entries:
        raw["entries"] = list(entries)

    if record_kind is not RecordKind.DAILY_ACTIVITY and not (field and well):
        typer.echo("Error: --field and --well are required for this record kind.", err=True)
        raise typer.Exit(1)

    registry = _open_registry(ff_config, wells_source)
    if attendant and attendant not in registry.attendants():
        typer.echo(f"Warning: '{attendant}' is not on the attendant roster", err=True)

    store = _open_store(ff_config, db)
    saved = save(record_kind, raw, registry, store)

    data = saved.to_dict()
    if saved.well_scoped and not data.get("well_id"):
        typer.echo(f"Warning: well '{field}|{well}' not found in registry", err=True)
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
    typer.echo(f"Saved {record_kind.value} record "
               f"({store.count(record_kind.collection_key)} stored)")


@app.command()
def export(
    kind: Annotated[
        str,
        typer.Argument(help="Record kind to export"),
    ],
    date_from: Annotated[
        Optional[str],
        typer.Option("--from", help="First date to include (YYYY-MM-DD)"),
    ] = None,
    date_to: Annotated[
        Optional[str],
        typer.Option("--to", help="Last date to include (YYYY-MM-DD)"),
    ] = None,
    field: Annotated[
        Optional[str],
        typer.Option("-f", "--field", help="Only export records for this field"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Output directory (overrides config)"),
    ] = None,
    config: ConfigOption = None,
    db: DbOption = None,
) -> None:
    """Export a record collection to CSV.

    Without --from/--to/--field every record is exported to
    <kind>_<today>.csv; otherwise to <kind>_<from|all>_to_<to|all>.csv.

    Example:
        fieldflow export annual --from 2024-01-01 --to 2024-06-30 -f Dixon
    """
    from ..export.csv_export import DirectorySink, RecordExporter

    record_kind = _parse_kind(kind)
    ff_config = _load_config(config)
    sink = DirectorySink(output or ff_config.export.output_dir)
    exporter = RecordExporter(_open_store(ff_config, db), sink)

    if date_from or date_to or field:
        result = exporter.export_range(record_kind, date_from, date_to, field)
    else:
        result = exporter.export_all(record_kind)

    typer.echo(f"Exported {result.row_count} records to {sink.output_dir / result.filename}")


@app.command()
def show(
    kind: Annotated[
        str,
        typer.Argument(help="Record kind to show"),
    ],
    date_from: Annotated[
        Optional[str],
        typer.Option("--from", help="First date to include (YYYY-MM-DD)"),
    ] = None,
    date_to: Annotated[
        Optional[str],
        typer.Option("--to", help="Last date to include (YYYY-MM-DD)"),
    ] = None,
    field: Annotated[
        Optional[str],
        typer.Option("-f", "--field", help="Only show records for this field"),
    ] = None,
    config: ConfigOption = None,
    db: DbOption = None,
) -> None:
    """Display stored records of one kind as a table."""
    from ..export.csv_export import RecordExporter

    record_kind = _parse_kind(kind)
    ff_config = _load_config(config)
    exporter = RecordExporter(_open_store(ff_config, db), sink=lambda name, data: None)

    df = exporter.to_dataframe(record_kind, date_from, date_to, field)
    if df.empty:
        typer.echo("No matching records found.")
        raise typer.Exit(0)

    typer.echo(df.to_string(index=False))
    typer.echo(f"\n{len(df)} record(s)")


if __name__ == "__main__":
    app()
