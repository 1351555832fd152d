"""owl2step CLI for local conversion and schema inspection.

Provides command-line interface for ifcOWL to STEP conversion, schema
version detection, and compiled schema caches. Rich output and logs go to
stderr; STEP text goes to the output file or stdout.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ifcschema.loader import cache_path, load_schema
from ifcschema.versions import KNOWN_VERSIONS, IfcVersionError, SchemaLoadError, get_version
from kernel.config import DEFAULT_INPUT_FORMAT, DEFAULT_SCHEMA_DIR, ConversionOptions
from kernel.convert import convert_file, convert_graph
from kernel.edges import EdgeStreamError, detect_schema_version
from kernel.encoder import ConversionError
from kernel.report import ConversionReport, dump_report

from .logging_setup import configure_logging, get_logger, log_context

logger = get_logger(__name__)

app = typer.Typer(
    name="owl2step",
    help="owl2step CLI for converting ifcOWL graphs into STEP files",
    add_completion=False,
)

console = Console(stderr=True)


def _display_error(message: str, error: Optional[Exception] = None) -> None:
    """Display error message with styling."""
    error_text = Text(f"❌ {message}", style="bold red")
    if error:
        error_text.append(f"\n   {str(error)}", style="red")
    console.print(Panel(error_text, title="Error", border_style="red"))


def _display_success(message: str) -> None:
    """Display success message with styling."""
    success_text = Text(f"✅ {message}", style="bold green")
    console.print(Panel(success_text, title="Success", border_style="green"))


def _display_warning(message: str) -> None:
    """Display warning message with styling."""
    warning_text = Text(f"⚠️  {message}", style="bold yellow")
    console.print(Panel(warning_text, title="Warning", border_style="yellow"))


def _setup_logging(verbose: bool) -> None:
    configure_logging(level="DEBUG" if verbose else "WARNING", enable_colors=True)


def _display_report(report: ConversionReport) -> None:
    table = Table(title="Conversion Report")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Schema Version", report.schema_version)
    table.add_row("Edges", str(report.edge_count))
    table.add_row("Instances", str(report.instance_count))
    table.add_row("Assigned IDs", str(report.assigned_ids))
    table.add_row("Warnings", str(len(report.warnings)))
    table.add_row("Errors", str(len(report.errors)))

    console.print(table)

    for warning in report.warnings:
        _display_warning(warning)
    for error in report.errors:
        _display_error(error)


SchemaDirOption = typer.Option(
    Path(DEFAULT_SCHEMA_DIR), "--schema-dir", envvar="OWL2STEP_SCHEMA_DIR",
    help="Directory holding the ifcOWL Turtle resources",
)
CacheDirOption = typer.Option(
    None, "--cache-dir", envvar="OWL2STEP_CACHE_DIR",
    help="Directory for compiled schema caches",
)
FormatOption = typer.Option(
    DEFAULT_INPUT_FORMAT, "--format", envvar="OWL2STEP_INPUT_FORMAT",
    help="Input graph format (turtle, nt, xml, ...)",
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable verbose output")


@app.command()
def convert(
    path: Path = typer.Argument(..., help="Path to ifcOWL graph file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output STEP file (stdout if omitted)"),
    format: str = FormatOption,
    schema_version: Optional[str] = typer.Option(
        None, "--schema-version", envvar="OWL2STEP_SCHEMA_VERSION",
        help="Schema version to use instead of the declared one",
    ),
    schema_dir: Path = SchemaDirOption,
    cache_dir: Optional[Path] = CacheDirOption,
    strict_version: bool = typer.Option(
        False, "--strict-version", envvar="OWL2STEP_STRICT_VERSION",
        help="Fail when the pinned version differs from the declared one",
    ),
    max_list_length: Optional[int] = typer.Option(
        None, "--max-list-length", envvar="OWL2STEP_MAX_LIST_LENGTH", min=1,
        help="Maximum number of cells walked per list",
    ),
    report_path: Optional[Path] = typer.Option(None, "--report", help="Write the conversion report as JSON"),
    verbose: bool = VerboseOption,
) -> None:
    """Convert an ifcOWL graph into a STEP physical file."""
    _setup_logging(verbose)

    options = ConversionOptions(
        schema_dir=schema_dir,
        cache_dir=cache_dir,
        input_format=format,
        schema_version=schema_version,
        strict_version=strict_version,
        max_list_length=max_list_length,
    )
    logger.info("CLI convert", **log_context(input=str(path), output=output and str(output), version=schema_version))

    try:
        if output is None:
            report = convert_graph(sys.stdout.buffer, location=path, options=options)
            sys.stdout.flush()
        else:
            console.print(f"🔄 Converting ifcOWL graph: {path}")
            report = convert_file(path, output, options)

    except SchemaLoadError as e:
        _display_error("Failed to load ifcOWL schema", e)
        raise typer.Exit(1)
    except IfcVersionError as e:
        _display_error("Cannot determine ifcOWL version", e)
        raise typer.Exit(1)
    except EdgeStreamError as e:
        _display_error("Failed to read ifcOWL graph", e)
        raise typer.Exit(1)
    except ConversionError as e:
        _display_error("Failed to write STEP output", e)
        raise typer.Exit(1)

    if report_path is not None:
        dump_report(report, report_path)

    if output is not None:
        _display_report(report)
        _display_success(f"STEP file written to: {output}")
    elif not report.is_clean:
        _display_warning(
            f"Conversion finished with {len(report.warnings)} warnings and {len(report.errors)} errors"
        )


@app.command()
def versions() -> None:
    """List the known ifcOWL schema versions."""
    table = Table(title="ifcOWL Versions")
    table.add_column("Label", style="cyan")
    table.add_column("STEP Schema", style="yellow")
    table.add_column("Ontology", style="white")

    for version in KNOWN_VERSIONS:
        table.add_row(version.label, version.schema_name, version.ontology_iri)

    console.print(table)


@app.command()
def detect(
    path: Path = typer.Argument(..., help="Path to ifcOWL graph file"),
    format: str = FormatOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print the ifcOWL version a graph declares."""
    _setup_logging(verbose)

    try:
        version = detect_schema_version(path, format=format)
    except IfcVersionError as e:
        _display_error("Cannot determine ifcOWL version", e)
        raise typer.Exit(1)
    except EdgeStreamError as e:
        _display_error("Failed to read ifcOWL graph", e)
        raise typer.Exit(1)

    typer.echo(version.label)
    console.print(f"STEP schema: {version.schema_name}")


@app.command("compile-schema")
def compile_schema(
    label: str = typer.Argument(..., help="ifcOWL version label, e.g. IFC4_ADD2"),
    schema_dir: Path = SchemaDirOption,
    cache_dir: Optional[Path] = typer.Option(
        None, "--cache-dir", envvar="OWL2STEP_CACHE_DIR",
        help="Directory for compiled schema caches (defaults to the schema directory)",
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Compile an ifcOWL schema and write its facts cache."""
    _setup_logging(verbose)

    target_dir = cache_dir or schema_dir
    try:
        version = get_version(label)
        target = cache_path(version, target_dir)
        if target.exists():
            target.unlink()
        facts = load_schema(version, schema_dir, target_dir)
    except IfcVersionError as e:
        _display_error(f"Failed to compile schema {label}", e)
        raise typer.Exit(1)

    stats = facts.stats()
    _display_success(f"Compiled {version.label} ({stats['entities']} entities) to: {target}")


@app.command("schema-info")
def schema_info(
    label: str = typer.Argument(..., help="ifcOWL version label, e.g. IFC4_ADD2"),
    schema_dir: Path = SchemaDirOption,
    cache_dir: Optional[Path] = CacheDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Display counts of the compiled facts of a schema version."""
    _setup_logging(verbose)

    try:
        version = get_version(label)
        facts = load_schema(version, schema_dir, cache_dir)
    except IfcVersionError as e:
        _display_error(f"Failed to load schema {label}", e)
        raise typer.Exit(1)

    table = Table(title=f"{version.label} Schema Facts")
    table.add_column("Fact", style="cyan")
    table.add_column("Count", style="yellow")

    table.add_row("STEP Schema", facts.schema_name)
    for name, count in facts.stats().items():
        table.add_row(name.replace("_", " ").title(), str(count))

    console.print(table)


if __name__ == "__main__":
    app()
