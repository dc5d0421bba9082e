# src/imarchive/cli/main_cli.py
"""
Top-level CLI: insert, query, extract, delete and inspect experiments.

The numeric selectors still work: ``imarchive 1`` is ``insert``,
``2`` is ``query``, ``3`` is ``extract`` and ``4`` is ``delete``.
"""

import contextlib
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from imarchive.agents.labeler import labeler_from_settings
from imarchive.cli import setup_logging
from imarchive.core.config import get_settings
from imarchive.core.errors import ArchiveError, InvalidMetadataChoice
from imarchive.core.utils import display_text
from imarchive.metadata.resolver import MENU, MetadataChoice, MetadataSelection, fixed_selection
from imarchive.schemas.db_objects import ExperimentRead
from imarchive.services.experiment_service import ExperimentService

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="imarchive: archive experiment images into containers indexed by a catalog")

SELECTORS = {"1": "insert", "2": "query", "3": "extract", "4": "delete"}

USAGE = (
    "Usage: Pass in a flag 1, 2, 3, 4 to make a choice.\n"
    "1.) Insert Data\n2.) Query Data\n3.) Extract Data\n4.) Delete Data"
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Archive experiment images into self-describing containers."""
    setup_logging(verbose)


@contextlib.contextmanager
def _errors_exit():
    """Report imarchive errors on stderr and exit with status 1."""
    try:
        yield
    except ArchiveError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)


@contextlib.contextmanager
def _open_service(with_labeler: bool = False):
    settings = get_settings()
    labeler = None
    if with_labeler:
        try:
            labeler = labeler_from_settings(settings)
        except (ImportError, ValueError) as e:
            err_console.print(f"[bold red]Error setting up the AI labeler:[/bold red] {e}")
            raise typer.Exit(code=1)
    service = ExperimentService.from_settings(settings, labeler=labeler)
    with _errors_exit():
        service.catalog.open()
    try:
        yield service
    finally:
        service.catalog.close()


def print_experiments(experiments: List[ExperimentRead]) -> None:
    if not experiments:
        console.print("[yellow]No experiments in the database.[/yellow]")
        return
    table = Table(title="Experiments")
    table.add_column("Author Name", style="cyan")
    table.add_column("Experiment Name", style="green")
    table.add_column("Archive Path")
    table.add_column("MetaData", style="magenta")
    for experiment in experiments:
        table.add_row(
            escape(experiment.author),
            escape(experiment.name),
            escape(experiment.archive_path),
            escape(experiment.metadata),
        )
    console.print(table)


def prompt_metadata_selection() -> MetadataSelection:
    """Ask until a valid metadata option is picked."""
    console.print("\n[bold yellow]Metadata File Not Found![/bold yellow]\nSelect an option below:")
    console.print(MENU)
    while True:
        raw = typer.prompt("Choice")
        try:
            choice = MetadataChoice.parse(raw)
        except InvalidMetadataChoice as e:
            err_console.print(f"[red]{escape(str(e))}[/red]")
            continue
        custom_text = ""
        if choice is MetadataChoice.CUSTOM:
            custom_text = typer.prompt("Enter custom metadata content", default="", show_default=False)
        return MetadataSelection(choice, custom_text)


@app.command()
def insert(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Experiment name (must be unique)"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author name"),
    source: Optional[Path] = typer.Option(None, "--source", "-s", help="Directory containing the raw images"),
    metadata: Optional[str] = typer.Option(
        None, "--metadata", "-m", help="Used when metadata.txt is missing: empty, ai or custom (or 1, 2, 3)"
    ),
    custom_text: str = typer.Option("", "--custom-text", help="Metadata text for --metadata custom"),
):
    """Pack a directory of images into a new archive and catalog it."""
    selector = prompt_metadata_selection
    if metadata is not None:
        with _errors_exit():
            selector = fixed_selection(metadata, custom_text)

    with _open_service(with_labeler=True) as service:
        name = name or typer.prompt("Enter Experiment Name")
        if service.exists(name):
            err_console.print(f"[bold red]Experiment '{escape(name)}' already exists in the database![/bold red]")
            raise typer.Exit(code=1)
        author = author if author is not None else typer.prompt("Enter Author Name")
        source = source or Path(typer.prompt("Enter path to the directory containing raw images"))

        with _errors_exit():
            experiment = service.insert(name, author, source, selector)

    if experiment.metadata:
        console.print(f"\n[bold]Metadata Content:[/bold]\n{escape(experiment.metadata)}")
    console.print(f"\n[bold green]Archive File Location:[/bold green] {experiment.archive_path}")


@app.command()
def query():
    """List every experiment in the catalog."""
    with _open_service() as service:
        print_experiments(service.query())


@app.command()
def extract(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Experiment to extract"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output root (default from settings)"),
):
    """Recreate an experiment's images and metadata.txt from its archive."""
    with _open_service() as service:
        print_experiments(service.query())
        name = name or typer.prompt("Enter Experiment Name to Extract Images")
        with _errors_exit():
            console.print(f"Archive File Path: {service.catalog.select_path(name)}\n")
            written = service.extract(name, output)

    for problem in service.reader.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {problem}")
    for path in written:
        console.print(f"  {path}")
    if written:
        console.print(f"\n[bold green]Images Recreated at:[/bold green] {written[0].parent}")


@app.command()
def delete(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Experiment to delete"),
):
    """Remove an experiment from the catalog together with its archive."""
    with _open_service() as service:
        print_experiments(service.query())
        name = name or typer.prompt("Enter Experiment Name to Delete")
        if not service.exists(name):
            err_console.print("[bold red]Experiment Does Not Exist![/bold red]")
            raise typer.Exit(code=1)
        with _errors_exit():
            service.delete(name)
    console.print(f"[bold green]Experiment '{escape(name)}' Deleted Successfully![/bold green]")


@app.command()
def inspect(
    name: str = typer.Argument(..., help="Experiment to inspect"),
):
    """Show the variables and metadata stored in an experiment's archive."""
    with _open_service() as service, _errors_exit():
        summary = service.inspect(name)

    table = Table(title=f"Variables in {summary.archive_path}")
    table.add_column("Name", style="cyan")
    table.add_column("Shape (h, w, c)", style="green")
    table.add_column("Offset")
    table.add_column("Extent")
    for variable in summary.variables:
        table.add_row(
            escape(variable.name),
            str(variable.shape),
            str(variable.partition_offset),
            str(variable.partition_extent),
        )
    console.print(table)
    if summary.metadata is None:
        console.print("[yellow]No metadata attribute.[/yellow]")
    else:
        console.print(f"[bold]Metadata:[/bold]\n{escape(display_text(summary.metadata))}")


def main(argv: Optional[List[str]] = None):
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        console.print(USAGE)
        raise SystemExit(1)
    for i, arg in enumerate(args):
        # global options may come before the command
        if arg.startswith("-"):
            continue
        args[i] = SELECTORS.get(arg, arg)
        break
    app(args=args, prog_name="imarchive")


if __name__ == "__main__":
    main()
