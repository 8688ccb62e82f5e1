"""List the detectors a run would use."""

from pathlib import Path
from typing import Optional

import click
import typer
from rich.table import Table

from ..exceptions import ConfigurationError
from ..runner import build_registry
from ..scanning import Family
from . import app
from ._common import EXIT_NO_REPORT, console, err_console, resolve_config


@app.command()
def detectors(
    family: Optional[str] = typer.Option(
        None,
        "--family",
        help="Only show one detector family",
        click_type=click.Choice([f.value for f in Family], case_sensitive=False),
    ),
    table_file: Optional[Path] = typer.Option(
        None,
        "--detectors",
        help="TOML detector table to load instead of the configured one",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
):
    """Show the detector registry: id, family, severity and languages."""
    try:
        registry = build_registry(resolve_config(config=config, detectors=table_file))
    except ConfigurationError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_NO_REPORT)

    table = Table(title=f"Detectors ({registry.fingerprint})")
    table.add_column("ID", style="cyan")
    table.add_column("Family")
    table.add_column("Severity")
    table.add_column("Languages", style="dim")
    table.add_column("Message")

    shown = 0
    for detector in registry:
        if family and detector.family.value != family.lower():
            continue
        table.add_row(
            detector.id,
            detector.family.value,
            detector.severity.value,
            ",".join(sorted(lang.value for lang in detector.languages)),
            detector.message,
        )
        shown += 1

    console.print(table)
    console.print(f"{shown} of {len(registry)} detectors")
