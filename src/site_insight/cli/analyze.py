"""Main analysis command."""

import threading
from pathlib import Path
from typing import Optional

import click
import typer
from rich.markup import escape

from ..domains import JsonSiteStateProvider
from ..exceptions import ConfigurationError, SiteInsightError, code_for
from ..formatters import get_formatter
from ..logging_config import setup_logging
from ..runner import SiteAnalysisRunner
from . import app
from ._common import EXIT_NO_REPORT, err_console, resolve_config


@app.command()
def analyze(
    root: Path = typer.Argument(
        ...,
        help="Site root (the directory holding core/, modules/, themes/)",
        file_okay=False,
        dir_okay=True,
    ),
    target_version: Optional[str] = typer.Option(
        None,
        "--target-version",
        "-t",
        help="Core version to assess upgrade readiness against (default: 10)",
    ),
    output_format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format",
        click_type=click.Choice(["json", "csv", "rich"], case_sensitive=False),
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report to this file instead of stdout",
        dir_okay=False,
    ),
    site_state: Optional[Path] = typer.Option(
        None,
        "--site-state",
        help="JSON export of database, content, security and performance state",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    detectors: Optional[Path] = typer.Option(
        None,
        "--detectors",
        help="TOML detector table extending or replacing the bundled one",
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
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel workers (default: auto-detect)",
        min=1,
        max=64,
    ),
    no_cache: bool = typer.Option(
        False,
        "--no-cache",
        help="Do not read or write the per-file findings cache",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        dir_okay=False,
    ),
):
    """
    Analyze every module and theme under ROOT and report upgrade risk.

    Exits 0 whenever a report is produced, even if some units or domains
    failed; exits 2 when no report can be produced.

    [bold cyan]Examples:[/bold cyan]

      site-insight analyze /var/www/site

      site-insight analyze /var/www/site --target-version 11 --format json -o report.json

      site-insight analyze . --site-state state.json --format csv
    """
    logger = setup_logging("verbose" if verbose else "quiet" if quiet else "normal")
    cancel = threading.Event()

    try:
        settings = resolve_config(
            config=config,
            target_version=target_version,
            detectors=detectors,
            workers=workers,
            no_cache=no_cache,
            verbose=verbose,
            quiet=quiet,
            log_file=log_file,
        )
        logger = setup_logging(settings.verbosity, settings.log_file)
        provider = JsonSiteStateProvider(site_state) if site_state else None
        runner = SiteAnalysisRunner(settings, site_state=provider)
        report = runner.run(root, settings.target_version, cancel=cancel)

    except ConfigurationError as e:
        code = code_for(e).value
        logger.error(f"[{code}] {e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error {escape('[' + code + ']')}:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_NO_REPORT)

    except SiteInsightError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_NO_REPORT)

    except KeyboardInterrupt:
        cancel.set()
        logger.info("Analysis interrupted by user")
        err_console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during analysis")
        err_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(EXIT_NO_REPORT)

    formatter = get_formatter(output_format.lower())
    if output is not None:
        text = formatter.format(report)
        output.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        err_console.print(f"[green]Report written to[/green] {output}")
    else:
        formatter.render(report)
