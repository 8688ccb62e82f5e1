"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="site-insight",
    help="Site Insight - Upgrade and Risk Audit for Drupal-style Sites",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold cyan]Site Insight[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)


@app.callback()
def _root(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Audit a site's modules and themes ahead of a core upgrade."""


def main() -> None:
    app()


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .cache import cache_info as _cache_info, cache_clear as _cache_clear  # noqa: F401, E402
from .detectors import detectors as _detectors  # noqa: F401, E402
