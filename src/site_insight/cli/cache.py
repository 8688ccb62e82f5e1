"""Cache management commands."""

from pathlib import Path
from typing import Optional

import typer

from ..cache import FindingCache
from . import app
from ._common import console, resolve_config

_CONFIG_OPTION = typer.Option(
    None,
    "-c",
    "--config",
    help="Configuration file (TOML)",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
)


def _open_cache(config: Optional[Path]) -> FindingCache:
    settings = resolve_config(config=config)
    return FindingCache(
        cache_dir=settings.cache_dir,
        ttl_hours=settings.cache_ttl_hours,
        enabled=settings.cache_enabled,
    )


@app.command()
def cache_info(config: Optional[Path] = _CONFIG_OPTION):
    """Show cache information and statistics."""
    cache = _open_cache(config)
    stats = cache.stats()
    cache.close()

    console.print("[bold cyan]Site Insight Cache Info[/bold cyan]")
    console.print()

    if stats.get("enabled"):
        console.print("Status: [green]Enabled[/green]")
        console.print(f"Directory: [blue]{stats.get('directory', 'N/A')}[/blue]")
        console.print(f"Entries: [yellow]{stats.get('size', 0)}[/yellow]")
        console.print(f"Size: [yellow]{stats.get('volume', 0)} bytes[/yellow]")
    else:
        console.print("Status: [red]Disabled[/red]")


@app.command()
def cache_clear(config: Optional[Path] = _CONFIG_OPTION):
    """Clear the per-file findings cache."""
    cache = _open_cache(config)
    if not cache.enabled:
        console.print("[yellow]Cache is disabled[/yellow]")
        raise typer.Exit(0)

    cache.clear()
    cache.close()
    console.print("[green]Cache cleared successfully[/green]")
