"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import AnalysisConfig, load_config

console = Console()
err_console = Console(stderr=True)

# Exit status when no report could be produced
EXIT_NO_REPORT = 2


def resolve_config(
    config: Optional[Path] = None,
    target_version: Optional[str] = None,
    detectors: Optional[Path] = None,
    workers: Optional[int] = None,
    no_cache: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
) -> AnalysisConfig:
    """Build the analysis config from CLI options."""
    overrides = {}
    if target_version is not None:
        overrides["target_version"] = target_version
    if detectors is not None:
        overrides["detector_table"] = str(detectors)
    if workers is not None:
        overrides["workers"] = workers
    if no_cache:
        overrides["cache_enabled"] = False
    if verbose:
        overrides["verbose"] = True
    if quiet:
        overrides["quiet"] = True
    if log_file is not None:
        overrides["log_file"] = str(log_file)
    return load_config(config_file=config, **overrides)
