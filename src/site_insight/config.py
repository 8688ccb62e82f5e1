"""Configuration loading and management for Site Insight.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnalysisConfig)
    2. Global config (~/.site-insight.toml)
    3. Project config (./site-insight.toml)
    4. Explicit config file
    5. Environment variables (SITE_INSIGHT_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(verbose=True, workers=4)
    >>> config.verbosity
    'verbose'
    >>> config.workers
    4
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]


@dataclass(frozen=True)
class ScoringConfig:
    """Penalties and thresholds used by the ScoringEngine.

    Sub-score weights are not configurable; see scoring.engine.WEIGHTS.

    Attributes:
        Security:
            critical_security_penalty: Points lost per critical security finding
            high_security_penalty: Points lost per high security finding

        Code quality:
            style_penalty: Points lost per coding-standard violation
            complexity_threshold: Complexity proxy tolerated without penalty
            complexity_penalty: Points lost per unit of complexity above threshold

        Other sub-scores:
            performance_penalty: Points lost per performance finding
            deprecated_penalty: Points lost per deprecated-api finding

        Risk:
            low_test_coverage: Measured coverage below this counts as a risk factor

        Effort (hours):
            base_hours: Fixed effort for any unit
            security_hours: Per security finding
            deprecated_hours: Per deprecated-api finding
            style_hours: Per coding-standard violation
            testing_hours: Added when measured coverage is below test_coverage_target
            documentation_hours: Added when documentation is below documentation_target
    """

    # ── Security ──────────────────────────────────────────────────
    critical_security_penalty: float = 15.0
    high_security_penalty: float = 8.0

    # ── Code quality ──────────────────────────────────────────────
    style_penalty: float = 0.5
    complexity_threshold: float = 10.0
    complexity_penalty: float = 2.0

    # ── Other sub-scores ──────────────────────────────────────────
    performance_penalty: float = 5.0
    deprecated_penalty: float = 2.0

    # ── Risk ──────────────────────────────────────────────────────
    low_test_coverage: float = 50.0

    # ── Effort ────────────────────────────────────────────────────
    base_hours: float = 2.0
    security_hours: float = 4.0
    deprecated_hours: float = 1.0
    style_hours: float = 0.5
    testing_hours: float = 8.0
    test_coverage_target: float = 70.0
    documentation_hours: float = 4.0
    documentation_target: float = 70.0

    def __post_init__(self) -> None:
        """Validate scoring configuration."""
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative")

        for name in ("low_test_coverage", "test_coverage_target", "documentation_target"):
            if getattr(self, name) > 100:
                raise ValueError(f"{name} must be between 0 and 100")


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for an analysis run.

    Attributes:
        Performance tuning:
            workers: Number of parallel workers (None = auto-detect)
            unit_timeout_seconds: Time limit for one unit task
            domain_timeout_seconds: Time limit for one domain task

        Caching:
            cache_enabled: Cache per-file findings between runs
            cache_dir: Directory for cache storage
            cache_ttl_hours: Cache time-to-live in hours

        File filtering:
            exclude_patterns: Name globs excluded from the walk
            max_file_size_mb: Files larger than this are skipped
            max_files_per_unit: Stop walking a unit after this many files

        Analysis:
            target_version: Core version the upgrade assessment targets
            detector_table: Optional TOML file replacing the bundled detectors

        Output control:
            verbosity: Logging verbosity level
            log_file: Also append log records to this file

        Security:
            allow_hidden_files: Include hidden files (starting with .)
            follow_symlinks: Descend into symlinked directories (cycles are skipped)
    """

    # Performance tuning
    workers: Optional[int] = None  # None = auto-detect from CPU cores
    unit_timeout_seconds: float = 120.0
    domain_timeout_seconds: float = 30.0

    # Caching
    cache_enabled: bool = True
    cache_dir: str = ".site-insight-cache"
    cache_ttl_hours: int = 168

    # File filtering
    exclude_patterns: list[str] = field(
        default_factory=lambda: [
            "vendor",
            "node_modules",
            "bower_components",
            ".git",
            ".svn",
            "build",
            "dist",
            "*.min.js",
            "*.min.css",
            "*.map",
        ]
    )
    max_file_size_mb: float = 5.0
    max_files_per_unit: int = 20000

    # Analysis
    target_version: str = "10"
    detector_table: Optional[str] = None

    # Output control
    verbosity: Verbosity = "normal"
    log_file: Optional[str] = None

    # Security
    allow_hidden_files: bool = False
    follow_symlinks: bool = True

    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.unit_timeout_seconds <= 0:
            raise ValueError("unit_timeout_seconds must be positive")
        if self.domain_timeout_seconds <= 0:
            raise ValueError("domain_timeout_seconds must be positive")

        if self.cache_ttl_hours < 0:
            raise ValueError("cache_ttl_hours must be non-negative")

        if self.max_file_size_mb <= 0:
            raise ValueError("max_file_size_mb must be positive")
        if self.max_files_per_unit < 1:
            raise ValueError("max_files_per_unit must be at least 1")

        if not self.target_version.strip():
            raise ValueError("target_version must not be empty")

        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of quiet, normal, verbose")

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    @property
    def effective_workers(self) -> int:
        """Worker count, auto-detected when unset."""
        if self.workers is not None:
            return self.workers
        return min(os.cpu_count() or 4, 8)


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Configuration sources are merged in priority order (lowest to highest):
        1. Defaults (AnalysisConfig field defaults)
        2. Global config (~/.site-insight.toml)
        3. Project config (./site-insight.toml)
        4. Explicit config file (if config_file provided)
        5. Environment variables (SITE_INSIGHT_* prefix)
        6. CLI overrides (kwargs)

    A ``[scoring]`` table in any TOML source maps onto ScoringConfig.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated AnalysisConfig instance

    Raises:
        InvalidConfigError: If a config file is missing or invalid
    """
    merged: dict = {}
    scoring: dict = {}

    sources = [Path.home() / ".site-insight.toml", Path.cwd() / "site-insight.toml"]
    for source in sources:
        if source.exists():
            _merge_file(source, merged, scoring)

    if config_file is not None:
        if not config_file.exists():
            raise InvalidConfigError("config_file", config_file, "file not found")
        _merge_file(config_file, merged, scoring)

    merged.update(_load_env_vars())

    # Convert verbosity boolean flags to string
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    scoring_override = merged.pop("scoring", None)
    if isinstance(scoring_override, ScoringConfig):
        merged["scoring"] = scoring_override
    elif scoring:
        try:
            merged["scoring"] = ScoringConfig(**scoring)
        except (TypeError, ValueError) as e:
            raise InvalidConfigError("scoring", scoring, str(e))

    try:
        return AnalysisConfig(**merged)
    except (TypeError, ValueError) as e:
        raise InvalidConfigError("analysis", merged, str(e))


def _merge_file(path: Path, merged: dict, scoring: dict) -> None:
    try:
        data = _load_toml_file(path)
    except Exception as e:
        raise InvalidConfigError("config_file", path, str(e))

    section = data.pop("scoring", None)
    if section is not None:
        if not isinstance(section, dict):
            raise InvalidConfigError("scoring", section, "must be a table")
        scoring.update(section)
    merged.update(data)


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from SITE_INSIGHT_* environment variables.

    Every scalar AnalysisConfig field is supported, e.g.
    SITE_INSIGHT_WORKERS=4 or SITE_INSIGHT_CACHE_ENABLED=false.

    Returns:
        Dict of field_name -> parsed_value for any SITE_INSIGHT_* vars found.
    """
    type_hints = get_type_hints(AnalysisConfig)

    result: dict[str, Any] = {}

    for field_name in AnalysisConfig.__dataclass_fields__:
        env_key = f"SITE_INSIGHT_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns None for types that cannot be expressed in an env var.
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list or type_hint is list or type_hint is ScoringConfig:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    with open(path, "rb") as f:
        return tomllib.load(f)
