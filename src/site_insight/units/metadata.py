"""Extension metadata providers and origin detection."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..exceptions import MetadataProviderError
from ..logging_config import get_logger
from ..scanning.models import Origin
from ..scanning.walker import DEFAULT_EXCLUDES, FileWalker
from .models import UnitInfo, UnitKind

logger = get_logger(__name__)

INFO_SUFFIX = ".info.yml"

# Core modules deprecated or removed from core in recent majors.
DEPRECATED_CORE_UNITS = frozenset({
    "aggregator", "ckeditor", "color", "forum", "hal",
    "quickedit", "rdf", "statistics", "tour", "tracker", "bartik",
    "seven", "classy", "stable",
})

_CUSTOM_RE = re.compile(r"(?:^|/)(?:modules|themes|profiles)/custom(?:/|$)|(?:^|/)sites/[^/]+/(?:modules|themes)(?:/|$)")
_CORE_RE = re.compile(r"(?:^|/)core/(?:modules|themes|profiles)(?:/|$)")
_DEPENDENCY_RE = re.compile(r"^(?:[\w]+:)?(\w+)")


def detect_origin(relative_path: str) -> Origin:
    """Derive a unit's origin from its path relative to the site root."""
    path = relative_path.replace("\\", "/").strip("/")
    if _CUSTOM_RE.search(path):
        return Origin.CUSTOM
    if _CORE_RE.search(path):
        return Origin.CORE
    return Origin.CONTRIB


def parse_dependency(entry: str) -> Optional[str]:
    """``drupal:views (>=8.x-3.0)`` -> ``views``."""
    match = _DEPENDENCY_RE.match(str(entry).strip())
    return match.group(1) if match else None


class MetadataProvider(ABC):
    """Enumerates the installed units of a site."""

    name = "metadata"

    @abstractmethod
    def list_units(self) -> list[UnitInfo]:
        """Return every unit, sorted by name.

        Raises:
            MetadataProviderError: If the metadata source cannot be read
        """


class InfoYamlMetadataProvider(MetadataProvider):
    """Discovers units on disk by their ``<name>.info.yml`` descriptor.

    Args:
        root: Site root (the directory holding ``core/``, ``modules/``...)
        enabled: Machine names of enabled units; None treats all as enabled
        test_coverage: Measured test coverage percent by unit name
        overrides: Per-unit field overrides (``origin``, ``deprecated``)
    """

    name = "info-yml"

    def __init__(
        self,
        root: Path,
        enabled: Optional[frozenset[str]] = None,
        test_coverage: Optional[Mapping[str, float]] = None,
        overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ):
        self.root = Path(root)
        self.enabled = enabled
        self.test_coverage = dict(test_coverage or {})
        self.overrides = dict(overrides or {})

    def list_units(self) -> list[UnitInfo]:
        if not self.root.is_dir():
            raise MetadataProviderError(self.name, f"site root {self.root} is not a directory")

        walker = FileWalker(
            extensions=(INFO_SUFFIX,),
            exclude_patterns=DEFAULT_EXCLUDES + ("tests", "fixtures"),
        )
        units: dict[str, UnitInfo] = {}
        for info_file in walker.walk(self.root):
            info = self._read(info_file)
            if info is None:
                continue
            if info.name in units:
                logger.warning(
                    f"Duplicate unit '{info.name}' at {info.path}; keeping {units[info.name].path}"
                )
                continue
            units[info.name] = info

        if walker.errors and not units:
            reasons = "; ".join(f"{e.path}: {e.reason}" for e in walker.errors[:3])
            raise MetadataProviderError(self.name, reasons)

        logger.info(f"Discovered {len(units)} units under {self.root}")
        return [units[name] for name in sorted(units)]

    def _read(self, info_file: Path) -> Optional[UnitInfo]:
        try:
            with open(info_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning(f"Skipping unreadable descriptor {info_file}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Skipping descriptor {info_file}: not a mapping")
            return None

        unit_type = str(data.get("type", "")).lower()
        if unit_type == "theme":
            kind = UnitKind.THEME
        elif unit_type in ("module", "profile"):
            kind = UnitKind.MODULE
        else:
            logger.debug(f"Skipping {info_file}: type '{unit_type}' is not a unit")
            return None

        name = info_file.name[: -len(INFO_SUFFIX)]
        unit_dir = info_file.parent
        relative = unit_dir.relative_to(self.root).as_posix()
        override = self.overrides.get(name, {})

        description = str(data.get("description") or "")
        lifecycle = str(data.get("lifecycle") or "").lower()
        deprecated = bool(
            override.get(
                "deprecated",
                lifecycle in ("deprecated", "obsolete")
                or name in DEPRECATED_CORE_UNITS,
            )
        )

        origin = override.get("origin")
        if origin is not None and origin not in {o.value for o in Origin}:
            raise MetadataProviderError(self.name, f"unit {name}: unknown origin {origin!r}")
        dependencies = tuple(
            sorted({dep for dep in (parse_dependency(d) for d in data.get("dependencies") or []) if dep})
        )
        core = data.get("core_version_requirement", data.get("core"))
        version = data.get("version")

        return UnitInfo(
            name=name,
            kind=kind,
            path=relative,
            label=str(data.get("name") or name),
            description=description,
            version=str(version) if version is not None else None,
            core_compatibility=str(core) if core is not None else None,
            package=str(data["package"]) if data.get("package") else None,
            dependencies=dependencies,
            enabled=self.enabled is None or name in self.enabled,
            origin=Origin(origin) if origin else None,
            deprecated=deprecated,
            test_coverage=self.test_coverage.get(name),
        )


class StaticMetadataProvider(MetadataProvider):
    """Serves a fixed list of units, e.g. from an external inventory."""

    name = "static"

    def __init__(self, units: list[UnitInfo]):
        self._units = sorted(units, key=lambda u: u.name)

    def list_units(self) -> list[UnitInfo]:
        return list(self._units)
