"""Site state read by the domain analyzers.

Every measurement is optional: ``None`` means the value was not supplied
and the check depending on it is reported as not measured.

A JSON site state export looks like::

    {
      "enabled_extensions": ["node", "views", "mymodule"],
      "test_coverage": {"mymodule": 62.5},
      "units": {"legacy_thing": {"deprecated": true}},
      "database": {
        "default_collation": "utf8mb4_general_ci",
        "size_mb": 420.0,
        "slow_queries": 12,
        "tables": [{"name": "node", "engine": "InnoDB", "collation": "utf8mb4_general_ci",
                    "size_mb": 12.5, "data_free_mb": 0.0}]
      },
      "content": {
        "fields": [{"name": "field_tags", "type": "entity_reference", "entity_type": "node"}],
        "content_types": [{"name": "article", "items": 120}],
        "vocabularies": [{"name": "tags", "items": 40}]
      },
      "security": {
        "pending_security_updates": 0,
        "known_vulnerabilities": 0,
        "role_permissions": {"anonymous": ["access content"]},
        "error_display": "hide",
        "trusted_host_patterns": ["^example\\\\.com$"]
      },
      "performance": {
        "page_cache_enabled": true,
        "page_cache_max_age": 3600,
        "css_aggregation": true,
        "js_aggregation": true,
        "memory_usage_percent": 55.0
      },
      "system": {
        "php_version": "8.3.4",
        "memory_limit": "512M",
        "php_extensions": ["curl", "dom", "gd", "hash", "json", "mbstring",
                           "openssl", "pcre", "pdo", "xml"]
      },
      "watchdog": {
        "logging_enabled": true,
        "total_entries": 5000,
        "not_found": 120,
        "php_errors": 14,
        "php_error_types": {"warning": 10, "error": 4},
        "log_age_days": 21.5
      }
    }
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..exceptions import MetadataProviderError


@dataclass(frozen=True)
class TableInfo:
    name: str
    engine: Optional[str] = None
    collation: Optional[str] = None
    size_mb: float = 0.0
    data_free_mb: float = 0.0


@dataclass(frozen=True)
class DatabaseState:
    tables: Optional[tuple[TableInfo, ...]] = None
    default_collation: Optional[str] = None
    size_mb: Optional[float] = None
    slow_queries: Optional[int] = None


@dataclass(frozen=True)
class FieldInfo:
    name: str
    type: str
    entity_type: str = "node"


@dataclass(frozen=True)
class BundleInfo:
    name: str
    items: int = 0


@dataclass(frozen=True)
class ContentState:
    fields: Optional[tuple[FieldInfo, ...]] = None
    content_types: Optional[tuple[BundleInfo, ...]] = None
    vocabularies: Optional[tuple[BundleInfo, ...]] = None


@dataclass(frozen=True)
class SecurityState:
    pending_security_updates: Optional[int] = None
    known_vulnerabilities: Optional[int] = None
    role_permissions: Optional[dict[str, tuple[str, ...]]] = None
    error_display: Optional[str] = None
    trusted_host_patterns: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class PerformanceState:
    page_cache_enabled: Optional[bool] = None
    page_cache_max_age: Optional[int] = None
    css_aggregation: Optional[bool] = None
    js_aggregation: Optional[bool] = None
    memory_usage_percent: Optional[float] = None


@dataclass(frozen=True)
class SystemState:
    php_version: Optional[str] = None
    memory_limit: Optional[str] = None  # php.ini notation: 256M, 1G, -1
    php_extensions: Optional[frozenset[str]] = None


@dataclass(frozen=True)
class WatchdogState:
    """Counts taken from the site's log table."""

    logging_enabled: Optional[bool] = None
    total_entries: Optional[int] = None
    not_found: Optional[int] = None
    php_errors: Optional[int] = None
    php_error_types: Optional[dict[str, int]] = None
    log_age_days: Optional[float] = None


@dataclass(frozen=True)
class SiteState:
    database: DatabaseState = field(default_factory=DatabaseState)
    content: ContentState = field(default_factory=ContentState)
    security: SecurityState = field(default_factory=SecurityState)
    performance: PerformanceState = field(default_factory=PerformanceState)
    system: SystemState = field(default_factory=SystemState)
    watchdog: WatchdogState = field(default_factory=WatchdogState)
    enabled_extensions: Optional[frozenset[str]] = None
    test_coverage: dict[str, float] = field(default_factory=dict)
    unit_overrides: dict[str, dict[str, Any]] = field(default_factory=dict)


class SiteStateProvider(ABC):
    """Reads the external state the domain analyzers inspect."""

    name = "site-state"

    @abstractmethod
    def load(self) -> SiteState:
        """Return the current site state.

        Raises:
            MetadataProviderError: If the state cannot be read
        """


class EmptySiteStateProvider(SiteStateProvider):
    """No site state available; every domain check is not measured."""

    name = "none"

    def load(self) -> SiteState:
        return SiteState()


class JsonSiteStateProvider(SiteStateProvider):
    """Loads a JSON site state export (see module docstring)."""

    name = "json"

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> SiteState:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise MetadataProviderError(self.name, f"{self.path}: {e}")

        if not isinstance(data, dict):
            raise MetadataProviderError(self.name, f"{self.path}: top level must be an object")

        try:
            return site_state_from_dict(data)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise MetadataProviderError(self.name, f"{self.path}: {e}")


def _opt_tuple(items: Any, build) -> Optional[tuple]:
    if items is None:
        return None
    return tuple(build(item) for item in items)


def site_state_from_dict(data: dict[str, Any]) -> SiteState:
    db = data.get("database") or {}
    content = data.get("content") or {}
    security = data.get("security") or {}
    perf = data.get("performance") or {}
    system = data.get("system") or {}
    logs = data.get("watchdog") or {}

    permissions = security.get("role_permissions")
    if permissions is not None:
        permissions = {role: tuple(perms) for role, perms in sorted(permissions.items())}

    enabled = data.get("enabled_extensions")

    return SiteState(
        database=DatabaseState(
            tables=_opt_tuple(db.get("tables"), lambda t: TableInfo(**t)),
            default_collation=db.get("default_collation"),
            size_mb=_opt_float(db.get("size_mb")),
            slow_queries=_opt_int(db.get("slow_queries")),
        ),
        content=ContentState(
            fields=_opt_tuple(content.get("fields"), lambda f: FieldInfo(**f)),
            content_types=_opt_tuple(content.get("content_types"), lambda b: BundleInfo(**b)),
            vocabularies=_opt_tuple(content.get("vocabularies"), lambda b: BundleInfo(**b)),
        ),
        security=SecurityState(
            pending_security_updates=_opt_int(security.get("pending_security_updates")),
            known_vulnerabilities=_opt_int(security.get("known_vulnerabilities")),
            role_permissions=permissions,
            error_display=security.get("error_display"),
            trusted_host_patterns=_opt_tuple(security.get("trusted_host_patterns"), str),
        ),
        performance=PerformanceState(
            page_cache_enabled=_opt_bool(perf.get("page_cache_enabled")),
            page_cache_max_age=_opt_int(perf.get("page_cache_max_age")),
            css_aggregation=_opt_bool(perf.get("css_aggregation")),
            js_aggregation=_opt_bool(perf.get("js_aggregation")),
            memory_usage_percent=_opt_float(perf.get("memory_usage_percent")),
        ),
        system=SystemState(
            php_version=_opt_str(system.get("php_version")),
            memory_limit=_opt_str(system.get("memory_limit")),
            php_extensions=(
                frozenset(str(e).lower() for e in system["php_extensions"])
                if system.get("php_extensions") is not None
                else None
            ),
        ),
        watchdog=WatchdogState(
            logging_enabled=_opt_bool(logs.get("logging_enabled")),
            total_entries=_opt_int(logs.get("total_entries")),
            not_found=_opt_int(logs.get("not_found")),
            php_errors=_opt_int(logs.get("php_errors")),
            php_error_types=(
                {str(k): int(v) for k, v in sorted(logs["php_error_types"].items())}
                if logs.get("php_error_types") is not None
                else None
            ),
            log_age_days=_opt_float(logs.get("log_age_days")),
        ),
        enabled_extensions=frozenset(enabled) if enabled is not None else None,
        test_coverage={k: float(v) for k, v in (data.get("test_coverage") or {}).items()},
        unit_overrides={k: dict(v) for k, v in (data.get("units") or {}).items()},
    )


def _opt_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _opt_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    raise ValueError(f"expected true/false, got {value!r}")
