"""Unit discovery and per-unit analysis."""

from .analyzer import UnitAnalyzer, complexity_proxy, documentation_coverage
from .compatibility import check_compatibility
from .metadata import (
    InfoYamlMetadataProvider,
    MetadataProvider,
    StaticMetadataProvider,
    detect_origin,
)
from .models import (
    STATUS_COMPLETE,
    STATUS_FAILED,
    STATUS_PARTIAL,
    DocumentationCoverage,
    LineCounts,
    UnitInfo,
    UnitKind,
    UnitProfile,
)

__all__ = [
    "DocumentationCoverage",
    "InfoYamlMetadataProvider",
    "LineCounts",
    "MetadataProvider",
    "STATUS_COMPLETE",
    "STATUS_FAILED",
    "STATUS_PARTIAL",
    "StaticMetadataProvider",
    "UnitAnalyzer",
    "UnitInfo",
    "UnitKind",
    "UnitProfile",
    "check_compatibility",
    "complexity_proxy",
    "detect_origin",
    "documentation_coverage",
]
