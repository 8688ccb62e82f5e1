"""Unit metadata and the immutable per-unit profile."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..scanning.models import Family, Finding, Origin, Severity, SymbolRecord
from ..scanning.symbols import hook_group

STATUS_COMPLETE = "complete"
STATUS_PARTIAL = "partial"
STATUS_FAILED = "failed"


class UnitKind(Enum):
    MODULE = "module"
    THEME = "theme"


@dataclass(frozen=True)
class UnitInfo:
    """What the metadata provider knows about an installed unit."""

    name: str
    kind: UnitKind
    path: str
    label: str = ""
    description: str = ""
    version: Optional[str] = None
    core_compatibility: Optional[str] = None
    package: Optional[str] = None
    dependencies: tuple[str, ...] = ()
    enabled: bool = True
    origin: Optional[Origin] = None  # None = derive from path
    deprecated: bool = False
    test_coverage: Optional[float] = None  # percent; None = not measured


@dataclass(frozen=True)
class LineCounts:
    total: int = 0
    code: int = 0
    comment: int = 0
    blank: int = 0

    @property
    def comment_ratio(self) -> float:
        """Comment lines over code plus comment lines."""
        denominator = self.code + self.comment
        return self.comment / denominator if denominator else 0.0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "code": self.code, "comment": self.comment, "blank": self.blank}


@dataclass(frozen=True)
class DocumentationCoverage:
    has_readme: bool
    has_changelog: bool
    comment_ratio: float
    score: float  # 0-100

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_readme": self.has_readme,
            "has_changelog": self.has_changelog,
            "comment_ratio": round(self.comment_ratio, 4),
            "score": round(self.score, 2),
        }


@dataclass(frozen=True)
class UnitProfile:
    """Immutable snapshot of one scanned unit.

    Family counts are derived from ``findings`` so they always agree with
    the findings list. Findings of family ``io`` (unreadable files) are kept
    for provenance but are not counted in any scoring family.
    """

    name: str
    kind: UnitKind
    origin: Origin
    path: str
    version: Optional[str] = None
    core_compatibility: Optional[str] = None
    dependencies: tuple[str, ...] = ()
    enabled: bool = True
    deprecated: bool = False
    line_counts: LineCounts = field(default_factory=LineCounts)
    findings: tuple[Finding, ...] = ()
    symbols: tuple[SymbolRecord, ...] = ()
    files_scanned: int = 0
    complexity: float = 1.0
    documentation: DocumentationCoverage = field(
        default_factory=lambda: DocumentationCoverage(False, False, 0.0, 0.0)
    )
    test_coverage: Optional[float] = None
    status: str = STATUS_COMPLETE
    warnings: tuple[str, ...] = ()

    def by_family(self, family: Family) -> tuple[Finding, ...]:
        return tuple(f for f in self.findings if f.family is family)

    @property
    def findings_by_family(self) -> dict[str, tuple[Finding, ...]]:
        return {family.value: self.by_family(family) for family in Family if family is not Family.HOOK_SHAPE}

    @property
    def deprecated_count(self) -> int:
        return len(self.by_family(Family.DEPRECATED_API))

    @property
    def security_count(self) -> int:
        return len(self.by_family(Family.SECURITY))

    @property
    def style_count(self) -> int:
        return len(self.by_family(Family.CODING_STANDARD))

    @property
    def performance_count(self) -> int:
        return len(self.by_family(Family.PERFORMANCE))

    @property
    def unreadable_count(self) -> int:
        return len(self.by_family(Family.IO))

    def security_by_severity(self) -> dict[Severity, int]:
        counts = Counter(f.severity for f in self.by_family(Family.SECURITY))
        return {severity: counts.get(severity, 0) for severity in Severity}

    @property
    def hook_summary(self) -> dict[str, int]:
        """Implemented hooks grouped by area (form, entity, theme, ...)."""
        counts = Counter(hook_group(s.hook) for s in self.symbols if s.hook)
        return dict(sorted(counts.items()))

    @property
    def role_summary(self) -> dict[str, int]:
        return dict(sorted(Counter(s.role for s in self.symbols).items()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "origin": self.origin.value,
            "path": self.path,
            "version": self.version,
            "core_compatibility": self.core_compatibility,
            "dependencies": list(self.dependencies),
            "enabled": self.enabled,
            "deprecated": self.deprecated,
            "status": self.status,
            "warnings": list(self.warnings),
            "files_scanned": self.files_scanned,
            "line_counts": self.line_counts.to_dict(),
            "complexity": round(self.complexity, 2),
            "documentation": self.documentation.to_dict(),
            "test_coverage": self.test_coverage,
            "counts": {
                "deprecated": self.deprecated_count,
                "security": self.security_count,
                "style": self.style_count,
                "performance": self.performance_count,
                "unreadable": self.unreadable_count,
            },
            "findings": {
                family: [f.to_dict() for f in findings]
                for family, findings in self.findings_by_family.items()
            },
            "symbols": {
                "roles": self.role_summary,
                "hooks": self.hook_summary,
                "items": [s.to_dict() for s in self.symbols],
            },
        }
