"""Site report models.

Everything here is frozen and serializes through ``to_dict`` with stable
field names; formatters never reach past these models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..domains.base import DomainReport
from ..models import Recommendation
from ..scanning.models import Origin
from ..scoring.models import ScoreBreakdown
from ..units.models import STATUS_FAILED, UnitProfile


def readiness_level(score: float) -> str:
    if score >= 80:
        return "ready"
    if score >= 60:
        return "mostly_ready"
    if score >= 40:
        return "needs_work"
    return "not_ready"


@dataclass(frozen=True)
class TaskError:
    """Why a unit or domain task produced no result."""

    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class UnitResult:
    name: str
    status: str  # complete | partial | failed
    profile: Optional[UnitProfile] = None
    score: Optional[ScoreBreakdown] = None
    error: Optional[TaskError] = None
    compatibility: Optional[str] = None  # compatible | incompatible | unknown, against the target core

    @property
    def scored(self) -> bool:
        """Whether this unit counts toward risk statistics.

        Core units are inventoried but not risk scored.
        """
        return (
            self.status != STATUS_FAILED
            and self.profile is not None
            and self.score is not None
            and self.profile.origin is not Origin.CORE
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "status": self.status,
            "risk_scored": self.scored,
            "profile": self.profile.to_dict() if self.profile else None,
            "score": self.score.to_dict() if self.score else None,
            "error": self.error.to_dict() if self.error else None,
            "compatibility": self.compatibility,
        }
        if self.score is not None:
            data["upgrade_readiness_level"] = readiness_level(self.score.upgrade_readiness)
        return data


@dataclass(frozen=True)
class DomainResult:
    domain: str
    status: str  # complete | partial | failed
    report: DomainReport
    error: Optional[TaskError] = None

    def to_dict(self) -> dict[str, Any]:
        data = self.report.to_dict()
        data["status"] = self.status
        data["error"] = self.error.to_dict() if self.error else None
        return data


@dataclass(frozen=True)
class ReportMetadata:
    generated_at: str
    target_version: str
    tool_version: str
    root: str
    detector_fingerprint: str
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "target_version": self.target_version,
            "tool_version": self.tool_version,
            "root": self.root,
            "detector_fingerprint": self.detector_fingerprint,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ScoreStatistics:
    count: int
    mean: Optional[float] = None
    median: Optional[float] = None
    minimum: Optional[float] = None
    p10: Optional[float] = None
    maximum: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "mean": self.mean,
            "median": self.median,
            "min": self.minimum,
            "p10": self.p10,
            "max": self.maximum,
        }


@dataclass(frozen=True)
class ReportSummary:
    health_score: float
    health: str  # excellent | good | fair | poor
    units_total: int
    units_failed: int
    domains_failed: int
    unit_scores: ScoreStatistics
    upgrade_readiness: Optional[float]
    upgrade_readiness_level: Optional[str]
    risk_tiers: tuple[tuple[str, int], ...]
    findings_by_family: tuple[tuple[str, int], ...]
    total_effort_hours: float
    compatibility: tuple[tuple[str, int], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "health_score": self.health_score,
            "health": self.health,
            "units_total": self.units_total,
            "units_failed": self.units_failed,
            "domains_failed": self.domains_failed,
            "unit_scores": self.unit_scores.to_dict(),
            "upgrade_readiness": self.upgrade_readiness,
            "upgrade_readiness_level": self.upgrade_readiness_level,
            "risk_tiers": dict(self.risk_tiers),
            "findings_by_family": dict(self.findings_by_family),
            "total_effort_hours": self.total_effort_hours,
            "compatibility": dict(self.compatibility),
        }


@dataclass(frozen=True)
class SiteReport:
    metadata: ReportMetadata
    units: tuple[UnitResult, ...]
    domains: tuple[DomainResult, ...]
    recommendations: tuple[Recommendation, ...]
    summary: ReportSummary
    critical_issues: tuple[Recommendation, ...] = field(default=())

    @property
    def health(self) -> str:
        return self.summary.health

    def unit(self, name: str) -> Optional[UnitResult]:
        for result in self.units:
            if result.name == name:
                return result
        return None

    def domain(self, name: str) -> Optional[DomainResult]:
        for result in self.domains:
            if result.domain == name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "summary": self.summary.to_dict(),
            "units": [u.to_dict() for u in self.units],
            "domains": [d.to_dict() for d in self.domains],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "critical_issues": [r.to_dict() for r in self.critical_issues],
        }
