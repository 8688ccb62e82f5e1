"""Domain analyzer interface and health scoring."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..models import Recommendation
from .state import SiteState

NEUTRAL_HEALTH = 50.0

DOMAIN_COMPLETE = "complete"
DOMAIN_PARTIAL = "partial"
DOMAIN_FAILED = "failed"


def health_status(score: float) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def health_from_issues(issues: float, max_expected_issues: float) -> float:
    """100 - issues / max_expected * 100, clamped to [0, 100]."""
    if max_expected_issues <= 0:
        return 100.0 if issues <= 0 else 0.0
    percentage = 100.0 - (issues / max_expected_issues) * 100.0
    return round(max(0.0, min(100.0, percentage)), 2)


@dataclass(frozen=True)
class DomainReport:
    domain: str
    issues: int
    max_expected_issues: int
    health_score: float
    health_status: str
    status: str  # complete | partial
    metrics: tuple[tuple[str, Any], ...] = ()
    not_measured: tuple[str, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()

    def metric(self, name: str) -> Any:
        return dict(self.metrics).get(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "status": self.status,
            "issues": self.issues,
            "max_expected_issues": self.max_expected_issues,
            "health_score": self.health_score,
            "health_status": self.health_status,
            "metrics": dict(self.metrics),
            "not_measured": list(self.not_measured),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass
class DomainFindings:
    """Mutable scratch pad an analyzer fills while running its checks."""

    domain: str
    issues: int = 0
    metrics: dict[str, Any] = field(default_factory=dict)
    not_measured: list[str] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    checks_run: int = 0

    def skip(self, check: str) -> None:
        self.not_measured.append(check)

    def measured(self, metric: str, value: Any) -> None:
        self.checks_run += 1
        self.metrics[metric] = value

    def issue(
        self,
        category: str,
        priority: str,
        message: str,
        weight: int = 1,
    ) -> None:
        self.issues += weight
        self.recommend(category, priority, message)

    def recommend(self, category: str, priority: str, message: str) -> None:
        self.recommendations.append(
            Recommendation(category=category, priority=priority, message=message, source=self.domain)
        )

    def build(self, max_expected_issues: int) -> DomainReport:
        if self.checks_run == 0:
            # Nothing measured: a neutral score, not a clean one
            score: float = NEUTRAL_HEALTH
        else:
            score = health_from_issues(self.issues, max_expected_issues)
        status = DOMAIN_PARTIAL if self.not_measured else DOMAIN_COMPLETE
        return DomainReport(
            domain=self.domain,
            issues=self.issues,
            max_expected_issues=max_expected_issues,
            health_score=score,
            health_status=health_status(score),
            status=status,
            metrics=tuple(sorted(self.metrics.items())),
            not_measured=tuple(sorted(self.not_measured)),
            recommendations=tuple(sorted(self.recommendations, key=lambda r: r.sort_key)),
        )


class DomainAnalyzer(ABC):
    """Whole-site analyzer. Stateless; one call per run."""

    name: str = "domain"
    max_expected_issues: int = 4

    @abstractmethod
    def analyze(self, state: SiteState) -> DomainReport:
        """Inspect the site state and return this domain's report."""

    def _start(self) -> DomainFindings:
        return DomainFindings(domain=self.name)


def neutral_report(domain: str, max_expected_issues: int, reason: Optional[str] = None) -> DomainReport:
    """Stand-in for a domain whose analyzer failed or timed out."""
    return DomainReport(
        domain=domain,
        issues=0,
        max_expected_issues=max_expected_issues,
        health_score=NEUTRAL_HEALTH,
        health_status=health_status(NEUTRAL_HEALTH),
        status=DOMAIN_FAILED,
        metrics=(("error", reason),) if reason else (),
    )
