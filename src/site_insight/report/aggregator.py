"""Merges unit and domain results into one :class:`SiteReport`.

The aggregator is the run's single synchronization point. It is pure: the
same inputs and ``generated_at`` always give an equal report.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Optional

import numpy as np

from .. import __version__
from ..config import ScoringConfig
from ..domains.base import DOMAIN_FAILED, NEUTRAL_HEALTH, health_status
from ..logging_config import get_logger
from ..models import Recommendation, dedupe_recommendations
from ..scanning.models import Family, Origin
from ..scoring.models import RISK_TIERS
from ..units.compatibility import COMPATIBLE, INCOMPATIBLE, UNKNOWN, check_compatibility
from ..units.models import STATUS_FAILED
from .models import (
    DomainResult,
    ReportMetadata,
    ReportSummary,
    ScoreStatistics,
    SiteReport,
    UnitResult,
    readiness_level,
)
from .recommendations import unit_recommendations

logger = get_logger(__name__)

SCORED_FAMILIES = (
    Family.DEPRECATED_API,
    Family.SECURITY,
    Family.CODING_STANDARD,
    Family.PERFORMANCE,
    Family.IO,
)


def _round(value: float) -> float:
    return round(float(value), 2)


def score_statistics(scores: list[float]) -> ScoreStatistics:
    if not scores:
        return ScoreStatistics(count=0)
    values = np.array(sorted(scores), dtype=float)
    return ScoreStatistics(
        count=int(values.size),
        mean=_round(np.mean(values)),
        median=_round(np.median(values)),
        minimum=_round(np.min(values)),
        p10=_round(np.percentile(values, 10)),
        maximum=_round(np.max(values)),
    )


class ReportAggregator:
    """Builds the site report.

    Args:
        target_version: Core version the upgrade assessment targets
        root: Site root the run analyzed
        detector_fingerprint: Fingerprint of the detector table used
        scoring: Targets the unit recommendations are checked against
    """

    def __init__(
        self,
        target_version: str,
        root: str = "",
        detector_fingerprint: str = "",
        scoring: ScoringConfig = ScoringConfig(),
    ):
        self.target_version = target_version
        self.root = root
        self.detector_fingerprint = detector_fingerprint
        self.scoring = scoring

    def compatibility(self, unit: UnitResult) -> Optional[str]:
        """Compatibility of ``unit`` with the target core; core units always pass."""
        if unit.profile is None:
            return None
        if unit.profile.origin is Origin.CORE:
            return COMPATIBLE
        return check_compatibility(unit.profile.core_compatibility, self.target_version)

    def aggregate(
        self,
        unit_results: Iterable[UnitResult],
        domain_results: Iterable[DomainResult],
        generated_at: Optional[str] = None,
        warnings: Iterable[str] = (),
    ) -> SiteReport:
        """Merge task results into a report.

        Args:
            unit_results: One result per unit, in any order
            domain_results: One result per domain analyzer, in any order
            generated_at: ISO timestamp; defaults to now (UTC)
            warnings: Run-level warnings to carry into the metadata
        """
        if generated_at is None:
            generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        units = tuple(
            replace(unit, compatibility=self.compatibility(unit))
            for unit in sorted(unit_results, key=lambda u: u.name)
        )
        domains = tuple(sorted(domain_results, key=lambda d: d.domain))

        report_warnings = list(warnings)
        for unit in units:
            if unit.status == STATUS_FAILED:
                reason = unit.error.message if unit.error else "unknown error"
                report_warnings.append(f"unit {unit.name} failed: {reason}")
        for domain in domains:
            if domain.status == DOMAIN_FAILED:
                reason = domain.error.message if domain.error else "unknown error"
                report_warnings.append(
                    f"domain {domain.domain} failed: {reason}; using neutral health {NEUTRAL_HEALTH:g}"
                )

        recommendations = dedupe_recommendations(self._collect(units, domains))
        critical = tuple(r for r in recommendations if r.priority == "critical")

        metadata = ReportMetadata(
            generated_at=generated_at,
            target_version=self.target_version,
            tool_version=__version__,
            root=self.root,
            detector_fingerprint=self.detector_fingerprint,
            warnings=tuple(sorted(set(report_warnings))),
        )
        summary = self._summarize(units, domains)
        logger.info(
            f"Report: {len(units)} units, {len(domains)} domains, "
            f"{len(recommendations)} recommendations, health={summary.health}"
        )
        return SiteReport(
            metadata=metadata,
            units=units,
            domains=domains,
            recommendations=recommendations,
            summary=summary,
            critical_issues=critical,
        )

    def _collect(
        self, units: tuple[UnitResult, ...], domains: tuple[DomainResult, ...]
    ) -> list[Recommendation]:
        collected: list[Recommendation] = []
        for unit in units:
            if unit.scored:
                collected.extend(
                    unit_recommendations(
                        unit.profile, unit.score, self.scoring, unit.compatibility, self.target_version
                    )
                )
        for domain in domains:
            collected.extend(domain.report.recommendations)
        return collected

    def _summarize(
        self, units: tuple[UnitResult, ...], domains: tuple[DomainResult, ...]
    ) -> ReportSummary:
        if domains:
            health_score = _round(np.mean([d.report.health_score for d in domains]))
        else:
            health_score = NEUTRAL_HEALTH

        scored = [u for u in units if u.scored]
        overall = [u.score.overall for u in scored]
        upgrade = [u.score.upgrade_readiness for u in scored]
        upgrade_mean: Optional[float] = _round(np.mean(upgrade)) if upgrade else None

        tiers = Counter(u.score.risk_tier for u in scored)
        compatibility = Counter(
            u.compatibility for u in units if u.compatibility and u.profile.origin is not Origin.CORE
        )
        families: Counter = Counter()
        for unit in units:
            if unit.profile is not None:
                families.update(f.family.value for f in unit.profile.findings)

        return ReportSummary(
            health_score=health_score,
            health=health_status(health_score),
            units_total=len(units),
            units_failed=sum(1 for u in units if u.status == STATUS_FAILED),
            domains_failed=sum(1 for d in domains if d.status == DOMAIN_FAILED),
            unit_scores=score_statistics(overall),
            upgrade_readiness=upgrade_mean,
            upgrade_readiness_level=readiness_level(upgrade_mean) if upgrade_mean is not None else None,
            risk_tiers=tuple((tier, tiers.get(tier, 0)) for tier in RISK_TIERS),
            findings_by_family=tuple((f.value, families.get(f.value, 0)) for f in SCORED_FAMILIES),
            total_effort_hours=_round(sum(u.score.effort.total_hours for u in scored)),
            compatibility=tuple(
                (status, compatibility.get(status, 0)) for status in (COMPATIBLE, INCOMPATIBLE, UNKNOWN)
            ),
        )
