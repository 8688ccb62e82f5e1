"""Recommendations derived from a unit's profile and score."""

from __future__ import annotations

from typing import Optional

from ..config import ScoringConfig
from ..models import Recommendation
from ..scoring.models import ScoreBreakdown
from ..units.compatibility import INCOMPATIBLE
from ..units.models import UnitProfile

CODE_QUALITY_THRESHOLD = 70.0


def unit_recommendations(
    profile: UnitProfile,
    score: ScoreBreakdown,
    config: ScoringConfig = ScoringConfig(),
    compatibility: Optional[str] = None,
    target_version: Optional[str] = None,
) -> list[Recommendation]:
    """Recommendations for one risk-scored unit, in no particular order.

    Coverage and documentation targets come from ``config`` so they agree
    with the effort estimate.
    """
    source = f"unit:{profile.name}"
    recs: list[Recommendation] = []

    def add(category: str, priority: str, message: str) -> None:
        recs.append(Recommendation(category=category, priority=priority, message=message, source=source))

    if profile.security_count:
        add(
            "security",
            "critical",
            f"Fix {profile.security_count} security findings in {profile.name}",
        )
    if score.overall < CODE_QUALITY_THRESHOLD:
        add("code_quality", "high", f"Improve code quality of {profile.name}")
    if profile.deprecated:
        add("upgrade", "high", f"{profile.name} is deprecated; plan its replacement before upgrading")
    if compatibility == INCOMPATIBLE:
        add(
            "upgrade",
            "high",
            f"{profile.name} does not support core {target_version} "
            f"(requires {profile.core_compatibility}); update or patch it before upgrading",
        )
    if profile.deprecated_count:
        add(
            "upgrade",
            "high",
            f"Replace {profile.deprecated_count} deprecated API uses in {profile.name}",
        )
    if profile.performance_count:
        add(
            "performance",
            "medium",
            f"Fix {profile.performance_count} performance anti-patterns in {profile.name}",
        )
    if profile.test_coverage is not None and profile.test_coverage < config.test_coverage_target:
        add(
            "testing",
            "medium",
            f"Raise test coverage of {profile.name} above {config.test_coverage_target:g}%",
        )
    if profile.documentation.score < config.documentation_target:
        add("documentation", "low", f"Document {profile.name} (README, CHANGELOG, inline comments)")
    return recs
