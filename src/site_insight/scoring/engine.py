"""Pure scoring of unit profiles.

Every sub-score starts at 100, loses fixed points per finding and is
floored at 0. The overall score is a fixed weighted sum of the five
sub-scores.
"""

from __future__ import annotations

from ..config import ScoringConfig
from ..scanning.models import Origin, Severity
from ..units.models import UnitProfile
from .models import EffortEstimate, ScoreBreakdown

WEIGHTS: dict[str, float] = {
    "security": 0.30,
    "code_quality": 0.25,
    "performance": 0.20,
    "upgrade_readiness": 0.15,
    "documentation": 0.10,
}

# ── Risk factors ──────────────────────────────────────────────────
FACTOR_SECURITY = "security_findings"
FACTOR_DEPRECATED = "deprecated"
FACTOR_CUSTOM = "custom_code"
FACTOR_DISABLED = "disabled"
FACTOR_LOW_COVERAGE = "low_test_coverage"


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def risk_tier(factor_count: int) -> str:
    if factor_count >= 5:
        return "critical"
    if factor_count >= 3:
        return "high"
    if factor_count >= 1:
        return "medium"
    return "low"


class ScoringEngine:
    """Converts a :class:`UnitProfile` into a :class:`ScoreBreakdown`.

    Pure: no I/O and no state between calls.
    """

    def __init__(self, config: ScoringConfig = ScoringConfig()):
        self.config = config

    def score(self, profile: UnitProfile) -> ScoreBreakdown:
        security = self.security_score(profile)
        code_quality = self.code_quality_score(profile)
        performance = clamp(100.0 - profile.performance_count * self.config.performance_penalty)
        upgrade = self.upgrade_score(profile)
        documentation = clamp(profile.documentation.score)

        subs = {
            "security": round(security, 2),
            "code_quality": round(code_quality, 2),
            "performance": round(performance, 2),
            "upgrade_readiness": round(upgrade, 2),
            "documentation": round(documentation, 2),
        }
        overall = round(clamp(sum(subs[name] * weight for name, weight in WEIGHTS.items())), 2)
        factors = self.risk_factors(profile)

        return ScoreBreakdown(
            code_quality=subs["code_quality"],
            security=subs["security"],
            performance=subs["performance"],
            upgrade_readiness=subs["upgrade_readiness"],
            documentation=subs["documentation"],
            overall=overall,
            risk_tier=risk_tier(len(factors)),
            risk_factors=factors,
            effort=self.effort(profile),
        )

    def security_score(self, profile: UnitProfile) -> float:
        c = self.config
        counts = profile.security_by_severity()
        penalty = (
            counts[Severity.CRITICAL] * c.critical_security_penalty
            + counts[Severity.HIGH] * c.high_security_penalty
        )
        return clamp(100.0 - penalty)

    def code_quality_score(self, profile: UnitProfile) -> float:
        c = self.config
        excess = max(0.0, profile.complexity - c.complexity_threshold)
        return clamp(100.0 - profile.style_count * c.style_penalty - excess * c.complexity_penalty)

    def upgrade_score(self, profile: UnitProfile) -> float:
        if profile.deprecated:
            return 0.0
        return clamp(100.0 - profile.deprecated_count * self.config.deprecated_penalty)

    def risk_factors(self, profile: UnitProfile) -> tuple[str, ...]:
        factors = []
        if profile.security_count > 0:
            factors.append(FACTOR_SECURITY)
        if profile.deprecated:
            factors.append(FACTOR_DEPRECATED)
        if profile.origin is Origin.CUSTOM:
            factors.append(FACTOR_CUSTOM)
        if not profile.enabled:
            factors.append(FACTOR_DISABLED)
        if profile.test_coverage is not None and profile.test_coverage < self.config.low_test_coverage:
            factors.append(FACTOR_LOW_COVERAGE)
        return tuple(factors)

    def effort(self, profile: UnitProfile) -> EffortEstimate:
        c = self.config
        items = [
            ("security", profile.security_count * c.security_hours),
            ("deprecated", profile.deprecated_count * c.deprecated_hours),
            ("style", profile.style_count * c.style_hours),
        ]
        # Unmeasured coverage adds no hours rather than an assumed value
        if profile.test_coverage is not None and profile.test_coverage < c.test_coverage_target:
            items.append(("testing", c.testing_hours))
        if profile.documentation.score < c.documentation_target:
            items.append(("documentation", c.documentation_hours))

        items = [(name, hours) for name, hours in items if hours > 0]
        total = c.base_hours + sum(hours for _, hours in items)

        if total > 100:
            complexity, confidence = "high", "medium"
        elif total >= 40:
            complexity, confidence = "medium", "high"
        else:
            complexity, confidence = "low", "high"

        return EffortEstimate(
            base_hours=c.base_hours,
            items=tuple(items),
            total_hours=round(total, 2),
            complexity=complexity,
            confidence=confidence,
        )
