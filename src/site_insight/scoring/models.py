"""Score, risk and effort models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

RISK_TIERS = ("low", "medium", "high", "critical")


@dataclass(frozen=True)
class EffortEstimate:
    """Hours needed to bring a unit up to the target version."""

    base_hours: float
    items: tuple[tuple[str, float], ...]  # (category, hours), base excluded
    total_hours: float
    complexity: str  # low | medium | high
    confidence: str  # medium | high

    def hours_for(self, category: str) -> float:
        return sum(hours for name, hours in self.items if name == category)

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_hours": self.base_hours,
            "items": {name: hours for name, hours in self.items},
            "total_hours": self.total_hours,
            "complexity": self.complexity,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    code_quality: float
    security: float
    performance: float
    upgrade_readiness: float
    documentation: float
    overall: float
    risk_tier: str
    risk_factors: tuple[str, ...]
    effort: EffortEstimate

    @property
    def sub_scores(self) -> dict[str, float]:
        return {
            "code_quality": self.code_quality,
            "security": self.security,
            "performance": self.performance,
            "upgrade_readiness": self.upgrade_readiness,
            "documentation": self.documentation,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.sub_scores,
            "overall": self.overall,
            "risk_tier": self.risk_tier,
            "risk_factors": list(self.risk_factors),
            "effort": self.effort.to_dict(),
        }
