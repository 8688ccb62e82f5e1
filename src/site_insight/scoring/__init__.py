"""Unit scoring: sub-scores, risk tiers and effort estimates."""

from .engine import WEIGHTS, ScoringEngine, risk_tier
from .models import RISK_TIERS, EffortEstimate, ScoreBreakdown

__all__ = [
    "EffortEstimate",
    "RISK_TIERS",
    "ScoreBreakdown",
    "ScoringEngine",
    "WEIGHTS",
    "risk_tier",
]
