"""Site report models and aggregation."""

from .aggregator import ReportAggregator, score_statistics
from .models import (
    DomainResult,
    ReportMetadata,
    ReportSummary,
    ScoreStatistics,
    SiteReport,
    TaskError,
    UnitResult,
    readiness_level,
)
from .recommendations import unit_recommendations

__all__ = [
    "DomainResult",
    "ReportAggregator",
    "ReportMetadata",
    "ReportSummary",
    "ScoreStatistics",
    "SiteReport",
    "TaskError",
    "UnitResult",
    "readiness_level",
    "score_statistics",
    "unit_recommendations",
]
