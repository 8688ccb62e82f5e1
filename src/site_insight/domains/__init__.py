"""Whole-site domain analyzers."""

from .base import (
    DOMAIN_COMPLETE,
    DOMAIN_FAILED,
    DOMAIN_PARTIAL,
    NEUTRAL_HEALTH,
    DomainAnalyzer,
    DomainReport,
    health_from_issues,
    health_status,
    neutral_report,
)
from .content import ContentAnalyzer
from .database import DatabaseAnalyzer
from .logs import WatchdogAnalyzer
from .performance import PerformanceConfigAnalyzer
from .posture import SecurityPostureAnalyzer
from .state import (
    EmptySiteStateProvider,
    JsonSiteStateProvider,
    SiteState,
    SiteStateProvider,
    site_state_from_dict,
)
from .system import SystemRequirementsAnalyzer


def default_domain_analyzers() -> list[DomainAnalyzer]:
    """Fresh analyzer instances for one run, in report order."""
    return [
        DatabaseAnalyzer(),
        ContentAnalyzer(),
        SecurityPostureAnalyzer(),
        PerformanceConfigAnalyzer(),
        SystemRequirementsAnalyzer(),
        WatchdogAnalyzer(),
    ]


__all__ = [
    "ContentAnalyzer",
    "DOMAIN_COMPLETE",
    "DOMAIN_FAILED",
    "DOMAIN_PARTIAL",
    "DatabaseAnalyzer",
    "DomainAnalyzer",
    "DomainReport",
    "EmptySiteStateProvider",
    "JsonSiteStateProvider",
    "NEUTRAL_HEALTH",
    "PerformanceConfigAnalyzer",
    "SecurityPostureAnalyzer",
    "SiteState",
    "SiteStateProvider",
    "SystemRequirementsAnalyzer",
    "WatchdogAnalyzer",
    "default_domain_analyzers",
    "health_from_issues",
    "health_status",
    "neutral_report",
    "site_state_from_dict",
]
