"""Analysis-related exceptions: missing units, timeouts."""

from pathlib import Path
from typing import Optional

from .base import SiteInsightError


class AnalysisError(SiteInsightError):
    """Base class for analysis-related errors."""
    pass


class UnitNotFoundError(AnalysisError):
    """Raised when a unit's source directory does not exist."""

    def __init__(self, unit: str, path: Path):
        super().__init__(
            f"Unit not found: {unit}",
            details={"unit": unit, "path": str(path)},
        )
        self.unit = unit
        self.path = path


class AnalyzerTimeoutError(AnalysisError):
    """Recorded for a unit or domain task that exceeded its time limit."""

    def __init__(self, task: str, timeout: float):
        super().__init__(
            f"Task '{task}' exceeded {timeout:g}s timeout",
            details={"task": task, "timeout": f"{timeout:g}"},
        )
        self.task = task
        self.timeout = timeout


class AnalysisCancelledError(AnalysisError):
    """Raised inside a task when the run has been cancelled."""

    def __init__(self, task: str, reason: Optional[str] = None):
        details = {"task": task}
        if reason:
            details["reason"] = reason
        super().__init__(f"Task '{task}' cancelled", details=details)
        self.task = task
        self.reason = reason
