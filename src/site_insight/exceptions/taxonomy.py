"""Error codes attached to failed units and domains in a report.

Error Code Convention:
    SI1xx - Scanning errors
    SI2xx - Unit analysis errors
    SI3xx - Domain analysis errors
    SI5xx - Configuration errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Structured error codes for report consumers and logs."""

    # Scanning errors (SI1xx)
    SI100 = "SI100"  # File read error
    SI101 = "SI101"  # Not UTF-8 text
    SI102 = "SI102"  # Walk entry failed

    # Unit analysis errors (SI2xx)
    SI200 = "SI200"  # Unit path missing
    SI201 = "SI201"  # Unit task timed out
    SI202 = "SI202"  # Unit task cancelled
    SI203 = "SI203"  # Unit task raised

    # Domain analysis errors (SI3xx)
    SI300 = "SI300"  # Domain task timed out
    SI301 = "SI301"  # Domain task cancelled
    SI302 = "SI302"  # Domain task raised

    # Configuration errors (SI5xx)
    SI500 = "SI500"  # Detector table malformed
    SI501 = "SI501"  # Metadata provider failed
    SI502 = "SI502"  # Invalid setting


@dataclass
class SiteError(Exception):
    """Exception with structured context for logging and report output.

    Attributes:
        message: Human-readable error description
        code: Structured error code for categorization
        context: Additional context (unit name, domain, path)
        recoverable: Whether the run can continue without this task
        recovery_hint: Suggested fix for the user
    """

    message: str
    code: ErrorCode
    context: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = True
    recovery_hint: str | None = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def to_json(self) -> dict[str, Any]:
        """Structured logging format."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
        }


class ScanningError(SiteError):
    """Errors while walking or reading unit files (SI1xx)."""

    pass


class UnitAnalysisError(SiteError):
    """Errors while analyzing a single unit (SI2xx)."""

    pass


class DomainAnalysisError(SiteError):
    """Errors while running a whole-site domain analyzer (SI3xx)."""

    pass


def code_for(error: Exception) -> ErrorCode:
    """Map a fatal configuration exception to its error code."""
    from .config import DetectorTableError, MetadataProviderError

    if isinstance(error, DetectorTableError):
        return ErrorCode.SI500
    if isinstance(error, MetadataProviderError):
        return ErrorCode.SI501
    return ErrorCode.SI502
