"""Exception hierarchy for Site Insight."""

from .analysis import (
    AnalysisCancelledError,
    AnalysisError,
    AnalyzerTimeoutError,
    UnitNotFoundError,
)
from .base import SiteInsightError
from .config import (
    ConfigurationError,
    DetectorTableError,
    InvalidConfigError,
    InvalidPathError,
    MetadataProviderError,
)
from .taxonomy import (
    DomainAnalysisError,
    ErrorCode,
    ScanningError,
    SiteError,
    code_for,
    UnitAnalysisError,
)

__all__ = [
    "SiteInsightError",
    "AnalysisError",
    "UnitNotFoundError",
    "AnalyzerTimeoutError",
    "AnalysisCancelledError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "DetectorTableError",
    "MetadataProviderError",
    "ErrorCode",
    "SiteError",
    "ScanningError",
    "UnitAnalysisError",
    "DomainAnalysisError",
    "code_for",
]
