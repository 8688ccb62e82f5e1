"""Configuration exceptions: paths, settings, detector tables, metadata."""

from pathlib import Path
from typing import Any, Optional

from .base import SiteInsightError


class ConfigurationError(SiteInsightError):
    """Base class for configuration-related errors.

    Configuration errors are fatal to a run: no partial report is produced.
    """

    pass


class InvalidPathError(ConfigurationError):
    """Raised when a provided path is invalid."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class DetectorTableError(ConfigurationError):
    """Raised when a detector table is malformed."""

    def __init__(self, reason: str, detector_id: Optional[str] = None, source: Optional[Path] = None):
        details = {"reason": reason}
        if detector_id:
            details["detector"] = detector_id
        if source:
            details["source"] = str(source)
        super().__init__("Malformed detector table", details=details)
        self.reason = reason
        self.detector_id = detector_id
        self.source = source


class MetadataProviderError(ConfigurationError):
    """Raised when extension metadata or site state cannot be obtained."""

    def __init__(self, provider: str, reason: str):
        super().__init__(
            f"Metadata provider '{provider}' failed",
            details={"provider": provider, "reason": reason},
        )
        self.provider = provider
        self.reason = reason
