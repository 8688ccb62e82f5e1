"""File walking, detector registry and the streaming pattern scanner."""

from .detectors import DetectorRegistry, default_detectors, load_detector_table
from .languages import SCANNABLE_SUFFIXES, language_for
from .models import (
    Detector,
    Family,
    FileScan,
    Finding,
    LanguageFamily,
    Origin,
    Severity,
    SymbolRecord,
)
from .scanner import OriginPolicy, PatternScanner
from .walker import FileWalker, WalkError

__all__ = [
    "Detector",
    "DetectorRegistry",
    "Family",
    "FileScan",
    "FileWalker",
    "Finding",
    "LanguageFamily",
    "Origin",
    "OriginPolicy",
    "PatternScanner",
    "SCANNABLE_SUFFIXES",
    "Severity",
    "SymbolRecord",
    "WalkError",
    "default_detectors",
    "language_for",
    "load_detector_table",
]
