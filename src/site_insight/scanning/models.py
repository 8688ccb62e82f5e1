"""Data models for the pattern scanner."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

SNIPPET_LIMIT = 200
UNREADABLE_DETECTOR = "unreadable"


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 for critical through 3 for low; sorts most severe first."""
        return _SEVERITY_RANK[self]

    def escalate(self, to: "Severity") -> "Severity":
        """Return the more severe of self and ``to``. Never lowers."""
        return to if to.rank < self.rank else self


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class Family(Enum):
    DEPRECATED_API = "deprecated-api"
    SECURITY = "security"
    CODING_STANDARD = "coding-standard"
    PERFORMANCE = "performance"
    HOOK_SHAPE = "hook-shape"
    IO = "io"  # unreadable files; never scored


class Origin(Enum):
    CORE = "core"
    CONTRIB = "contrib"
    CUSTOM = "custom"


class LanguageFamily(Enum):
    PHP = "php"
    TEMPLATE = "template"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"


@dataclass(frozen=True)
class Detector:
    """A named rule mapping a single-line pattern to a severity.

    ``pattern`` must match for the detector to fire; when ``exclude`` is set
    and also matches the same line, the hit is discarded. A pattern with an
    ``owner`` group only fires when that group equals the scanned unit's
    machine name.
    """

    id: str
    family: Family
    pattern: re.Pattern
    severity: Severity
    message: str
    languages: frozenset[LanguageFamily] = frozenset({LanguageFamily.PHP})
    replacement: Optional[str] = None
    exclude: Optional[re.Pattern] = None

    def matches(self, line: str, unit: str = "") -> bool:
        match = self.pattern.search(line)
        if match is None:
            return False
        if unit and "owner" in self.pattern.groupindex and match.group("owner") != unit:
            return False
        return self.exclude is None or self.exclude.search(line) is None

    def applies_to(self, language: LanguageFamily) -> bool:
        return language in self.languages


@dataclass(frozen=True)
class Finding:
    """One located hit of a detector."""

    detector_id: str
    family: Family
    file: str  # relative to the unit root, forward slashes
    line: int  # 1-based
    snippet: str
    severity: Severity
    message: str
    replacement: Optional[str] = None

    @property
    def key(self) -> tuple[str, str, int]:
        """Dedup key within a unit: (detector, file, line)."""
        return (self.detector_id, self.file, self.line)

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.file, self.line, self.detector_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "detector_id": self.detector_id,
            "family": self.family.value,
            "file": self.file,
            "line": self.line,
            "snippet": self.snippet,
            "severity": self.severity.value,
            "message": self.message,
            "replacement": self.replacement,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Finding":
        return cls(
            detector_id=data["detector_id"],
            family=Family(data["family"]),
            file=data["file"],
            line=int(data["line"]),
            snippet=data["snippet"],
            severity=Severity(data["severity"]),
            message=data["message"],
            replacement=data.get("replacement"),
        )


@dataclass(frozen=True)
class SymbolRecord:
    """Inventory entry for a declared function or class."""

    name: str
    kind: str  # function | class
    role: str  # hook, preprocess, form-builder, validator, ...
    file: str
    line: int
    hook: Optional[str] = None  # implemented hook name, e.g. "form_alter"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "role": self.role,
            "file": self.file,
            "line": self.line,
            "hook": self.hook,
        }


@dataclass
class FileScan:
    """Everything extracted from one read of one file."""

    findings: list[Finding] = field(default_factory=list)
    symbols: list[SymbolRecord] = field(default_factory=list)
    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    decision_points: int = 0
    functions: int = 0
    readable: bool = True


def trim_snippet(line: str) -> str:
    snippet = line.strip()
    if len(snippet) > SNIPPET_LIMIT:
        snippet = snippet[:SNIPPET_LIMIT]
    return snippet
