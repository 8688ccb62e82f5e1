"""Streaming pattern scanner.

Each file is read one line at a time. Detector matching, line counting,
the complexity counters and the symbol inventory all run off that single
read, so memory stays bounded by the longest line rather than the file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions import ErrorCode, ScanningError
from ..logging_config import get_logger
from .detectors import DetectorRegistry
from .languages import language_for
from .models import (
    UNREADABLE_DETECTOR,
    Detector,
    Family,
    FileScan,
    Finding,
    LanguageFamily,
    Origin,
    Severity,
    trim_snippet,
)
from .symbols import extract_symbol, template_symbol

logger = get_logger(__name__)

PATTERN_FAMILIES = frozenset({
    Family.DEPRECATED_API,
    Family.SECURITY,
    Family.CODING_STANDARD,
    Family.PERFORMANCE,
})

_DECISION_RE = re.compile(r"\b(?:if|elseif|for|foreach|while|case|catch)\b|&&|\|\||\s\?\s")
_FUNCTION_RE = re.compile(r"\bfunction\b")


@dataclass(frozen=True)
class OriginPolicy:
    """Which detector families run for each unit origin, and escalations.

    ``custom_security_floor`` raises the severity of security findings in
    custom units to at least that level; it never lowers a severity.
    """

    core_families: frozenset[Family] = frozenset()
    contrib_families: frozenset[Family] = PATTERN_FAMILIES
    custom_families: frozenset[Family] = PATTERN_FAMILIES
    custom_security_floor: Optional[Severity] = Severity.HIGH

    def families_for(self, origin: Origin) -> frozenset[Family]:
        if origin is Origin.CORE:
            return self.core_families
        if origin is Origin.CUSTOM:
            return self.custom_families
        return self.contrib_families

    def severity_for(self, detector: Detector, origin: Origin) -> Severity:
        severity = detector.severity
        if (
            origin is Origin.CUSTOM
            and detector.family is Family.SECURITY
            and self.custom_security_floor is not None
        ):
            severity = severity.escalate(self.custom_security_floor)
        return severity


@dataclass(frozen=True)
class _CommentSyntax:
    line_prefixes: tuple[str, ...] = ()
    block_open: Optional[str] = None
    block_close: Optional[str] = None


_COMMENT_SYNTAX = {
    LanguageFamily.PHP: _CommentSyntax(("//", "#"), "/*", "*/"),
    LanguageFamily.SCRIPT: _CommentSyntax(("//",), "/*", "*/"),
    LanguageFamily.STYLESHEET: _CommentSyntax((), "/*", "*/"),
    LanguageFamily.TEMPLATE: _CommentSyntax((), "{#", "#}"),
}


@dataclass
class _LineCounter:
    """Block-comment aware line classifier."""

    syntax: _CommentSyntax
    in_block: bool = False

    def classify(self, stripped: str) -> str:
        if not stripped:
            return "blank"

        syntax = self.syntax
        if self.in_block:
            end = stripped.find(syntax.block_close)
            if end == -1:
                return "comment"
            self.in_block = False
            rest = stripped[end + len(syntax.block_close):].strip()
            return "code" if rest else "comment"

        for prefix in syntax.line_prefixes:
            # PHP 8 attributes start with ``#[`` and are code
            if stripped.startswith(prefix) and not stripped.startswith("#["):
                return "comment"

        if syntax.block_open is None:
            return "code"

        if stripped.startswith(syntax.block_open):
            end = stripped.find(syntax.block_close, len(syntax.block_open))
            if end == -1:
                self.in_block = True
                return "comment"
            rest = stripped[end + len(syntax.block_close):].strip()
            return "code" if rest else "comment"

        start = stripped.find(syntax.block_open)
        if start != -1 and stripped.find(syntax.block_close, start + len(syntax.block_open)) == -1:
            self.in_block = True
        return "code"


@dataclass
class PatternScanner:
    """Applies the detector registry to files.

    Attributes:
        registry: Detector table for this run
        policy: Origin policy deciding active families and escalation
    """

    registry: DetectorRegistry
    policy: OriginPolicy = field(default_factory=OriginPolicy)

    def scan(self, file: Path, detectors: Optional[Iterable[Detector]] = None) -> list[Finding]:
        """Return the findings of ``detectors`` (default: the registry) in one file.

        Findings carry the file name as given; no origin policy is applied.
        """
        language = language_for(file)
        if language is None:
            return []
        if detectors is None:
            active = self.registry.for_language(language)
        else:
            active = tuple(d for d in detectors if d.applies_to(language))
        result = self._scan(file, str(file), language, active, Origin.CONTRIB, unit="")
        return result.findings

    def scan_file(self, file: Path, relative: str, origin: Origin, unit: str) -> FileScan:
        """Scan one file of a unit with the origin policy applied."""
        language = language_for(file)
        if language is None:
            return FileScan()
        families = self.policy.families_for(origin)
        active = tuple(d for d in self.registry.for_language(language) if d.family in families)
        return self._scan(file, relative, language, active, origin, unit)

    def _scan(
        self,
        file: Path,
        relative: str,
        language: LanguageFamily,
        detectors: tuple[Detector, ...],
        origin: Origin,
        unit: str,
    ) -> FileScan:
        result = FileScan()
        counter = _LineCounter(_COMMENT_SYNTAX[language])
        inventory = language is LanguageFamily.PHP
        counts_complexity = language in (LanguageFamily.PHP, LanguageFamily.SCRIPT)
        if language is LanguageFamily.TEMPLATE:
            result.symbols.append(template_symbol(relative))

        try:
            with open(file, "r", encoding="utf-8", errors="strict", newline="") as handle:
                for line_no, raw in enumerate(handle, start=1):
                    if "\x00" in raw:
                        raise UnicodeDecodeError("utf-8", b"\x00", 0, 1, "NUL byte in text")
                    line = raw.rstrip("\r\n")
                    result.total_lines += 1

                    kind = counter.classify(line.strip())
                    if kind == "blank":
                        result.blank_lines += 1
                    elif kind == "comment":
                        result.comment_lines += 1
                    else:
                        result.code_lines += 1
                        if counts_complexity:
                            result.decision_points += len(_DECISION_RE.findall(line))
                            result.functions += len(_FUNCTION_RE.findall(line))
                        if inventory:
                            symbol = extract_symbol(line, line_no, relative, unit)
                            if symbol is not None:
                                result.symbols.append(symbol)

                    for detector in detectors:
                        # Commented-out legacy calls are not uses
                        if kind == "comment" and detector.family is Family.DEPRECATED_API:
                            continue
                        if detector.matches(line, unit):
                            result.findings.append(
                                Finding(
                                    detector_id=detector.id,
                                    family=detector.family,
                                    file=relative,
                                    line=line_no,
                                    snippet=trim_snippet(line),
                                    severity=self.policy.severity_for(detector, origin),
                                    message=detector.message,
                                    replacement=detector.replacement,
                                )
                            )
        except UnicodeDecodeError as e:
            return self._unreadable(relative, ErrorCode.SI101, f"not UTF-8 text: {e.reason}")
        except OSError as e:
            return self._unreadable(relative, ErrorCode.SI100, e.strerror or str(e))

        return result

    def _unreadable(self, relative: str, code: ErrorCode, reason: str) -> FileScan:
        error = ScanningError(
            message=f"Unreadable file {relative}",
            code=code,
            context={"file": relative, "reason": reason},
        )
        logger.warning(f"{error}: {reason}")
        finding = Finding(
            detector_id=UNREADABLE_DETECTOR,
            family=Family.IO,
            file=relative,
            line=1,
            snippet="",
            severity=Severity.LOW,
            message=f"File skipped: {reason}",
        )
        return FileScan(findings=[finding], readable=False)
