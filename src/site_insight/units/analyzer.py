"""Per-unit analysis: one walk, one read per file, one immutable profile."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable, Optional

from ..cache import FindingCache, compute_context_hash
from ..exceptions import AnalysisCancelledError, UnitNotFoundError
from ..logging_config import get_logger
from ..scanning.models import FileScan, Finding, Origin, SymbolRecord
from ..scanning.scanner import PatternScanner
from ..scanning.walker import FileWalker
from .metadata import detect_origin
from .models import (
    STATUS_COMPLETE,
    STATUS_PARTIAL,
    DocumentationCoverage,
    LineCounts,
    UnitInfo,
    UnitKind,
    UnitProfile,
)

logger = get_logger(__name__)

README_NAMES = ("readme.md", "readme.txt", "readme", "readme.rst")
CHANGELOG_NAMES = ("changelog.md", "changelog.txt", "changelog", "changes.md", "changes.txt")

# ── Documentation heuristic weights (sum to 100) ─────────────────
README_POINTS = 40.0
CHANGELOG_POINTS = 20.0
COMMENT_POINTS = 40.0
FULL_COMMENT_RATIO = 0.20


def documentation_coverage(unit_dir: Path, line_counts: LineCounts) -> DocumentationCoverage:
    """Score documentation from readme/changelog presence and comment ratio.

    A unit without code lines gets the full comment component.
    """
    try:
        names = {entry.name.lower() for entry in unit_dir.iterdir() if entry.is_file()}
    except OSError as e:
        logger.warning(f"Cannot list {unit_dir}: {e}")
        names = set()

    has_readme = any(name in names for name in README_NAMES)
    has_changelog = any(name in names for name in CHANGELOG_NAMES)
    ratio = line_counts.comment_ratio

    if line_counts.code == 0:
        comment_score = COMMENT_POINTS
    else:
        comment_score = COMMENT_POINTS * min(ratio / FULL_COMMENT_RATIO, 1.0)

    score = comment_score
    if has_readme:
        score += README_POINTS
    if has_changelog:
        score += CHANGELOG_POINTS

    return DocumentationCoverage(
        has_readme=has_readme,
        has_changelog=has_changelog,
        comment_ratio=ratio,
        score=min(score, 100.0),
    )


def complexity_proxy(decision_points: int, functions: int) -> float:
    """Approximate average cyclomatic complexity: 1 + decisions per function."""
    return 1.0 + decision_points / max(functions, 1)


class UnitAnalyzer:
    """Scans one unit and builds its :class:`UnitProfile`.

    Stateless between calls; safe to share across worker threads as long
    as each call gets its own walker (one is built per call).
    """

    def __init__(
        self,
        scanner: PatternScanner,
        exclude_patterns: Iterable[str] = (),
        allow_hidden: bool = False,
        follow_symlinks: bool = True,
        max_file_size: Optional[int] = None,
        max_files: Optional[int] = None,
        cache: Optional[FindingCache] = None,
    ):
        self.scanner = scanner
        self.exclude_patterns = tuple(exclude_patterns)
        self.allow_hidden = allow_hidden
        self.follow_symlinks = follow_symlinks
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.cache = cache

    def analyze(
        self,
        unit_path: Path,
        kind: UnitKind,
        info: Optional[UnitInfo] = None,
        site_root: Optional[Path] = None,
        skip_dirs: Iterable[Path] = (),
        cancel: Optional[threading.Event] = None,
    ) -> UnitProfile:
        """Analyze the unit rooted at ``unit_path``.

        Args:
            unit_path: Unit directory
            kind: module or theme
            info: Metadata for the unit; name defaults to the directory name
            site_root: Used to derive origin from the path convention
            skip_dirs: Nested unit directories that are analyzed on their own
            cancel: Checked between files; set to abort the unit

        Raises:
            UnitNotFoundError: If ``unit_path`` is not a directory
            AnalysisCancelledError: If ``cancel`` is set mid-walk
        """
        unit_path = Path(unit_path)
        name = info.name if info is not None else unit_path.name
        if not unit_path.is_dir():
            raise UnitNotFoundError(name, unit_path)

        origin = self._origin(unit_path, info, site_root)
        skip = tuple(Path(d).resolve() for d in skip_dirs)
        context = compute_context_hash({
            "detectors": self.scanner.registry.fingerprint,
            "policy": repr(self.scanner.policy),
            "unit": name,
            "origin": origin.value,
        })

        walker = FileWalker(
            exclude_patterns=self.exclude_patterns,
            allow_hidden=self.allow_hidden,
            follow_symlinks=self.follow_symlinks,
            max_file_size=self.max_file_size,
            max_files=self.max_files,
        )

        findings: dict[tuple[str, str, int], Finding] = {}
        symbols: list[SymbolRecord] = []
        totals = FileScan()
        files_scanned = 0
        warnings: list[str] = []

        for file in walker.walk(unit_path):
            if cancel is not None and cancel.is_set():
                raise AnalysisCancelledError(name, "run cancelled")
            if skip and any(_is_within(file, d) for d in skip):
                continue

            relative = file.relative_to(unit_path).as_posix()
            scan = self._scan_file(file, relative, origin, name, context)
            files_scanned += 1

            if not scan.readable:
                warnings.append(f"unreadable file {relative}")
            for finding in scan.findings:
                findings.setdefault((finding.detector_id, finding.file, finding.line), finding)
            symbols.extend(scan.symbols)
            totals.total_lines += scan.total_lines
            totals.code_lines += scan.code_lines
            totals.comment_lines += scan.comment_lines
            totals.blank_lines += scan.blank_lines
            totals.decision_points += scan.decision_points
            totals.functions += scan.functions

        for error in walker.errors:
            warnings.append(f"[{error.code.value}] skipped {_relative_to(error.path, unit_path)}: {error.reason}")

        line_counts = LineCounts(
            total=totals.total_lines,
            code=totals.code_lines,
            comment=totals.comment_lines,
            blank=totals.blank_lines,
        )
        ordered = tuple(sorted(findings.values(), key=lambda f: f.sort_key))
        profile = UnitProfile(
            name=name,
            kind=kind,
            origin=origin,
            path=str(unit_path),
            version=info.version if info else None,
            core_compatibility=info.core_compatibility if info else None,
            dependencies=info.dependencies if info else (),
            enabled=info.enabled if info else True,
            deprecated=info.deprecated if info else False,
            line_counts=line_counts,
            findings=ordered,
            symbols=tuple(sorted(symbols, key=lambda s: (s.file, s.line, s.name))),
            files_scanned=files_scanned,
            complexity=complexity_proxy(totals.decision_points, totals.functions),
            documentation=documentation_coverage(unit_path, line_counts),
            test_coverage=info.test_coverage if info else None,
            status=STATUS_PARTIAL if warnings else STATUS_COMPLETE,
            warnings=tuple(warnings),
        )
        logger.debug(
            f"Unit {name}: {files_scanned} files, {len(ordered)} findings, "
            f"origin={origin.value}, status={profile.status}"
        )
        return profile

    def _origin(self, unit_path: Path, info: Optional[UnitInfo], site_root: Optional[Path]) -> Origin:
        if info is not None and info.origin is not None:
            return info.origin
        if info is not None and site_root is None:
            return detect_origin(info.path)
        if site_root is not None:
            try:
                return detect_origin(unit_path.resolve().relative_to(Path(site_root).resolve()).as_posix())
            except ValueError:
                pass
        return detect_origin(unit_path.as_posix())

    def _scan_file(self, file: Path, relative: str, origin: Origin, unit: str, context: str) -> FileScan:
        if self.cache is None:
            return self.scanner.scan_file(file, relative, origin, unit)
        return self.cache.scan_through(
            file, relative, context, lambda: self.scanner.scan_file(file, relative, origin, unit)
        )


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.resolve().relative_to(directory)
        return True
    except ValueError:
        return False


def _relative_to(path: str, root: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return path
