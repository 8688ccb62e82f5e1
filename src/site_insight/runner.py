"""Runs a whole-site analysis: one pool task per unit and per domain.

Tasks are independent and read-only. Results are merged by the
:class:`ReportAggregator` on the calling thread once every task has
finished, failed, timed out or been cancelled.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, Sequence

from .cache import FindingCache
from .config import AnalysisConfig
from .domains import (
    DOMAIN_FAILED,
    DomainAnalyzer,
    EmptySiteStateProvider,
    SiteState,
    SiteStateProvider,
    default_domain_analyzers,
    neutral_report,
)
from .exceptions import (
    AnalysisCancelledError,
    AnalyzerTimeoutError,
    ConfigurationError,
    DomainAnalysisError,
    ErrorCode,
    InvalidPathError,
    UnitAnalysisError,
    UnitNotFoundError,
)
from .logging_config import get_logger
from .report import DomainResult, ReportAggregator, SiteReport, TaskError, UnitResult
from .scanning import DetectorRegistry, PatternScanner, load_detector_table
from .scoring import ScoringEngine
from .units import STATUS_FAILED, InfoYamlMetadataProvider, MetadataProvider, UnitAnalyzer, UnitInfo

logger = get_logger(__name__)

POLL_INTERVAL_SECONDS = 0.05


def build_registry(config: AnalysisConfig) -> DetectorRegistry:
    """The bundled detectors, or the table named by ``config.detector_table``.

    Raises:
        DetectorTableError: If the configured table is malformed
    """
    if config.detector_table:
        return load_detector_table(Path(config.detector_table))
    return DetectorRegistry.default()


def nested_unit_dirs(unit: UnitInfo, units: Sequence[UnitInfo], root: Path) -> list[Path]:
    """Directories of units living inside ``unit``'s directory."""
    own = PurePosixPath(unit.path)
    return [
        root / other.path
        for other in units
        if other.name != unit.name and own in PurePosixPath(other.path).parents
    ]


@dataclass
class _Task:
    """One submitted unit or domain task."""

    kind: str  # unit | domain
    name: str
    timeout: float
    cancel: threading.Event = field(default_factory=threading.Event)
    future: Optional[Future] = None
    started_at: Optional[float] = None

    def overdue(self, now: float) -> bool:
        return self.started_at is not None and now - self.started_at > self.timeout


class SiteAnalysisRunner:
    """Analyzes every unit and domain of a site and returns its report.

    Args:
        config: Analysis configuration
        site_state: Source of database/content/security/performance state
        metadata: Unit inventory; defaults to ``*.info.yml`` discovery
            under the site root, fed by the site state
        domain_analyzers: Defaults to the bundled analyzers
        clock: Returns the report timestamp; defaults to now (UTC)
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        site_state: Optional[SiteStateProvider] = None,
        metadata: Optional[MetadataProvider] = None,
        domain_analyzers: Optional[Sequence[DomainAnalyzer]] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        self.config = config or AnalysisConfig()
        self.site_state = site_state or EmptySiteStateProvider()
        self.metadata = metadata
        self.domain_analyzers = list(domain_analyzers) if domain_analyzers is not None else None
        self.clock = clock

    def run(
        self,
        root: Path,
        target_version: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> SiteReport:
        """Analyze the site rooted at ``root``.

        Raises:
            InvalidPathError: If ``root`` is not a directory
            DetectorTableError: If the detector table is malformed
            MetadataProviderError: If units or site state cannot be listed
        """
        root = Path(root)
        if not root.is_dir():
            raise InvalidPathError(root, "site root is not a directory")
        if cancel is None:
            cancel = threading.Event()
        target = target_version or self.config.target_version

        registry = build_registry(self.config)
        state = self.site_state.load()
        metadata = self.metadata or InfoYamlMetadataProvider(
            root,
            enabled=state.enabled_extensions,
            test_coverage=state.test_coverage,
            overrides=state.unit_overrides,
        )
        units = metadata.list_units()
        analyzers = self.domain_analyzers if self.domain_analyzers is not None else default_domain_analyzers()

        cache = FindingCache(
            cache_dir=self.config.cache_dir,
            ttl_hours=self.config.cache_ttl_hours,
            enabled=self.config.cache_enabled,
        )
        try:
            unit_analyzer = UnitAnalyzer(
                PatternScanner(registry),
                exclude_patterns=self.config.exclude_patterns,
                allow_hidden=self.config.allow_hidden_files,
                follow_symlinks=self.config.follow_symlinks,
                max_file_size=self.config.max_file_size_bytes,
                max_files=self.config.max_files_per_unit,
                cache=cache,
            )
            engine = ScoringEngine(self.config.scoring)
            unit_results, domain_results = self._execute(
                root, units, analyzers, state, unit_analyzer, engine, cancel
            )
        finally:
            cache.close()

        warnings = []
        if cancel.is_set():
            warnings.append("run cancelled before all tasks finished")

        aggregator = ReportAggregator(
            target_version=target,
            root=str(root),
            detector_fingerprint=registry.fingerprint,
            scoring=self.config.scoring,
        )
        return aggregator.aggregate(
            unit_results,
            domain_results,
            generated_at=self.clock() if self.clock else None,
            warnings=warnings,
        )

    def _execute(
        self,
        root: Path,
        units: list[UnitInfo],
        analyzers: list[DomainAnalyzer],
        state: SiteState,
        unit_analyzer: UnitAnalyzer,
        engine: ScoringEngine,
        cancel: threading.Event,
    ) -> tuple[list[UnitResult], list[DomainResult]]:
        workers = self.config.effective_workers
        logger.info(f"Analyzing {len(units)} units and {len(analyzers)} domains with {workers} workers")

        tasks: list[_Task] = []
        results: dict[tuple[str, str], object] = {}
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="site-insight")
        try:
            for unit in units:
                task = _Task("unit", unit.name, self.config.unit_timeout_seconds)
                skip = nested_unit_dirs(unit, units, root)

                def unit_job(task=task, unit=unit, skip=skip):
                    task.started_at = time.monotonic()
                    if cancel.is_set():
                        task.cancel.set()
                    profile = unit_analyzer.analyze(
                        root / unit.path,
                        unit.kind,
                        info=unit,
                        site_root=root,
                        skip_dirs=skip,
                        cancel=task.cancel,
                    )
                    return profile, engine.score(profile)

                task.future = executor.submit(unit_job)
                tasks.append(task)

            for analyzer in analyzers:
                task = _Task("domain", analyzer.name, self.config.domain_timeout_seconds)

                def domain_job(task=task, analyzer=analyzer):
                    task.started_at = time.monotonic()
                    if cancel.is_set():
                        raise AnalysisCancelledError(task.name, "run cancelled")
                    return analyzer.analyze(state)

                task.future = executor.submit(domain_job)
                tasks.append(task)

            self._collect(tasks, results, cancel)
        except BaseException:
            # Operator abort or a fatal error: stop every in-flight task
            cancel.set()
            for task in tasks:
                task.cancel.set()
            raise
        finally:
            # Overdue tasks keep running until their next cancellation check
            executor.shutdown(wait=False, cancel_futures=True)

        analyzer_by_name = {a.name: a for a in analyzers}
        unit_results = [self._unit_result(t, results[(t.kind, t.name)]) for t in tasks if t.kind == "unit"]
        domain_results = [
            self._domain_result(t, analyzer_by_name[t.name], results[(t.kind, t.name)])
            for t in tasks
            if t.kind == "domain"
        ]
        return unit_results, domain_results

    def _collect(self, tasks: list[_Task], results: dict, cancel: threading.Event) -> None:
        pending = {t.future: t for t in tasks}
        while pending:
            done, _ = wait(list(pending), timeout=POLL_INTERVAL_SECONDS, return_when=FIRST_COMPLETED)
            for future in done:
                task = pending.pop(future)
                results[(task.kind, task.name)] = self._outcome(task)

            now = time.monotonic()
            for future, task in list(pending.items()):
                if cancel.is_set():
                    task.cancel.set()
                    if future.cancel() or task.kind == "domain":
                        pending.pop(future)
                        results[(task.kind, task.name)] = AnalysisCancelledError(task.name, "run cancelled")
                        continue
                if task.overdue(now):
                    task.cancel.set()
                    pending.pop(future)
                    results[(task.kind, task.name)] = AnalyzerTimeoutError(task.name, task.timeout)
                    logger.warning(f"{task.kind.capitalize()} task '{task.name}' exceeded {task.timeout:g}s")

    def _outcome(self, task: _Task):
        try:
            return task.future.result()
        except ConfigurationError:
            raise
        except Exception as e:
            return e

    def _unit_result(self, task: _Task, outcome) -> UnitResult:
        if isinstance(outcome, tuple):
            profile, score = outcome
            return UnitResult(name=task.name, status=profile.status, profile=profile, score=score)

        if isinstance(outcome, AnalyzerTimeoutError):
            error = UnitAnalysisError(
                f"Unit '{task.name}' exceeded {outcome.timeout:g}s timeout",
                ErrorCode.SI201,
                context={"unit": task.name},
                recovery_hint="Raise unit_timeout_seconds or exclude large vendored directories",
            )
        elif isinstance(outcome, AnalysisCancelledError):
            error = UnitAnalysisError(f"Unit '{task.name}' cancelled", ErrorCode.SI202, context={"unit": task.name})
        elif isinstance(outcome, UnitNotFoundError):
            error = UnitAnalysisError(str(outcome), ErrorCode.SI200, context={"unit": task.name})
        else:
            error = UnitAnalysisError(
                f"Unit '{task.name}' failed: {outcome}", ErrorCode.SI203, context={"unit": task.name}
            )
        logger.warning(str(error))
        return UnitResult(
            name=task.name,
            status=STATUS_FAILED,
            error=TaskError(code=error.code.value, message=error.message),
        )

    def _domain_result(self, task: _Task, analyzer: DomainAnalyzer, outcome) -> DomainResult:
        if not isinstance(outcome, Exception):
            return DomainResult(domain=task.name, status=outcome.status, report=outcome)

        if isinstance(outcome, AnalyzerTimeoutError):
            error = DomainAnalysisError(
                f"Domain '{task.name}' exceeded {outcome.timeout:g}s timeout",
                ErrorCode.SI300,
                context={"domain": task.name},
            )
        elif isinstance(outcome, AnalysisCancelledError):
            error = DomainAnalysisError(
                f"Domain '{task.name}' cancelled", ErrorCode.SI301, context={"domain": task.name}
            )
        else:
            error = DomainAnalysisError(
                f"Domain '{task.name}' failed: {outcome}", ErrorCode.SI302, context={"domain": task.name}
            )
        logger.warning(str(error))
        return DomainResult(
            domain=task.name,
            status=DOMAIN_FAILED,
            report=neutral_report(task.name, analyzer.max_expected_issues, error.message),
            error=TaskError(code=error.code.value, message=error.message),
        )
