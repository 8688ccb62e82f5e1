"""Performance configuration: page cache, aggregation, memory."""

from __future__ import annotations

from .base import DomainAnalyzer, DomainReport
from .state import SiteState

SHORT_CACHE_SECONDS = 300
MEMORY_LIMIT_PERCENT = 80.0


class PerformanceConfigAnalyzer(DomainAnalyzer):
    name = "performance"
    max_expected_issues = 4

    def analyze(self, state: SiteState) -> DomainReport:
        perf = state.performance
        report = self._start()

        if perf.page_cache_enabled is None and perf.page_cache_max_age is None:
            report.skip("page_cache")
        else:
            enabled = perf.page_cache_enabled
            max_age = perf.page_cache_max_age
            if enabled is not None:
                report.measured("page_cache_enabled", enabled)
            if max_age is not None:
                report.measured("page_cache_max_age", max_age)

            if enabled is False or max_age == 0:
                report.issue("performance", "high", "Enable page caching with a non-zero max age")
            elif max_age is not None and max_age < SHORT_CACHE_SECONDS:
                report.recommend(
                    "performance",
                    "medium",
                    "Raise the page cache max age to at least 5 minutes",
                )

        for setting, label in (("css_aggregation", "CSS"), ("js_aggregation", "JavaScript")):
            value = getattr(perf, setting)
            if value is None:
                report.skip(setting)
                continue
            report.measured(setting, value)
            if not value:
                report.issue("performance", "medium", f"Enable {label} aggregation")

        if perf.memory_usage_percent is None:
            report.skip("memory_usage_percent")
        else:
            report.measured("memory_usage_percent", perf.memory_usage_percent)
            if perf.memory_usage_percent > MEMORY_LIMIT_PERCENT:
                report.issue(
                    "performance",
                    "high",
                    "Memory usage above 80%; raise memory_limit or reduce per-request work",
                )

        return report.build(self.max_expected_issues)
