"""Site log health: logging enabled, PHP errors, 404 rate, log age."""

from __future__ import annotations

from .base import DomainAnalyzer, DomainReport
from .state import SiteState

PHP_ERROR_LIMIT = 100
NOT_FOUND_PERCENT_LIMIT = 10.0
LOG_AGE_DAYS_LIMIT = 90.0


def percent_of(count: int, total: int) -> float:
    return round(count / total * 100.0, 2) if total > 0 else 0.0


class WatchdogAnalyzer(DomainAnalyzer):
    """Reads counts from the site log table.

    Rates need ``total_entries``; without it the raw counts are still
    checked but the 404 rate is not measured.
    """

    name = "logs"
    max_expected_issues = 3

    def analyze(self, state: SiteState) -> DomainReport:
        logs = state.watchdog
        report = self._start()

        if logs.logging_enabled is None:
            report.skip("logging_enabled")
        else:
            report.measured("logging_enabled", logs.logging_enabled)
            if not logs.logging_enabled:
                report.issue(
                    "logging",
                    "high",
                    "No logging module enabled; enable Database Logging (dblog) or Syslog",
                )

        if logs.php_errors is None:
            report.skip("php_errors")
        else:
            report.measured("php_errors", logs.php_errors)
            if logs.php_error_types is not None:
                report.measured("php_error_types", dict(logs.php_error_types))
            if logs.total_entries:
                report.measured("php_error_percent", percent_of(logs.php_errors, logs.total_entries))
            if logs.php_errors > PHP_ERROR_LIMIT:
                report.issue(
                    "php_errors",
                    "high",
                    f"{logs.php_errors} PHP errors logged; review and fix them",
                )
            elif logs.php_errors > 0:
                report.recommend("php_errors", "medium", "Some PHP errors logged; review and fix them")

        if logs.not_found is None or logs.total_entries is None:
            report.skip("not_found_percent")
        else:
            rate = percent_of(logs.not_found, logs.total_entries)
            report.measured("not_found_percent", rate)
            if rate >= NOT_FOUND_PERCENT_LIMIT:
                report.issue(
                    "404_errors",
                    "medium",
                    f"{rate:g}% of log entries are 404s; fix broken links or add redirects",
                )

        if logs.log_age_days is None:
            report.skip("log_age_days")
        else:
            report.measured("log_age_days", logs.log_age_days)
            if logs.log_age_days > LOG_AGE_DAYS_LIMIT:
                report.recommend(
                    "log_maintenance",
                    "low",
                    f"Log entries span {logs.log_age_days:g} days; set up log rotation",
                )

        return report.build(self.max_expected_issues)
