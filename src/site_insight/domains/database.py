"""Database health: storage engines, collations, fragmentation, size, slow queries."""

from __future__ import annotations

from .base import DomainAnalyzer, DomainReport
from .state import SiteState

PREFERRED_ENGINE = "innodb"
PREFERRED_CHARSET = "utf8mb4"
FRAGMENTATION_MB = 10.0
HEAVY_FRAGMENTATION_MB = 100.0
LARGE_DATABASE_MB = 1000.0
SLOW_QUERY_LIMIT = 100


class DatabaseAnalyzer(DomainAnalyzer):
    name = "database"
    max_expected_issues = 4

    def analyze(self, state: SiteState) -> DomainReport:
        db = state.database
        report = self._start()

        if db.tables is None:
            report.skip("tables")
        else:
            tables = sorted(db.tables, key=lambda t: t.name)
            legacy = [t.name for t in tables if t.engine and t.engine.lower() != PREFERRED_ENGINE]
            report.measured("table_count", len(tables))
            report.measured("non_innodb_tables", len(legacy))
            if legacy:
                report.issue(
                    "database",
                    "high",
                    f"Convert {len(legacy)} tables to InnoDB ({', '.join(legacy[:5])})",
                )

            collations = sorted({t.collation for t in tables if t.collation})
            report.measured("collations", collations)
            mismatched = len(collations) > 1 or (
                db.default_collation is not None
                and any(c != db.default_collation for c in collations)
            )
            legacy_charset = any(not c.startswith(PREFERRED_CHARSET) for c in collations)
            if db.default_collation is not None and not db.default_collation.startswith(PREFERRED_CHARSET):
                legacy_charset = True
            if mismatched or legacy_charset:
                report.issue(
                    "database",
                    "medium",
                    "Standardize table collations on utf8mb4",
                )

            fragmented = round(sum(t.data_free_mb for t in tables), 2)
            report.measured("fragmented_mb", fragmented)
            if fragmented > HEAVY_FRAGMENTATION_MB:
                report.issue("database", "high", "Optimize tables to reclaim fragmented space")
            elif fragmented > FRAGMENTATION_MB:
                report.issue("database", "medium", "Optimize tables to reclaim fragmented space")

        if db.size_mb is None:
            report.skip("size_mb")
        else:
            report.measured("size_mb", db.size_mb)
            if db.size_mb > LARGE_DATABASE_MB:
                report.issue(
                    "database",
                    "medium",
                    "Database exceeds 1 GB; archive old revisions, logs and cache tables",
                )

        if db.slow_queries is None:
            report.skip("slow_queries")
        else:
            report.measured("slow_queries", db.slow_queries)
            if db.slow_queries > SLOW_QUERY_LIMIT:
                report.issue("database", "high", "Review the slow query log and add missing indexes")

        return report.build(self.max_expected_issues)
