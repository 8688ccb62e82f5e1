"""Content model health: deprecated field types, unused bundles, volume."""

from __future__ import annotations

from .base import DomainAnalyzer, DomainReport
from .state import SiteState

DEPRECATED_FIELD_TYPES = {
    "field_collection": "Migrate field_collection fields to Paragraphs",
    "addressfield": "Migrate addressfield fields to the Address module",
    "field_permissions": "Replace field_permissions with core field access",
}
UNUSED_CONTENT_TYPE_LIMIT = 3
UNUSED_VOCABULARY_LIMIT = 2
LARGE_CONTENT_ITEMS = 100_000


class ContentAnalyzer(DomainAnalyzer):
    name = "content"
    max_expected_issues = 4

    def analyze(self, state: SiteState) -> DomainReport:
        content = state.content
        report = self._start()

        if content.fields is None:
            report.skip("fields")
        else:
            deprecated = sorted(
                (f for f in content.fields if f.type in DEPRECATED_FIELD_TYPES), key=lambda f: f.name
            )
            report.measured("field_count", len(content.fields))
            report.measured("deprecated_fields", [f.name for f in deprecated])
            if deprecated:
                report.issues += 1
                for field_type in sorted({f.type for f in deprecated}):
                    report.recommend("content", "high", DEPRECATED_FIELD_TYPES[field_type])

        if content.content_types is None:
            report.skip("content_types")
        else:
            unused = sorted(b.name for b in content.content_types if b.items == 0)
            report.measured("content_types", len(content.content_types))
            report.measured("unused_content_types", unused)
            if len(unused) > UNUSED_CONTENT_TYPE_LIMIT:
                report.issue(
                    "content",
                    "medium",
                    f"Remove or consolidate {len(unused)} unused content types",
                )
            total = sum(b.items for b in content.content_types)
            report.measured("content_items", total)
            if total > LARGE_CONTENT_ITEMS:
                report.recommend(
                    "content",
                    "low",
                    "Plan batched migrations; the site holds over 100,000 content items",
                )

        if content.vocabularies is None:
            report.skip("vocabularies")
        else:
            unused = sorted(v.name for v in content.vocabularies if v.items == 0)
            report.measured("vocabularies", len(content.vocabularies))
            report.measured("unused_vocabularies", unused)
            if len(unused) > UNUSED_VOCABULARY_LIMIT:
                report.issue(
                    "content",
                    "medium",
                    f"Remove {len(unused)} unused taxonomy vocabularies",
                )

        return report.build(self.max_expected_issues)
