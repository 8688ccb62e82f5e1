"""CSV formatter for site reports.

One ``section,name,metric,value`` row per scalar, in this order: metadata,
summary, each domain, each unit, each finding, each recommendation.
Nested fields are flattened into dotted metric names; lists of scalars are
joined with ``;``. Values that were not measured are written empty.
"""

import csv
import io
from typing import Any, Iterator

from ..report import SiteReport
from .base import BaseFormatter

HEADER = ("section", "name", "metric", "value")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(data: dict[str, Any], prefix: str = "") -> Iterator[tuple[str, str]]:
    for key in sorted(data):
        value = data[key]
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _flatten(value, f"{name}.")
        elif isinstance(value, list):
            # Lists of records get their own sections
            if all(not isinstance(v, (dict, list)) for v in value):
                yield name, ";".join(_cell(v) for v in value)
        else:
            yield name, _cell(value)


class CsvFormatter(BaseFormatter):
    """Render the report as a flat CSV projection."""

    def render(self, report: SiteReport) -> None:
        print(self.format(report), end="")

    def format(self, report: SiteReport) -> str:
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(HEADER)

        for metric, value in _flatten(report.metadata.to_dict()):
            writer.writerow(("metadata", "", metric, value))
        for metric, value in _flatten(report.summary.to_dict()):
            writer.writerow(("summary", "", metric, value))

        for domain in report.domains:
            data = domain.to_dict()
            data.pop("domain")
            for metric, value in _flatten(data):
                writer.writerow(("domain", domain.domain, metric, value))

        for unit in report.units:
            data = unit.to_dict()
            data.pop("name")
            for metric, value in _flatten(data):
                writer.writerow(("unit", unit.name, metric, value))

        for unit in report.units:
            if unit.profile is None:
                continue
            for finding in unit.profile.findings:
                writer.writerow((
                    "finding",
                    unit.name,
                    finding.detector_id,
                    f"{finding.file}:{finding.line}:{finding.severity.value}",
                ))

        for rec in report.recommendations:
            writer.writerow(("recommendation", rec.source, f"{rec.priority}.{rec.category}", rec.message))

        return output.getvalue()
