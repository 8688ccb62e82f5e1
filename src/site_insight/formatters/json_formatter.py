"""JSON formatter for site reports."""

import json

from ..report import SiteReport
from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Render the report as key-sorted JSON."""

    def render(self, report: SiteReport) -> None:
        print(self.format(report))

    def format(self, report: SiteReport) -> str:
        return json.dumps(report.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)
