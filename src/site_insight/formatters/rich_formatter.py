"""Rich terminal formatter for site reports."""

import io
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..report import SiteReport
from .base import BaseFormatter

console = Console()

NOT_MEASURED = "[dim]not measured[/dim]"
MAX_RECOMMENDATIONS = 15


def _health_label(health: str) -> str:
    colors = {"excellent": "green bold", "good": "green", "fair": "yellow", "poor": "red bold"}
    color = colors.get(health, "white")
    return f"[{color}]{health}[/{color}]"


def _risk_label(tier: str) -> str:
    if tier == "critical":
        return "[red bold]critical[/red bold]"
    elif tier == "high":
        return "[red]high[/red]"
    elif tier == "medium":
        return "[yellow]medium[/yellow]"
    else:
        return "[green]low[/green]"


def _priority_label(priority: str) -> str:
    return {
        "critical": "[red bold]CRITICAL[/red bold]",
        "high": "[red]HIGH[/red]",
        "medium": "[yellow]MEDIUM[/yellow]",
        "low": "[dim]LOW[/dim]",
    }[priority]


def _number(value: Optional[float]) -> str:
    return NOT_MEASURED if value is None else f"{value:.1f}"


class RichFormatter(BaseFormatter):
    """Summary panel, domain table, unit table and top recommendations."""

    def __init__(self, out: Optional[Console] = None):
        self.console = out or console

    def render(self, report: SiteReport) -> None:
        self._print(report, self.console)

    def format(self, report: SiteReport) -> str:
        buffer = io.StringIO()
        self._print(report, Console(file=buffer, width=120, no_color=True, highlight=False))
        return buffer.getvalue()

    def _print(self, report: SiteReport, out: Console) -> None:
        self._print_summary(report, out)
        self._print_domains(report, out)
        self._print_units(report, out)
        self._print_recommendations(report, out)
        self._print_warnings(report, out)

    def _print_summary(self, report: SiteReport, out: Console) -> None:
        summary = report.summary
        meta = report.metadata
        stats = summary.unit_scores
        lines = [
            f"Site health: {_health_label(summary.health)} ({summary.health_score:.1f}/100)",
            f"Target version: [cyan]{meta.target_version}[/cyan]",
            f"Units: {summary.units_total} ({summary.units_failed} failed)",
            f"Unit scores: mean {_number(stats.mean)}, median {_number(stats.median)}, "
            f"min {_number(stats.minimum)}",
            f"Upgrade readiness: {_number(summary.upgrade_readiness)}"
            + (f" ({summary.upgrade_readiness_level})" if summary.upgrade_readiness_level else ""),
            f"Core {meta.target_version} compatibility: "
            + ", ".join(f"{count} {status}" for status, count in summary.compatibility),
            f"Estimated effort: [yellow]{summary.total_effort_hours:.1f}h[/yellow]",
        ]
        out.print(
            Panel(
                "\n".join(lines),
                title="[bold cyan]Site Insight[/bold cyan]",
                subtitle=f"[dim]{meta.generated_at}[/dim]",
                expand=False,
            )
        )
        out.print()

    def _print_domains(self, report: SiteReport, out: Console) -> None:
        if not report.domains:
            return
        table = Table(title="Domains", show_lines=False)
        table.add_column("Domain", style="cyan")
        table.add_column("Status")
        table.add_column("Health", justify="right")
        table.add_column("Issues", justify="right")
        table.add_column("Not measured", style="dim")
        for domain in report.domains:
            r = domain.report
            table.add_row(
                domain.domain,
                domain.status,
                f"{r.health_score:.1f} {_health_label(r.health_status)}",
                f"{r.issues}/{r.max_expected_issues}",
                ", ".join(r.not_measured) or "-",
            )
        out.print(table)
        out.print()

    def _print_units(self, report: SiteReport, out: Console) -> None:
        if not report.units:
            out.print("[yellow]No units found.[/yellow]")
            return
        table = Table(title="Units")
        table.add_column("Unit", style="cyan")
        table.add_column("Origin")
        table.add_column("Status")
        table.add_column("Score", justify="right")
        table.add_column("Risk")
        table.add_column("Upgrade", justify="right")
        table.add_column("Findings", justify="right")
        table.add_column("Effort", justify="right")
        for unit in report.units:
            if unit.profile is None or unit.score is None:
                code = unit.error.code if unit.error else ""
                table.add_row(unit.name, "-", f"[red]failed[/red] {code}", "-", "-", "-", "-", "-")
                continue
            score = unit.score
            table.add_row(
                unit.name,
                unit.profile.origin.value,
                unit.status,
                f"{score.overall:.1f}",
                _risk_label(score.risk_tier) if unit.scored else "[dim]not scored[/dim]",
                f"{score.upgrade_readiness:.1f}",
                str(len(unit.profile.findings)),
                f"{score.effort.total_hours:.1f}h",
            )
        out.print(table)
        out.print()

    def _print_recommendations(self, report: SiteReport, out: Console) -> None:
        if not report.recommendations:
            out.print("[green]No recommendations.[/green]")
            return
        out.print("[bold]Recommendations:[/bold]")
        for rec in report.recommendations[:MAX_RECOMMENDATIONS]:
            out.print(f"  {_priority_label(rec.priority)} {escape('[' + rec.category + ']')} {escape(rec.message)}")
        remaining = len(report.recommendations) - MAX_RECOMMENDATIONS
        if remaining > 0:
            out.print(f"  [dim]... and {remaining} more (use --format json for the full list)[/dim]")
        out.print()

    def _print_warnings(self, report: SiteReport, out: Console) -> None:
        for warning in report.metadata.warnings:
            out.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
