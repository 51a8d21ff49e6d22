"""Rich terminal output for reports and fix outcomes."""

from __future__ import annotations

import io
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dockerdoctor.models import Finding, FixOutcome, Report, Severity
from dockerdoctor.renderers.base import OutputFormat, RenderContext, Renderer

SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}

SEVERITY_ORDER = [Severity.ERROR, Severity.WARNING, Severity.INFO]


class TerminalRenderer(Renderer):
    """Prints reports to a rich console.

    Findings get one table per severity, most severe first. ``render``
    writes to the console and returns an empty string.
    """

    format = OutputFormat.TERMINAL

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def render(self, data: Any, context: RenderContext) -> str:
        if isinstance(data, Report):
            self._render_report(data, context)
        elif isinstance(data, list) and all(isinstance(item, FixOutcome) for item in data):
            self._render_fix_outcomes(data)
        else:
            self._console.print(data)
        return ""

    def render_to_file(self, data: Any, context: RenderContext) -> None:
        """Record what would be printed and write it to ``context.output_path``."""
        path = self._require_path(context)
        recorder = Console(file=io.StringIO(), record=True, force_terminal=context.color, width=120)
        screen, self._console = self._console, recorder
        try:
            self.render(data, context)
        finally:
            self._console = screen
        path.write_text(recorder.export_text(styles=context.color), encoding="utf-8")

    def _render_report(self, report: Report, context: RenderContext) -> None:
        docker = "[green]available[/green]" if report.docker_available else "[yellow]unavailable[/yellow]"
        self._console.print()
        self._console.print(
            Panel(
                f"[bold]Checks run:[/bold] {report.summary.total}\n"
                f"[bold]Docker:[/bold] {docker}",
                title=f"dockerdoctor {report.version}",
            )
        )

        if not report.findings:
            self._console.print()
            self._console.print("[bold green]No issues found[/bold green]")

        for severity in SEVERITY_ORDER:
            findings = report.by_severity(severity)
            if findings:
                self._render_findings(severity, findings, context)

        self._render_summary(report)

    def _render_findings(self, severity: Severity, findings: list[Finding], context: RenderContext) -> None:
        style = SEVERITY_STYLES[severity]
        self._console.print()
        table = Table(title=f"[{style}]{severity.value.capitalize()}s ({len(findings)})[/{style}]")
        table.add_column("Check", style="dim")
        table.add_column("Finding")
        table.add_column("Location")
        table.add_column("Fixes", justify="right")

        for finding in findings:
            text = f"[bold]{finding.title}[/bold]"
            if context.verbose:
                text += f"\n{finding.message}"
                for fix in finding.fixes:
                    text += f"\n[dim]Fix ({fix.kind.value}): {fix.description}[/dim]"
                    if fix.instructions:
                        text += f"\n[dim]{fix.instructions}[/dim]"
            location = finding.location or "-"
            if finding.line is not None:
                location = f"{location}:{finding.line}"
            table.add_row(finding.id, text, location, str(len(finding.fixes)))

        self._console.print(table)

    def _render_summary(self, report: Report) -> None:
        summary = report.summary
        self._console.print()
        table = Table(title="Summary", show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Count")
        table.add_row("Errors", f"[red]{summary.errors}[/red]")
        table.add_row("Warnings", f"[yellow]{summary.warnings}[/yellow]")
        table.add_row("Info", f"[blue]{summary.info}[/blue]")
        table.add_row("Fixable", str(summary.fixable))
        self._console.print(table)

        status = "[bold green]PASSED[/bold green]" if report.passed else "[bold red]FAILED[/bold red]"
        self._console.print()
        self._console.print(f"Status: {status}")

    def _render_fix_outcomes(self, outcomes: list[FixOutcome]) -> None:
        self._console.print()
        if not outcomes:
            self._console.print("[dim]No auto fixes to apply[/dim]")
            return

        table = Table(title="Applied Fixes")
        table.add_column("Check", style="dim")
        table.add_column("Fix")
        table.add_column("Result")
        for outcome in outcomes:
            result = "[green]OK[/green]" if outcome.success else f"[red]FAIL[/red] {outcome.error or ''}"
            table.add_row(outcome.finding_id, outcome.description, result)
        self._console.print(table)
