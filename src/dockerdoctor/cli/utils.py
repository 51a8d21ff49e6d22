"""Shared utilities for CLI commands."""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console

from dockerdoctor.models import CheckCategory, Report, Severity
from dockerdoctor.runtime import DockerRuntime
from dockerdoctor.utils.config import DockerDoctorConfig

# Shared console instances, reports go to stdout and diagnostics to stderr
console = Console()
err_console = Console(stderr=True)

# Exit codes
EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_USAGE = 2


def create_runtime(config: DockerDoctorConfig) -> Any:
    """Create the Docker runtime the scan probes and hands to checks."""
    return DockerRuntime(exec_timeout=config.docker.exec_timeout)


def fail(message: str, code: int = EXIT_USAGE) -> None:
    """Print an error to stderr and exit.

    Raises:
        typer.Exit: Always
    """
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code)


def parse_categories(values: list[str] | None) -> list[CheckCategory] | None:
    """Parse ``--category`` values, exiting on an unknown category."""
    if not values:
        return None
    categories = []
    for value in values:
        try:
            categories.append(CheckCategory(value.lower()))
        except ValueError:
            valid = ", ".join(c.value for c in CheckCategory if c != CheckCategory.INTERNAL)
            fail(f"Invalid category: {value} (expected one of: {valid})")
    return categories


def parse_severity(value: str | None) -> Severity | None:
    """Parse ``--severity``, exiting on an unknown level."""
    if value is None:
        return None
    try:
        return Severity(value.lower())
    except ValueError:
        fail(f"Invalid severity: {value} (expected one of: info, warning, error)")
    return None


def exit_code_for(report: Report, ci: bool = False) -> int:
    """Exit code for a finished scan.

    Errors always fail the run; in CI mode warnings fail it too.
    """
    if report.summary.errors > 0:
        return EXIT_FINDINGS
    if ci and report.summary.warnings > 0:
        return EXIT_FINDINGS
    return EXIT_OK
