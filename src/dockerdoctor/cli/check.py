"""CLI command running the diagnostic checks."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from dockerdoctor.checks import build_default_registry
from dockerdoctor.cli.utils import (
    create_runtime,
    err_console,
    exit_code_for,
    fail,
    parse_categories,
    parse_severity,
)
from dockerdoctor.core import ContextBuilder, Runner, apply_auto_fixes
from dockerdoctor.models import CheckCategory, FixOutcome, Report, Severity
from dockerdoctor.renderers import JSONRenderer, OutputFormat, RenderContext, TerminalRenderer
from dockerdoctor.utils.config import DockerDoctorConfig, load_config
from dockerdoctor.utils.errors import ConfigurationError, ParseError
from dockerdoctor.utils.logging import get_logger

logger = get_logger(__name__)


def check_cmd(
    path: Path = typer.Argument(
        Path("."),
        help="Project directory to inspect",
    ),
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="Dockerfile to use, relative to PATH",
    ),
    compose_file: Optional[Path] = typer.Option(
        None,
        "--compose-file",
        help="Compose manifest to use, relative to PATH",
    ),
    category: Optional[list[str]] = typer.Option(
        None,
        "--category",
        "-c",
        help="Only run checks in this category (repeatable)",
    ),
    severity: Optional[str] = typer.Option(
        None,
        "--severity",
        "-s",
        help="Minimum severity to report (info, warning, error)",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    ci: bool = typer.Option(False, "--ci", help="Fail on warnings as well as errors"),
    fix: bool = typer.Option(False, "--fix", help="Apply available auto fixes, then re-check"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to a dockerdoctor config file",
    ),
) -> None:
    """
    Diagnose a containerization project.

    Inspects the Dockerfile, Compose manifest, .dockerignore and shell
    scripts under PATH, plus live Docker state when the daemon is
    reachable.

    Exits with 1 when errors remain (or warnings, with --ci) and 2 on
    configuration or parse errors.

    Example:
        dockerdoctor check ./my-app --category dockerfile --severity warning
    """
    categories = parse_categories(category)
    min_severity = parse_severity(severity)

    try:
        cfg = load_config(config, cwd=path)
    except ConfigurationError as e:
        fail(e.message)

    as_json = json_output or cfg.output.default_format == OutputFormat.JSON.value

    try:
        if as_json:
            report, outcomes = asyncio.run(
                _scan(path, file, compose_file, categories, min_severity, cfg, fix)
            )
        else:
            with err_console.status("Running checks..."):
                report, outcomes = asyncio.run(
                    _scan(path, file, compose_file, categories, min_severity, cfg, fix)
                )
    except (ConfigurationError, ParseError) as e:
        fail(e.message)

    if as_json:
        _print_json(report, outcomes)
    else:
        renderer = TerminalRenderer(Console(no_color=not cfg.output.color))
        context = RenderContext(verbose=True, color=cfg.output.color)
        if outcomes is not None:
            renderer.render(outcomes, context)
        renderer.render(report, context)

    raise typer.Exit(exit_code_for(report, ci=ci))


async def _scan(
    path: Path,
    dockerfile: Path | None,
    compose_file: Path | None,
    categories: list[CheckCategory] | None,
    min_severity: Severity | None,
    config: DockerDoctorConfig,
    fix: bool,
) -> tuple[Report, list[FixOutcome] | None]:
    """Run the checks, and with ``fix`` apply auto fixes and check again."""
    registry = build_default_registry()
    runner = Runner(registry, config)
    builder = ContextBuilder(config, runtime=create_runtime(config))

    context = await builder.build(path, dockerfile_path=dockerfile, compose_path=compose_file)
    report = await runner.run(context, categories=categories, min_severity=min_severity)
    if not fix:
        return report, None

    outcomes = await apply_auto_fixes(report)
    logger.info(f"Applied {sum(1 for o in outcomes if o.success)} of {len(outcomes)} auto fixes")
    if any(o.success for o in outcomes):
        # Fixes change files on disk, so the context is rebuilt
        context = await builder.build(path, dockerfile_path=dockerfile, compose_path=compose_file)
        report = await runner.run(context, categories=categories, min_severity=min_severity)
    return report, outcomes


def _print_json(report: Report, outcomes: list[FixOutcome] | None) -> None:
    data: Any = report if outcomes is None else {"report": report, "fixes": outcomes}
    typer.echo(JSONRenderer().render(data, RenderContext(format=OutputFormat.JSON)))
