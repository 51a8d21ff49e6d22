"""dockerdoctor: diagnose containerization projects.

Inspects a project's Dockerfile, Compose manifest, .dockerignore,
.gitattributes and shell scripts, plus live Docker state when the daemon
is reachable, and reports findings with optional fixes.

Usage:
    # Library API
    import asyncio
    from dockerdoctor import ContextBuilder, Runner, build_default_registry

    async def main():
        context = await ContextBuilder().build("./my-app")
        report = await Runner(build_default_registry()).run(context)
        for finding in report.findings:
            print(finding.severity.value, finding.title)

    asyncio.run(main())

CLI:
    dockerdoctor check ./my-app
    dockerdoctor check ./my-app --category dockerfile --json
    dockerdoctor check ./my-app --fix
"""

__version__ = "0.1.0"

# Engine
from dockerdoctor.core.registry import CheckRegistry
from dockerdoctor.core.context import ContextBuilder, build_context
from dockerdoctor.core.runner import Runner, run_checks
from dockerdoctor.core.fixes import apply_auto_fixes, apply_fix
from dockerdoctor.checks import build_default_registry, check

# Parsers
from dockerdoctor.parsers import parse_compose, parse_dockerfile, parse_dockerignore

# Models (commonly used)
from dockerdoctor.models import (
    CheckCategory,
    CheckContext,
    CheckDescriptor,
    Finding,
    Fix,
    FixOutcome,
    Report,
    Severity,
)

# Renderers
from dockerdoctor.renderers.base import Renderer, RenderContext, OutputFormat

__all__ = [
    # Version
    "__version__",
    # Engine
    "CheckRegistry",
    "ContextBuilder",
    "build_context",
    "Runner",
    "run_checks",
    "apply_fix",
    "apply_auto_fixes",
    "build_default_registry",
    "check",
    # Parsers
    "parse_dockerfile",
    "parse_compose",
    "parse_dockerignore",
    # Models
    "CheckCategory",
    "CheckContext",
    "CheckDescriptor",
    "Finding",
    "Fix",
    "FixOutcome",
    "Report",
    "Severity",
    # Renderers
    "Renderer",
    "RenderContext",
    "OutputFormat",
]
