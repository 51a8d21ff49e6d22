"""Checks on the .dockerignore file."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from dockerdoctor.checks.base import check
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity
from dockerdoctor.parsers.dockerignore import parse_dockerignore

CATEGORY = CheckCategory.DOCKERIGNORE

RECOMMENDED_ENTRIES = ["node_modules", ".git", ".env", ".npm", "dist", "coverage"]

DEFAULT_DOCKERIGNORE = """\
# Version control
.git
.gitignore

# Dependencies
node_modules

# Environment files
.env
.env.*

# IDE / Editor
.vscode
.idea
*.swp
*.swo

# OS files
.DS_Store
Thumbs.db

# Build artifacts
dist
coverage
.nyc_output

# Docker
Dockerfile
docker-compose*.yml

# Documentation
README.md
LICENSE
CHANGELOG.md

# npm
.npm
.npmrc
"""


def create_dockerignore(path: Path) -> Callable[[], bool]:
    """Build an idempotent action writing the default .dockerignore if absent."""

    def apply() -> bool:
        if not path.exists():
            path.write_text(DEFAULT_DOCKERIGNORE, encoding="utf-8")
        return True

    return apply


def append_entries(path: Path, entries: list[str]) -> Callable[[], bool]:
    """Build an idempotent action appending whichever ``entries`` are still missing."""

    def apply() -> bool:
        existing = path.read_text(encoding="utf-8")
        current = parse_dockerignore(existing, str(path))
        missing = [e for e in entries if not current.has_entry(e)]
        if not missing:
            return True
        prefix = "\n" if existing and not existing.endswith("\n") else ""
        with path.open("a", encoding="utf-8") as f:
            f.write(prefix + "\n".join(missing) + "\n")
        return True

    return apply


@check("dockerignore.missing", "Missing .dockerignore", CATEGORY)
async def missing(context: CheckContext) -> list[Finding]:
    """Flag a project without ``.dockerignore``; the whole directory becomes build context."""
    if context.dockerignore is not None:
        return []

    path = Path(context.cwd) / ".dockerignore"
    return [
        Finding(
            id=missing.id,
            title="No .dockerignore file found",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                "Without .dockerignore the entire directory, including node_modules, .git "
                "and .env files, is sent to the daemon as build context. Builds get slower "
                "and secrets can leak into the image."
            ),
            location=context.cwd,
            fixes=[
                Fix.auto("Create a .dockerignore file with common entries", create_dockerignore(path)),
                Fix.manual(
                    "Create .dockerignore manually",
                    f"Create {path} listing at least: {', '.join(RECOMMENDED_ENTRIES)}.",
                ),
            ],
            meta={"expected_path": str(path)},
        )
    ]


@check("dockerignore.missing-entries", "Missing common .dockerignore entries", CATEGORY)
async def missing_entries(context: CheckContext) -> list[Finding]:
    """Flag an existing ``.dockerignore`` that lacks commonly needed entries."""
    dockerignore = context.dockerignore
    if dockerignore is None:
        return []

    absent = [e for e in RECOMMENDED_ENTRIES if not dockerignore.has_entry(e)]
    if not absent:
        return []

    path = Path(dockerignore.path)
    return [
        Finding(
            id=missing_entries.id,
            title=".dockerignore is missing common entries",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                f".dockerignore does not exclude {', '.join(absent)}. These are rarely needed "
                "in the image and inflate the build context."
            ),
            location=dockerignore.path,
            fixes=[
                Fix.auto("Append missing entries to .dockerignore", append_entries(path, absent)),
                Fix.manual(
                    "Add missing entries manually",
                    "Add these lines to .dockerignore:\n" + "\n".join(f"  {e}" for e in absent),
                ),
            ],
            meta={"missing_entries": absent, "total_recommended": len(RECOMMENDED_ENTRIES)},
        )
    ]


CHECKS = [
    missing,
    missing_entries,
]
