"""Locating project files in a directory."""

from __future__ import annotations

import re
from pathlib import Path

DOCKERFILE_NAMES = ("Dockerfile", "dockerfile", "Dockerfile.dev", "Dockerfile.prod")
STANDARD_COMPOSE_NAMES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")

# YAML files that are never Compose manifests
SNIFF_EXCLUDE = frozenset(
    {
        ".gitlab-ci.yml",
        "bitbucket-pipelines.yml",
        "azure-pipelines.yml",
        "cloudbuild.yaml",
        "appveyor.yml",
        ".pre-commit-config.yaml",
        "mkdocs.yml",
        "pubspec.yaml",
        "pnpm-lock.yaml",
        "Chart.yaml",
        "values.yaml",
        "kustomization.yaml",
    }
)

SNIFF_BYTES = 4096
_SERVICES_RE = re.compile(r"^services\s*:", re.MULTILINE)


def find_first(cwd: Path, names: tuple[str, ...] | list[str]) -> Path | None:
    """Return the first of ``names`` that exists as a file in ``cwd``."""
    for name in names:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def find_dockerfile(cwd: Path) -> Path | None:
    return find_first(cwd, DOCKERFILE_NAMES)


def looks_like_compose_file(path: Path) -> bool:
    """Check for a top-level ``services:`` key in the first 4 KiB."""
    try:
        with path.open("rb") as f:
            head = f.read(SNIFF_BYTES).decode("utf-8", errors="replace")
    except OSError:
        return False
    return bool(_SERVICES_RE.search(head))


def find_compose_file(cwd: Path) -> Path | None:
    """Find a Compose manifest in a directory.

    Standard names are checked by existence first. Otherwise the remaining
    ``*.yml``/``*.yaml`` files are sniffed in name order and the first one
    that looks like a Compose file wins.

    Args:
        cwd: Directory to search

    Returns:
        Path of the manifest, or None
    """
    found = find_first(cwd, STANDARD_COMPOSE_NAMES)
    if found is not None:
        return found

    try:
        entries = sorted(p for p in cwd.iterdir() if p.is_file())
    except OSError:
        return None

    for path in entries:
        if path.name in SNIFF_EXCLUDE or path.name in STANDARD_COMPOSE_NAMES:
            continue
        if path.suffix.lower() not in (".yml", ".yaml"):
            continue
        if looks_like_compose_file(path):
            return path
    return None


def find_shell_scripts(cwd: Path) -> list[Path]:
    """List ``*.sh`` files directly in ``cwd``, sorted by name."""
    try:
        return sorted(p for p in cwd.glob("*.sh") if p.is_file())
    except OSError:
        return []
