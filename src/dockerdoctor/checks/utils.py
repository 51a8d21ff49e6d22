"""Helpers shared by check modules."""

from __future__ import annotations

import json
import re
import shlex

# Variable names that look like they hold a credential
SECRET_PATTERNS = [
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"passwd", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"api[_-]?key", re.IGNORECASE),
    re.compile(r"apikey", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"private[_-]?key", re.IGNORECASE),
    re.compile(r"access[_-]?key", re.IGNORECASE),
]

_VARIABLE_REF_RE = re.compile(r"^\$\{?\w+\}?$")
_PLACEHOLDER_RE = re.compile(r"^(changeme|xxx|placeholder|your[_-])", re.IGNORECASE)

GB = 1024 * 1024 * 1024
MB = 1024 * 1024


def normalize_args(args: str) -> str:
    """Flatten JSON-form arguments to plain text.

    ``COPY [".", "."]`` becomes ``. .``; anything that is not JSON is
    returned stripped.
    """
    trimmed = args.strip()
    if not trimmed.startswith(("[", "{")):
        return trimmed
    try:
        parsed = json.loads(trimmed)
    except ValueError:
        return trimmed
    if isinstance(parsed, list):
        return " ".join(str(item) for item in parsed)
    if isinstance(parsed, dict):
        return " ".join(f"{k}={v}" for k, v in parsed.items())
    return trimmed


def strip_flags(args: str) -> str:
    """Drop leading ``--flag`` / ``--flag=value`` tokens from instruction args."""
    tokens = args.split()
    while tokens and tokens[0].startswith("--"):
        tokens.pop(0)
    return " ".join(tokens)


def parse_env_pairs(args: str) -> list[tuple[str, str]]:
    """Parse ENV arguments into (key, value) pairs.

    Handles ``KEY=value`` (several per line, values optionally quoted) and
    the legacy ``KEY value`` form.
    """
    text = normalize_args(args)
    try:
        tokens = shlex.split(text)
    except ValueError:
        tokens = text.split()

    if tokens and "=" not in tokens[0]:
        if len(tokens) < 2:
            return []
        return [(tokens[0], " ".join(tokens[1:]))]

    pairs = []
    for token in tokens:
        if "=" not in token:
            continue
        key, value = token.split("=", 1)
        if key:
            pairs.append((key, value))
    return pairs


def is_secret_name(name: str) -> bool:
    """Check whether a variable name looks like it holds a credential."""
    return any(p.search(name) for p in SECRET_PATTERNS)


def is_literal_secret(value: str | None) -> bool:
    """Check whether a value is a real literal rather than a reference or placeholder."""
    if not value:
        return False
    if _VARIABLE_REF_RE.match(value):
        return False
    return not _PLACEHOLDER_RE.match(value)


def format_size(size: int) -> str:
    """Format a byte count as MB, or GB with one decimal from 1 GB up."""
    if size >= GB:
        return f"{size / GB:.1f} GB"
    return f"{round(size / MB)} MB"


def truncate_list(items: list[str], limit: int = 10) -> str:
    """Join the first ``limit`` items, noting how many were left out."""
    shown = ", ".join(items[:limit])
    if len(items) > limit:
        shown += f" and {len(items) - limit} more"
    return shown


def daemon_unreachable(stderr: str) -> bool:
    """Check whether docker CLI output says the daemon could not be reached."""
    return "Cannot connect to the Docker daemon" in stderr or "error during connect" in stderr
