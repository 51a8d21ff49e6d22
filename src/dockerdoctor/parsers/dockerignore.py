"""Parser for .dockerignore files."""

from __future__ import annotations

from pathlib import Path

from dockerdoctor.models.dockerignore import DockerignoreEntry, DockerignoreModel


def parse_dockerignore(text: str, path: str = ".dockerignore") -> DockerignoreModel:
    """Parse .dockerignore text.

    Blank lines and ``#`` comments are skipped; a leading ``!`` marks a
    negation.
    """
    entries = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        negation = stripped.startswith("!")
        pattern = stripped[1:].strip() if negation else stripped
        if not pattern:
            continue
        entries.append(DockerignoreEntry(pattern=pattern, negation=negation, line=lineno))

    return DockerignoreModel(path=path, entries=entries, raw=text)


def parse_dockerignore_file(path: str | Path) -> DockerignoreModel:
    """Read and parse a .dockerignore file."""
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return parse_dockerignore(text, str(path))
