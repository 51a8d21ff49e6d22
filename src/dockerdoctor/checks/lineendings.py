"""Checks for Windows line endings that break shell scripts in Linux containers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable

from dockerdoctor.checks.base import check
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity
from dockerdoctor.utils.logging import get_logger

logger = get_logger(__name__)

CATEGORY = CheckCategory.LINEENDINGS

GITATTRIBUTES_CONTENT = (
    "# Auto-detect text files and normalize line endings to LF\n"
    "* text=auto eol=lf\n"
    "\n"
    "# Ensure shell scripts always use LF\n"
    "*.sh text eol=lf\n"
)

_SHELL_SCRIPT_RE = re.compile(r"\.sh\b")


def convert_to_lf(path: Path) -> Callable[[], bool]:
    """Build an idempotent action rewriting CRLF as LF in ``path``."""

    def apply() -> bool:
        content = path.read_bytes()
        fixed = content.replace(b"\r\n", b"\n")
        if fixed != content:
            path.write_bytes(fixed)
        return True

    return apply


def create_gitattributes(path: Path) -> Callable[[], bool]:
    """Build an idempotent action creating ``.gitattributes`` if it is absent."""

    def apply() -> bool:
        if not path.exists():
            path.write_text(GITATTRIBUTES_CONTENT, encoding="utf-8")
        return True

    return apply


@check("lineendings.crlf", "CRLF line endings in shell scripts", CATEGORY)
async def crlf(context: CheckContext) -> list[Finding]:
    """Flag shell scripts with CRLF endings; the shebang then names ``sh\\r``."""
    findings = []
    for script in context.files.shell_scripts:
        path = Path(script)
        try:
            content = path.read_bytes()
        except OSError as e:
            logger.debug(f"Skipping unreadable script {script}: {e}")
            continue
        if b"\r\n" not in content:
            continue

        findings.append(
            Finding(
                id=crlf.id,
                title="Shell script has CRLF line endings",
                severity=Severity.ERROR,
                category=CATEGORY,
                message=(
                    f"`{path.name}` uses Windows (CRLF) line endings. Inside a Linux container "
                    "it fails with `/bin/sh^M: bad interpreter` or `no such file or directory`."
                ),
                location=script,
                fixes=[
                    Fix.auto("Convert CRLF to LF line endings", convert_to_lf(path)),
                    Fix.manual(
                        "Convert line endings manually",
                        f"Run `dos2unix {path.name}` or `sed -i 's/\\r$//' {path.name}`, "
                        "or set the editor to save with LF endings.",
                    ),
                ],
                meta={"script": script},
            )
        )
    return findings


@check("lineendings.missing-dos2unix", "Shell scripts copied without dos2unix", CATEGORY)
async def missing_dos2unix(context: CheckContext) -> list[Finding]:
    """Flag stages that copy ``.sh`` files without normalizing their line endings."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for stage in dockerfile.stages:
        copies = [i for i in stage.find("COPY", "ADD") if _SHELL_SCRIPT_RE.search(i.args)]
        if not copies:
            continue
        if any("dos2unix" in i.args for i in stage.find("RUN")):
            continue

        first = copies[0]
        findings.append(
            Finding(
                id=missing_dos2unix.id,
                title="Stage copies .sh files without running dos2unix",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"`{first.raw.strip()}` at line {first.lineno} copies shell scripts, but the "
                    "stage never converts their line endings. Scripts checked out on Windows "
                    "will carry CRLF endings into the image."
                ),
                location=dockerfile.path,
                line=first.lineno,
                fixes=[
                    Fix.manual(
                        "Add dos2unix after copying shell scripts",
                        "  RUN apt-get update && apt-get install -y dos2unix \\\n"
                        "      && dos2unix /app/*.sh\n\n"
                        "Or, without extra packages: `RUN sed -i 's/\\r$//' /app/*.sh`",
                    )
                ],
                meta={"stage": stage.label, "copy_line": first.lineno},
            )
        )
    return findings


@check("lineendings.missing-gitattributes", "Missing .gitattributes", CATEGORY)
async def missing_gitattributes(context: CheckContext) -> list[Finding]:
    """Flag a project without ``.gitattributes`` enforcing LF endings."""
    if context.files.gitattributes_path:
        return []

    path = Path(context.cwd) / ".gitattributes"
    return [
        Finding(
            id=missing_gitattributes.id,
            title="No .gitattributes file found",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                "Without .gitattributes, Git on Windows may check out shell scripts with "
                "CRLF endings, which then break inside containers."
            ),
            location=context.cwd,
            fixes=[
                Fix.auto("Create .gitattributes with LF enforcement for scripts", create_gitattributes(path)),
                Fix.manual(
                    "Create .gitattributes manually",
                    f"Create {path} containing:\n\n{GITATTRIBUTES_CONTENT}",
                ),
            ],
            meta={"expected_path": str(path)},
        )
    ]


CHECKS = [
    crlf,
    missing_dos2unix,
    missing_gitattributes,
]
