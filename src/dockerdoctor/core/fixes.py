"""Applying auto fixes attached to findings."""

from __future__ import annotations

import inspect

from dockerdoctor.models.findings import Finding, Fix, FixKind, FixOutcome, Report
from dockerdoctor.utils.errors import FixApplicationError
from dockerdoctor.utils.logging import get_logger

logger = get_logger(__name__)


async def apply_fix(finding: Finding, fix: Fix) -> FixOutcome:
    """Apply one fix.

    Never raises and never retries: a manual fix, an action that returns a
    falsy value, or an action that raises all produce ``success=False``.

    Args:
        finding: Finding the fix belongs to
        fix: Fix to apply

    Returns:
        Outcome of the attempt
    """
    if fix.kind != FixKind.AUTO or fix.apply is None:
        return FixOutcome(
            finding_id=finding.id,
            description=fix.description,
            success=False,
            error="Manual fix, follow the instructions to apply it",
        )

    try:
        result = fix.apply()
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        error = FixApplicationError(fix.description, f"{type(e).__name__}: {e}")
    else:
        if result:
            logger.info(f"Applied fix for {finding.id}: {fix.description}")
            return FixOutcome(finding_id=finding.id, description=fix.description, success=True)
        error = FixApplicationError(fix.description, "fix reported failure")

    logger.warning(error.message)
    return FixOutcome(
        finding_id=finding.id,
        description=fix.description,
        success=False,
        error=error.reason,
    )


async def apply_auto_fixes(report: Report) -> list[FixOutcome]:
    """Apply the preferred auto fix of every finding in a report.

    Fixes run one at a time, in report order, since several may touch the
    same file.
    """
    outcomes = []
    for finding in report.findings:
        auto_fixes = finding.auto_fixes
        if auto_fixes:
            outcomes.append(await apply_fix(finding, auto_fixes[0]))
    return outcomes
