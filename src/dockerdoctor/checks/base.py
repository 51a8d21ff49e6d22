"""Check authoring helpers."""

from __future__ import annotations

import inspect
from typing import Callable

from dockerdoctor.models.check import CheckDescriptor, CheckFunction
from dockerdoctor.models.common import CheckCategory


def check(
    id: str,
    name: str,
    category: CheckCategory | str,
    requires_docker: bool = False,
) -> Callable[[CheckFunction], CheckDescriptor]:
    """Turn an async function into a CheckDescriptor.

    The decorator has no side effects: it does not register anything.
    Each check module lists its descriptors in ``CHECKS`` and the
    composition root in ``dockerdoctor.checks`` registers them.

    Example:
        @check("dockerfile.shell-form", "CMD/ENTRYPOINT uses shell form", "dockerfile")
        async def shell_form(context: CheckContext) -> list[Finding]:
            \"\"\"Flag CMD and ENTRYPOINT written in shell form.\"\"\"
            ...
    """

    def decorator(fn: CheckFunction) -> CheckDescriptor:
        if not inspect.iscoroutinefunction(fn):
            raise TypeError(f"Check {id} must be an async function")
        return CheckDescriptor(
            id=id,
            name=name,
            category=CheckCategory(category),
            requires_docker=requires_docker,
            description=inspect.getdoc(fn) or "",
            run=fn,
        )

    return decorator
