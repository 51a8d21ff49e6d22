"""Core engine: registry, context building, running and fixing."""

from dockerdoctor.core.registry import CheckRegistry
from dockerdoctor.core.context import ContextBuilder, build_context
from dockerdoctor.core.runner import Runner, run_checks
from dockerdoctor.core.fixes import apply_auto_fixes, apply_fix

__all__ = [
    "CheckRegistry",
    "ContextBuilder",
    "build_context",
    "Runner",
    "run_checks",
    "apply_fix",
    "apply_auto_fixes",
]
