"""Built-in checks.

``build_default_registry`` is the single place where check modules are
loaded and registered. Module order, then each module's ``CHECKS`` order,
is the order findings appear in a report.
"""

from dockerdoctor.checks import (
    build,
    cleanup,
    compose,
    dockerfile,
    dockerignore,
    image,
    lineendings,
    network,
    performance,
    secrets,
    startup,
)
from dockerdoctor.checks.base import check
from dockerdoctor.core.registry import CheckRegistry

CHECK_MODULES = [
    dockerfile,
    compose,
    secrets,
    lineendings,
    dockerignore,
    build,
    startup,
    network,
    performance,
    image,
    cleanup,
]


def build_default_registry() -> CheckRegistry:
    """Create a registry holding every built-in check."""
    registry = CheckRegistry()
    for module in CHECK_MODULES:
        registry.register_all(module.CHECKS)
    return registry


__all__ = ["CHECK_MODULES", "build_default_registry", "check"]
