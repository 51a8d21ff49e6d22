"""Common model types shared across modules."""

from enum import Enum


class Severity(str, Enum):
    """Severity of a finding.

    Severities are totally ordered: ``info < warning < error``.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]

    def at_least(self, minimum: "Severity") -> bool:
        """Check whether this severity is at or above ``minimum``."""
        return self.rank >= minimum.rank


_SEVERITY_RANK = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}


class CheckCategory(str, Enum):
    """Closed set of check categories."""

    DOCKERFILE = "dockerfile"
    COMPOSE = "compose"
    BUILD = "build"
    STARTUP = "startup"
    NETWORK = "network"
    PERFORMANCE = "performance"
    IMAGE = "image"
    SECRETS = "secrets"
    LINEENDINGS = "lineendings"
    CLEANUP = "cleanup"
    DOCKERIGNORE = "dockerignore"

    # Reserved for synthetic findings produced when a check itself fails
    INTERNAL = "internal"
