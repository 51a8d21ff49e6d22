"""Error types for dockerdoctor.

Only ConfigurationError and ParseError abort a scan. Everything else is
degraded into fewer findings or a reported outcome.
"""

from __future__ import annotations

from typing import Any

from dockerdoctor.models.common import CheckCategory, Severity
from dockerdoctor.models.findings import Finding


class DockerDoctorError(Exception):
    """Base exception for dockerdoctor."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for machine-readable output."""
        return {"code": self.code, "message": self.message, "details": self.details}


class ConfigurationError(DockerDoctorError):
    """An explicitly supplied path or setting is invalid."""

    def __init__(self, message: str, path: str | None = None, config_key: str | None = None):
        details: dict[str, Any] = {}
        if path:
            details["path"] = path
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ParseError(DockerDoctorError):
    """A project file could not be parsed."""

    def __init__(self, message: str, path: str | None = None, line: int | None = None):
        details: dict[str, Any] = {}
        if path:
            details["path"] = path
        if line is not None:
            details["line"] = line
        super().__init__(message, code="PARSE_ERROR", details=details)
        self.path = path
        self.line = line


class ComposeParseError(ParseError):
    """A Compose manifest is not a valid document."""


class DuplicateCheckError(DockerDoctorError):
    """A check id was registered twice."""

    def __init__(self, check_id: str):
        super().__init__(
            f"Duplicate check ID: {check_id}",
            code="DUPLICATE_CHECK",
            details={"check_id": check_id},
        )
        self.check_id = check_id


class RuntimeUnavailableError(DockerDoctorError):
    """The Docker daemon could not be reached."""

    def __init__(self, message: str = "Docker daemon is not reachable"):
        super().__init__(message, code="RUNTIME_UNAVAILABLE")


class CheckExecutionError(DockerDoctorError):
    """A check raised while running."""

    def __init__(
        self,
        check_id: str,
        cause: BaseException,
        check_name: str | None = None,
        category: str | None = None,
    ):
        super().__init__(
            f"Check {check_id} failed: {cause}",
            code="CHECK_FAILED",
            details={
                "check_id": check_id,
                "check_category": category,
                "error_type": type(cause).__name__,
                "error": str(cause),
            },
        )
        self.check_id = check_id
        self.check_name = check_name or check_id
        self.cause = cause

    def to_finding(self) -> Finding:
        """Convert into the informational finding reported in place of results."""
        return Finding(
            id=self.check_id,
            title=f"Check failed: {self.check_name}",
            severity=Severity.INFO,
            category=CheckCategory.INTERNAL,
            message=f"The check raised {self.details['error_type']}: {self.details['error']}",
            meta=dict(self.details),
        )


class FixApplicationError(DockerDoctorError):
    """An auto fix reported failure or raised."""

    def __init__(self, description: str, reason: str):
        super().__init__(
            f"Fix failed: {description}: {reason}",
            code="FIX_FAILED",
            details={"fix": description, "reason": reason},
        )
        self.reason = reason
