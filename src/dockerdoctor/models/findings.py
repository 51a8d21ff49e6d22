"""Finding, fix and report data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field, model_validator

from dockerdoctor.models.common import CheckCategory, Severity

# An auto fix action: returns success, either directly or as an awaitable
FixAction = Callable[[], bool | Awaitable[bool]]


class FixKind(str, Enum):
    """How a fix is carried out."""

    MANUAL = "manual"
    AUTO = "auto"


class Fix(BaseModel):
    """A remediation attached to a finding."""

    model_config = {"frozen": True}

    description: str = Field(description="Short description of the fix")
    kind: FixKind = Field(default=FixKind.MANUAL, description="Manual or auto")
    instructions: str | None = Field(default=None, description="Steps for a manual fix")
    apply: Callable[..., Any] | None = Field(
        default=None,
        exclude=True,
        description="Idempotent action for an auto fix",
    )

    @model_validator(mode="after")
    def _auto_needs_action(self) -> "Fix":
        if self.kind == FixKind.AUTO and self.apply is None:
            raise ValueError("An auto fix must provide an apply action")
        return self

    @classmethod
    def manual(cls, description: str, instructions: str) -> "Fix":
        """Create a manual fix."""
        return cls(description=description, kind=FixKind.MANUAL, instructions=instructions)

    @classmethod
    def auto(cls, description: str, apply: FixAction) -> "Fix":
        """Create an auto fix."""
        return cls(description=description, kind=FixKind.AUTO, apply=apply)


class Finding(BaseModel):
    """A single diagnostic produced by a check."""

    model_config = {"frozen": True}

    id: str = Field(description="Id of the check that produced this finding")
    title: str = Field(description="One-line summary")
    severity: Severity = Field(description="Finding severity")
    category: CheckCategory = Field(description="Check category")
    message: str = Field(description="Full explanation")
    location: str | None = Field(default=None, description="File or object the finding refers to")
    line: int | None = Field(default=None, description="1-based line within location")
    fixes: list[Fix] = Field(default_factory=list, description="Remediations, in preference order")
    meta: dict[str, Any] = Field(default_factory=dict, description="Structured diagnostic payload")

    @property
    def fixable(self) -> bool:
        """Whether at least one fix is attached."""
        return len(self.fixes) > 0

    @property
    def auto_fixes(self) -> list[Fix]:
        """Fixes that can be applied without user action."""
        return [f for f in self.fixes if f.kind == FixKind.AUTO]


class ReportSummary(BaseModel):
    """Aggregate counts for a report."""

    model_config = {"frozen": True}

    total: int = Field(default=0, description="Number of checks executed")
    errors: int = Field(default=0, description="Error findings after filtering")
    warnings: int = Field(default=0, description="Warning findings after filtering")
    info: int = Field(default=0, description="Info findings after filtering")
    fixable: int = Field(default=0, description="Findings with at least one fix")

    @classmethod
    def from_findings(cls, total: int, findings: list[Finding]) -> "ReportSummary":
        """Build a summary from already-filtered findings."""
        return cls(
            total=total,
            errors=sum(1 for f in findings if f.severity == Severity.ERROR),
            warnings=sum(1 for f in findings if f.severity == Severity.WARNING),
            info=sum(1 for f in findings if f.severity == Severity.INFO),
            fixable=sum(1 for f in findings if f.fixable),
        )


class Report(BaseModel):
    """The complete output of one scan."""

    model_config = {"frozen": True}

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the report was produced",
    )
    version: str = Field(description="dockerdoctor version")
    docker_available: bool = Field(description="Whether the Docker daemon was reachable")
    findings: list[Finding] = Field(default_factory=list, description="Findings in registration order")
    summary: ReportSummary = Field(default_factory=ReportSummary)
    checks_run: list[str] = Field(default_factory=list, description="Ids of executed checks")

    @property
    def passed(self) -> bool:
        """True when no error-level finding remains."""
        return self.summary.errors == 0

    def by_severity(self, severity: Severity) -> list[Finding]:
        """Get findings of one severity."""
        return [f for f in self.findings if f.severity == severity]

    def by_check(self, check_id: str) -> list[Finding]:
        """Get findings produced by one check."""
        return [f for f in self.findings if f.id == check_id]


class FixOutcome(BaseModel):
    """Result of applying one fix."""

    model_config = {"frozen": True}

    finding_id: str = Field(description="Id of the finding the fix belongs to")
    description: str = Field(description="Fix description")
    success: bool = Field(description="Whether the fix reported success")
    error: str | None = Field(default=None, description="Why the fix failed")
