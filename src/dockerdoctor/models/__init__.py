"""Data models for dockerdoctor.

All models are Pydantic BaseModel with frozen=True for immutability.
"""

from dockerdoctor.models.common import CheckCategory, Severity
from dockerdoctor.models.dockerfile import (
    PRE_STAGE_INDEX,
    DockerfileModel,
    Instruction,
    Stage,
)
from dockerdoctor.models.compose import ComposeModel, ComposeService
from dockerdoctor.models.dockerignore import DockerignoreEntry, DockerignoreModel
from dockerdoctor.models.findings import (
    Finding,
    Fix,
    FixKind,
    FixOutcome,
    Report,
    ReportSummary,
)
from dockerdoctor.models.context import CheckContext, DiscoveredFiles
from dockerdoctor.models.check import CheckDescriptor

__all__ = [
    # Common
    "CheckCategory",
    "Severity",
    # Dockerfile
    "PRE_STAGE_INDEX",
    "DockerfileModel",
    "Instruction",
    "Stage",
    # Compose
    "ComposeModel",
    "ComposeService",
    # Dockerignore
    "DockerignoreEntry",
    "DockerignoreModel",
    # Findings
    "Finding",
    "Fix",
    "FixKind",
    "FixOutcome",
    "Report",
    "ReportSummary",
    # Context
    "CheckContext",
    "DiscoveredFiles",
    # Checks
    "CheckDescriptor",
]
