"""Docker daemon access."""

from dockerdoctor.runtime.client import DockerRuntime
from dockerdoctor.runtime.results import (
    ContainerSummary,
    DiskUsage,
    ExecResult,
    ImageSummary,
    PortBinding,
    RuntimeResult,
)

__all__ = [
    "DockerRuntime",
    "RuntimeResult",
    "ContainerSummary",
    "ImageSummary",
    "PortBinding",
    "DiskUsage",
    "ExecResult",
]
