"""Execution context shared by every check in a run."""

from typing import Any

from pydantic import BaseModel, Field

from dockerdoctor.models.compose import ComposeModel
from dockerdoctor.models.dockerfile import DockerfileModel
from dockerdoctor.models.dockerignore import DockerignoreModel


class DiscoveredFiles(BaseModel):
    """Paths of project files found (or given) for a run."""

    model_config = {"frozen": True}

    dockerfile_path: str | None = Field(default=None, description="Dockerfile")
    compose_path: str | None = Field(default=None, description="Compose manifest")
    dockerignore_path: str | None = Field(default=None, description=".dockerignore")
    gitattributes_path: str | None = Field(default=None, description=".gitattributes")
    shell_scripts: list[str] = Field(default_factory=list, description="*.sh files in the project root")


class CheckContext(BaseModel):
    """Everything a check may read.

    Built once per invocation and never mutated. Checks must treat it
    as read-only.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    cwd: str = Field(description="Project directory")
    files: DiscoveredFiles = Field(default_factory=DiscoveredFiles)
    dockerfile: DockerfileModel | None = Field(default=None, description="Parsed Dockerfile")
    compose: ComposeModel | None = Field(default=None, description="Parsed Compose manifest")
    dockerignore: DockerignoreModel | None = Field(default=None, description="Parsed .dockerignore")
    docker_available: bool = Field(default=False, description="Whether the daemon answered the probe")
    runtime: Any = Field(
        default=None,
        exclude=True,
        description="Docker runtime client used by Docker-backed checks",
    )
