"""Typed views of Docker daemon responses."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class RuntimeResult(BaseModel, Generic[T]):
    """Outcome of a Docker query that does not raise.

    Checks use this to make the transport-failure path explicit instead of
    wrapping every call in try/except.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    success: bool = Field(description="Whether the query succeeded")
    value: T | None = Field(default=None, description="Query result")
    error: str | None = Field(default=None, description="Failure reason")

    @classmethod
    def ok(cls, value: Any) -> "RuntimeResult":
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str) -> "RuntimeResult":
        """Create a failed result."""
        return cls(success=False, error=error)

    def value_or(self, default: Any) -> Any:
        """Return the value, or default when the query failed."""
        if self.success and self.value is not None:
            return self.value
        return default

    def value_or_empty(self) -> Any:
        """Return the value, or an empty list when the query failed."""
        return self.value_or([])


class PortBinding(BaseModel):
    """A published container port."""

    model_config = {"frozen": True}

    ip: str | None = Field(default=None, description="Host address the port is bound to")
    private_port: int = Field(description="Port inside the container")
    public_port: int | None = Field(default=None, description="Port on the host, if published")
    type: str = Field(default="tcp", description="Protocol")


class ContainerSummary(BaseModel):
    """A container as listed by the daemon."""

    model_config = {"frozen": True}

    id: str
    names: list[str] = Field(default_factory=list)
    image: str = ""
    state: str = ""
    status: str = ""
    ports: list[PortBinding] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    networks: list[str] = Field(default_factory=list)
    created: int = 0

    @property
    def display_name(self) -> str:
        """First name, or the short id."""
        return self.names[0] if self.names else self.id[:12]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ContainerSummary":
        """Build from a ``GET /containers/json`` entry."""
        ports = [
            PortBinding(
                ip=p.get("IP"),
                private_port=p.get("PrivatePort", 0),
                public_port=p.get("PublicPort"),
                type=p.get("Type", "tcp"),
            )
            for p in data.get("Ports") or []
        ]
        networks = (data.get("NetworkSettings") or {}).get("Networks") or {}
        return cls(
            id=data.get("Id", ""),
            names=[n.lstrip("/") for n in data.get("Names") or []],
            image=data.get("Image", ""),
            state=data.get("State", ""),
            status=data.get("Status", ""),
            ports=ports,
            labels=data.get("Labels") or {},
            networks=list(networks.keys()),
            created=data.get("Created", 0),
        )


class ImageSummary(BaseModel):
    """An image as listed by the daemon."""

    model_config = {"frozen": True}

    id: str
    repo_tags: list[str] = Field(default_factory=list)
    size: int = 0
    created: int = 0
    labels: dict[str, str] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """First tag, or the short id."""
        if self.repo_tags and self.repo_tags[0] != "<none>:<none>":
            return self.repo_tags[0]
        return self.id.replace("sha256:", "")[:12]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ImageSummary":
        """Build from a ``GET /images/json`` entry."""
        return cls(
            id=data.get("Id", ""),
            repo_tags=data.get("RepoTags") or [],
            size=data.get("Size", 0),
            created=data.get("Created", 0),
            labels=data.get("Labels") or {},
        )


class DiskUsage(BaseModel):
    """Bytes used by each kind of Docker object."""

    model_config = {"frozen": True}

    images: int = 0
    containers: int = 0
    volumes: int = 0
    build_cache: int = 0

    @property
    def total(self) -> int:
        return self.images + self.containers + self.volumes + self.build_cache

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DiskUsage":
        """Build from a ``GET /system/df`` response."""
        return cls(
            images=sum(img.get("Size") or 0 for img in data.get("Images") or []),
            containers=sum(c.get("SizeRw") or 0 for c in data.get("Containers") or []),
            volumes=sum(
                max((v.get("UsageData") or {}).get("Size") or 0, 0)
                for v in data.get("Volumes") or []
            ),
            build_cache=sum(b.get("Size") or 0 for b in data.get("BuildCache") or []),
        )


class ExecResult(BaseModel):
    """Result of running the docker CLI."""

    model_config = {"frozen": True}

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
