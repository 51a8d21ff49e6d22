"""Compose manifest data models."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ComposeService(BaseModel):
    """A single service from a Compose manifest.

    ``networks`` and ``depends_on`` may be written as a list or a mapping
    in the source document. Both are normalized to an ordered list of
    unique names, or None when the key is absent.
    """

    model_config = {"frozen": True}

    name: str = Field(description="Service key in the services mapping")
    image: str | None = Field(default=None, description="Image reference")
    build: str | dict[str, Any] | None = Field(default=None, description="Build context or spec")
    volumes: list[Any] = Field(default_factory=list, description="Volume entries as written")
    ports: list[str] = Field(default_factory=list, description="Port mappings, short syntax")
    environment: dict[str, str | None] = Field(
        default_factory=dict,
        description="Environment, normalized to a mapping",
    )
    networks: list[str] | None = Field(default=None, description="Attached network names")
    network_config: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-network settings from the mapping form",
    )
    depends_on: list[str] | None = Field(default=None, description="Dependency service names")
    healthcheck: dict[str, Any] | None = Field(default=None, description="Healthcheck block")
    extras: dict[str, Any] = Field(
        default_factory=dict,
        description="Every key not modeled above, unmodified",
    )

    @property
    def has_healthcheck(self) -> bool:
        """Whether a healthcheck block is present."""
        return self.healthcheck is not None

    def get(self, key: str, default: Any = None) -> Any:
        """Get a passthrough field by its Compose key."""
        return self.extras.get(key, default)


class ComposeModel(BaseModel):
    """A parsed Compose manifest."""

    model_config = {"frozen": True}

    path: str = Field(description="Path the manifest was read from")
    version: str | None = Field(default=None, description="Legacy version key")
    services: list[ComposeService] = Field(default_factory=list, description="Services in document order")
    networks: dict[str, Any] = Field(default_factory=dict, description="Top-level networks block")
    volumes: dict[str, Any] = Field(default_factory=dict, description="Top-level volumes block")
    raw: str = Field(default="", description="Original document text")

    @model_validator(mode="after")
    def _unique_service_names(self) -> "ComposeModel":
        seen: set[str] = set()
        for service in self.services:
            if service.name in seen:
                raise ValueError(f"Duplicate service name: {service.name}")
            seen.add(service.name)
        return self

    def get_service(self, name: str) -> ComposeService | None:
        """Get a service by name."""
        for service in self.services:
            if service.name == name:
                return service
        return None

    @property
    def service_names(self) -> list[str]:
        """Names of all services."""
        return [s.name for s in self.services]
