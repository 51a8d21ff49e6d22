"""Dockerignore data models."""

from pydantic import BaseModel, Field


class DockerignoreEntry(BaseModel):
    """A single pattern line from a .dockerignore file."""

    model_config = {"frozen": True}

    pattern: str = Field(description="Pattern without the leading '!'")
    negation: bool = Field(default=False, description="Whether the line re-includes files")
    line: int = Field(ge=1, description="1-based line number")


class DockerignoreModel(BaseModel):
    """A parsed .dockerignore file."""

    model_config = {"frozen": True}

    path: str = Field(description="Path the file was read from")
    entries: list[DockerignoreEntry] = Field(default_factory=list)
    raw: str = Field(default="")

    def has_entry(self, pattern: str) -> bool:
        """Check if a non-negated entry excludes ``pattern``.

        A trailing slash is accepted, so ``dist/`` matches ``dist``.
        """
        return any(
            not e.negation and e.pattern in (pattern, f"{pattern}/", f"/{pattern}")
            for e in self.entries
        )
