"""Check descriptor model."""

import re
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field, field_validator

from dockerdoctor.models.common import CheckCategory

_CHECK_ID_RE = re.compile(r"^[a-z][a-z0-9]*\.[a-z0-9][a-z0-9-]*$")

# async def run(context: CheckContext) -> list[Finding]
CheckFunction = Callable[[Any], Awaitable[list[Any]]]


class CheckDescriptor(BaseModel):
    """A pluggable diagnostic rule."""

    model_config = {"frozen": True}

    id: str = Field(description="Stable dotted id, category.name")
    name: str = Field(description="Human-readable check name")
    category: CheckCategory = Field(description="Check category")
    requires_docker: bool = Field(default=False, description="Needs a reachable Docker daemon")
    description: str = Field(default="", description="What the check looks for")
    run: Callable[..., Any] = Field(exclude=True, description="Coroutine function taking a CheckContext")

    @field_validator("id")
    @classmethod
    def _dotted_id(cls, value: str) -> str:
        if not _CHECK_ID_RE.match(value):
            raise ValueError(f"Check id must look like 'category.name': {value!r}")
        return value

    def __call__(self, context: Any) -> Awaitable[list[Any]]:
        return self.run(context)
