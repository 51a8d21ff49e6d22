"""Renderer base class and rendering options."""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class OutputFormat(str, Enum):
    """Report output formats."""

    JSON = "json"
    TERMINAL = "terminal"


class RenderContext(BaseModel):
    """Options shared by all renderers."""

    model_config = {"frozen": True}

    format: OutputFormat = Field(default=OutputFormat.TERMINAL, description="Output format")
    output_path: Path | None = Field(default=None, description="Write here instead of returning text")
    verbose: bool = Field(default=False, description="Show full messages and fix instructions")
    color: bool = Field(default=True, description="Colored output, terminal only")
    indent: int = Field(default=2, description="JSON indentation, 0 for compact")


class Renderer(ABC):
    """Turns a ``Report`` or a list of ``FixOutcome`` into output."""

    format: OutputFormat

    @abstractmethod
    def render(self, data: Any, context: RenderContext) -> str:
        """Render ``data``, returning the text produced."""

    def render_to_file(self, data: Any, context: RenderContext) -> None:
        """Write the rendered output to ``context.output_path``.

        Raises:
            ValueError: If no output path is set
        """
        path = self._require_path(context)
        path.write_text(self.render(data, context), encoding="utf-8")

    @staticmethod
    def _require_path(context: RenderContext) -> Path:
        if context.output_path is None:
            raise ValueError("output_path must be set in context for file rendering")
        return context.output_path
