"""Report renderers."""

from dockerdoctor.renderers.base import OutputFormat, RenderContext, Renderer
from dockerdoctor.renderers.json import JSONRenderer
from dockerdoctor.renderers.terminal import TerminalRenderer

RENDERERS: dict[OutputFormat, type[Renderer]] = {
    OutputFormat.JSON: JSONRenderer,
    OutputFormat.TERMINAL: TerminalRenderer,
}


def get_renderer(format: OutputFormat | str) -> Renderer:
    """Create the renderer for ``format``.

    Raises:
        ValueError: If the format is unknown
    """
    try:
        return RENDERERS[OutputFormat(format)]()
    except ValueError:
        raise ValueError(f"Unsupported format: {format}") from None


__all__ = [
    "OutputFormat",
    "RenderContext",
    "Renderer",
    "JSONRenderer",
    "TerminalRenderer",
    "RENDERERS",
    "get_renderer",
]
