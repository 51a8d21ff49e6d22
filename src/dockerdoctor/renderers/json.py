"""JSON output for reports and fix outcomes."""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from dockerdoctor.renderers.base import OutputFormat, RenderContext, Renderer


def _encode_extra(obj: Any) -> Any:
    """Encode values ``json`` cannot handle, such as those left in finding meta."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (Path, set, frozenset)):
        return str(obj) if isinstance(obj, Path) else sorted(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_jsonable(data: Any) -> Any:
    """Dump models (and lists or dicts of them) to plain JSON data.

    Fix actions are excluded from the models, so a fix appears as its
    description, kind and instructions only.
    """
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {key: to_jsonable(value) for key, value in data.items()}
    return data


class JSONRenderer(Renderer):
    """Renders to a JSON document.

    Example:
        text = JSONRenderer().render(report, RenderContext(format=OutputFormat.JSON))
    """

    format = OutputFormat.JSON

    def render(self, data: Any, context: RenderContext) -> str:
        return json.dumps(
            to_jsonable(data),
            indent=context.indent or None,
            default=_encode_extra,
            ensure_ascii=False,
        )
