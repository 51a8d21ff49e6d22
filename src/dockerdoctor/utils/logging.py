"""Logging setup for dockerdoctor.

Everything logs under the ``dockerdoctor`` logger to stderr, so a JSON
report on stdout is never interleaved with diagnostics.
"""

import logging
import sys
from typing import Any, MutableMapping

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "dockerdoctor"

KEY_VALUE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"


class KeyValueFormatter(logging.Formatter):
    """Plain-text formatter that appends bound fields as ``key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "fields", None)
        if not fields:
            return line
        return line + " " + " ".join(f"{key}={value}" for key, value in fields.items())


def configure_logging(level: str = "WARNING", structured: bool = False) -> None:
    """Route dockerdoctor logs to stderr.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        structured: Timestamped ``key=value`` lines instead of rich output,
            for piping debug logs into other tools
    """
    handler: logging.Handler
    if structured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(KeyValueFormatter(KEY_VALUE_FORMAT))
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(KeyValueFormatter("%(message)s"))

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.upper())
    root.handlers = [handler]
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger nested under the ``dockerdoctor`` logger."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


class BoundLogger(logging.LoggerAdapter):
    """Adapter attaching fixed fields (such as a check id) to every record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["fields"] = dict(self.extra or {})
        kwargs["extra"] = extra
        return msg, kwargs


def bind_logger(name: str, **fields: Any) -> BoundLogger:
    """Get a logger whose records carry ``fields``.

    Example:
        log = bind_logger(__name__, check_id="dockerfile.shell-form")
        log.debug("Check started")
    """
    return BoundLogger(get_logger(name), fields)
