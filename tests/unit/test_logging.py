"""Unit tests for the logging helpers."""

import logging

import pytest
from rich.logging import RichHandler

from dockerdoctor.utils.logging import (
    ROOT_LOGGER,
    KeyValueFormatter,
    bind_logger,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging after each test."""
    root = logging.getLogger(ROOT_LOGGER)
    saved = (root.handlers[:], root.level, root.propagate)
    yield
    root.handlers, root.level, root.propagate = saved


class TestGetLogger:
    """Tests for logger naming."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("core.runner", "dockerdoctor.core.runner"),
            ("dockerdoctor.checks.image", "dockerdoctor.checks.image"),
            ("dockerdoctor", "dockerdoctor"),
            ("dockerdoctorx", "dockerdoctor.dockerdoctorx"),
        ],
    )
    def test_prefix(self, name, expected):
        """Test loggers are nested under the package logger."""
        assert get_logger(name).name == expected


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_rich_handler(self):
        """Test the default handler is a rich handler."""
        configure_logging(level="info")
        root = logging.getLogger(ROOT_LOGGER)
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0], RichHandler)
        assert root.propagate is False

    def test_structured(self):
        """Test structured mode writes key=value lines."""
        configure_logging(level="DEBUG", structured=True)
        handler = logging.getLogger(ROOT_LOGGER).handlers[0]
        assert isinstance(handler.formatter, KeyValueFormatter)


class TestBoundLogger:
    """Tests for bound fields."""

    def test_fields_formatted(self):
        """Test bound fields are appended to the message."""
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        logger = get_logger("tests.bound")
        handler = Collect()
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        try:
            bind_logger("tests.bound", check_id="image.image-size").debug("Check started")
        finally:
            logger.removeHandler(handler)

        line = KeyValueFormatter("%(message)s").format(records[0])
        assert line == "Check started check_id=image.image-size"

    def test_no_fields(self):
        """Test records without fields format as usual."""
        record = logging.LogRecord("dockerdoctor", logging.INFO, __file__, 1, "hello", None, None)
        assert KeyValueFormatter("%(message)s").format(record) == "hello"
