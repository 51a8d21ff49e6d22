"""Utility functions for dockerdoctor."""

from dockerdoctor.utils.logging import bind_logger, configure_logging, get_logger
from dockerdoctor.utils.errors import (
    DockerDoctorError,
    ConfigurationError,
    ParseError,
    ComposeParseError,
    DuplicateCheckError,
    RuntimeUnavailableError,
    CheckExecutionError,
    FixApplicationError,
)
from dockerdoctor.utils.config import (
    DockerDoctorConfig,
    RunnerConfig,
    DockerConfig,
    OutputConfig,
    ChecksConfig,
    load_config,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "bind_logger",
    # Errors
    "DockerDoctorError",
    "ConfigurationError",
    "ParseError",
    "ComposeParseError",
    "DuplicateCheckError",
    "RuntimeUnavailableError",
    "CheckExecutionError",
    "FixApplicationError",
    # Config
    "DockerDoctorConfig",
    "RunnerConfig",
    "DockerConfig",
    "OutputConfig",
    "ChecksConfig",
    "load_config",
]
