"""Configuration file support for dockerdoctor."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from dockerdoctor.models.common import CheckCategory, Severity
from dockerdoctor.utils.errors import ConfigurationError


class RunnerConfig(BaseModel):
    """Check dispatch configuration."""

    concurrent: bool = Field(default=True, description="Dispatch eligible checks concurrently")
    check_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds a Docker-backed check may run before it yields no findings",
    )


class DockerConfig(BaseModel):
    """Docker runtime configuration."""

    probe_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for the daemon probe")
    exec_timeout: float = Field(default=30.0, gt=0, description="Seconds a docker CLI call may take")


class OutputConfig(BaseModel):
    """Output configuration."""

    default_format: str = Field(default="terminal", description="Default output format")
    color: bool = Field(default=True, description="Enable color output")


class ChecksConfig(BaseModel):
    """Which checks run and what is reported."""

    disabled: list[str] = Field(default_factory=list, description="Check ids never executed")
    categories: list[CheckCategory] = Field(
        default_factory=list,
        description="Default category filter, empty for all",
    )
    min_severity: Severity | None = Field(default=None, description="Default minimum severity")


class DockerDoctorConfig(BaseModel):
    """Main configuration for dockerdoctor."""

    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    checks: ChecksConfig = Field(default_factory=ChecksConfig)


def get_config_paths(cwd: Path | None = None) -> list[Path]:
    """Get possible configuration file paths, in priority order.

    Args:
        cwd: Project directory, defaults to the current directory

    Returns:
        List of paths to check for configuration files
    """
    base = cwd or Path.cwd()
    paths = [
        base / ".dockerdoctor.yaml",
        base / ".dockerdoctor.yml",
    ]

    home = Path.home()
    paths.append(home / ".dockerdoctor.yaml")

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        paths.append(Path(xdg_config) / "dockerdoctor" / "config.yaml")
    paths.append(home / ".config" / "dockerdoctor" / "config.yaml")

    return paths


def load_config(config_path: Path | str | None = None, cwd: Path | None = None) -> DockerDoctorConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file. If None, searches default locations.
        cwd: Project directory used for the search

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If an explicit file is missing or any file is invalid
    """
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            return _load_config_file(path)
        raise ConfigurationError(f"Config file not found: {config_path}", path=str(config_path))

    for path in get_config_paths(cwd):
        if path.exists():
            return _load_config_file(path)

    return DockerDoctorConfig()


def _load_config_file(path: Path) -> DockerDoctorConfig:
    """Load configuration from a specific file."""
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}", path=str(path)) from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file: {e}", path=str(path)) from e

    if data is None:
        return DockerDoctorConfig()
    try:
        return DockerDoctorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}", path=str(path)) from e
