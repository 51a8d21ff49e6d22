"""Building the check context for a project directory."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, TypeVar

from dockerdoctor.core.discovery import (
    find_compose_file,
    find_dockerfile,
    find_first,
    find_shell_scripts,
)
from dockerdoctor.models.context import CheckContext, DiscoveredFiles
from dockerdoctor.parsers.compose import ComposeParser
from dockerdoctor.parsers.dockerfile import DockerfileParser
from dockerdoctor.parsers.dockerignore import parse_dockerignore_file
from dockerdoctor.runtime.client import DockerRuntime
from dockerdoctor.utils.config import DockerDoctorConfig
from dockerdoctor.utils.errors import ConfigurationError
from dockerdoctor.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ContextBuilder:
    """Discovers, parses and probes everything checks need.

    Example:
        builder = ContextBuilder(config)
        context = await builder.build("/path/to/project")
        print(context.files.dockerfile_path, context.docker_available)
    """

    def __init__(self, config: DockerDoctorConfig | None = None, runtime: Any = None) -> None:
        """Initialize the builder.

        Args:
            config: Configuration, defaults are used when None
            runtime: Docker runtime to probe and hand to checks; a
                ``DockerRuntime`` is created when None
        """
        self._config = config or DockerDoctorConfig()
        self._runtime = runtime

    async def build(
        self,
        cwd: str | Path,
        dockerfile_path: str | Path | None = None,
        compose_path: str | Path | None = None,
    ) -> CheckContext:
        """Build the context for a project.

        Args:
            cwd: Project directory
            dockerfile_path: Explicit Dockerfile, relative to cwd
            compose_path: Explicit Compose manifest, relative to cwd

        Returns:
            Frozen context shared by all checks

        Raises:
            ConfigurationError: If cwd or an explicit path does not exist or
                an explicit file cannot be read
            ComposeParseError: If the Compose manifest is invalid
        """
        root = Path(cwd).resolve()
        if not root.is_dir():
            raise ConfigurationError(f"Project directory not found: {cwd}", path=str(cwd))

        # Explicit paths are validated before anything is parsed
        explicit_dockerfile = self._resolve_explicit(root, dockerfile_path, "Dockerfile")
        explicit_compose = self._resolve_explicit(root, compose_path, "Compose file")

        dockerfile_file = explicit_dockerfile or find_dockerfile(root)
        compose_file = explicit_compose or find_compose_file(root)
        dockerignore_file = find_first(root, [".dockerignore"])
        gitattributes_file = find_first(root, [".gitattributes"])
        shell_scripts = find_shell_scripts(root)
        logger.debug(
            f"Discovered dockerfile={dockerfile_file} compose={compose_file} "
            f"dockerignore={dockerignore_file} scripts={len(shell_scripts)}"
        )

        dockerfile = None
        if dockerfile_file is not None:
            dockerfile = self._read(
                DockerfileParser().parse_file, dockerfile_file, explicit=explicit_dockerfile is not None
            )
            if dockerfile is None:
                dockerfile_file = None

        compose = None
        if compose_file is not None:
            compose = self._read(ComposeParser().parse_file, compose_file, explicit=explicit_compose is not None)
            if compose is None:
                compose_file = None

        dockerignore = None
        if dockerignore_file is not None:
            dockerignore = self._read(parse_dockerignore_file, dockerignore_file, explicit=False)
            if dockerignore is None:
                dockerignore_file = None

        runtime = self._runtime or DockerRuntime(exec_timeout=self._config.docker.exec_timeout)
        docker_available = await self.probe_docker(runtime)

        return CheckContext(
            cwd=str(root),
            files=DiscoveredFiles(
                dockerfile_path=str(dockerfile_file) if dockerfile_file else None,
                compose_path=str(compose_file) if compose_file else None,
                dockerignore_path=str(dockerignore_file) if dockerignore_file else None,
                gitattributes_path=str(gitattributes_file) if gitattributes_file else None,
                shell_scripts=[str(p) for p in shell_scripts],
            ),
            dockerfile=dockerfile,
            compose=compose,
            dockerignore=dockerignore,
            docker_available=docker_available,
            runtime=runtime,
        )

    async def probe_docker(self, runtime: Any) -> bool:
        """Ping the daemon within the probe timeout. Never raises."""
        timeout = self._config.docker.probe_timeout
        try:
            available = bool(await asyncio.wait_for(runtime.ping(), timeout=timeout))
        except asyncio.TimeoutError:
            logger.debug(f"Docker probe timed out after {timeout}s")
            return False
        except Exception as e:
            logger.debug(f"Docker probe failed: {e}")
            return False
        logger.debug(f"Docker available: {available}")
        return available

    @staticmethod
    def _resolve_explicit(root: Path, path: str | Path | None, label: str) -> Path | None:
        if path is None:
            return None
        resolved = root / path
        if not resolved.is_file():
            raise ConfigurationError(f"{label} not found: {path}", path=str(path))
        return resolved

    @staticmethod
    def _read(parse: Callable[[Path], T], path: Path, explicit: bool) -> T | None:
        """Parse a file; unreadable discovered files count as absent."""
        try:
            return parse(path)
        except OSError as e:
            if explicit:
                raise ConfigurationError(f"Cannot read {path}: {e}", path=str(path)) from e
            logger.warning(f"Ignoring unreadable file {path}: {e}")
            return None


async def build_context(
    cwd: str | Path,
    dockerfile_path: str | Path | None = None,
    compose_path: str | Path | None = None,
    config: DockerDoctorConfig | None = None,
    runtime: Any = None,
) -> CheckContext:
    """Build a check context with a one-off ContextBuilder."""
    builder = ContextBuilder(config, runtime=runtime)
    return await builder.build(cwd, dockerfile_path=dockerfile_path, compose_path=compose_path)
