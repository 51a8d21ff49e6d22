"""Docker daemon client used by Docker-backed checks."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable

import docker
from docker.errors import DockerException

from dockerdoctor.runtime.results import (
    ContainerSummary,
    DiskUsage,
    ExecResult,
    ImageSummary,
    RuntimeResult,
)
from dockerdoctor.utils.errors import RuntimeUnavailableError
from dockerdoctor.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EXEC_TIMEOUT = 30.0
# Exit code reported when the docker CLI is missing or times out
EXEC_FAILURE_CODE = 1


class DockerRuntime:
    """Async wrapper around the Docker SDK.

    The SDK is synchronous, so every daemon call runs in a worker thread
    via ``asyncio.to_thread``. CLI invocations go through an asyncio
    subprocess.

    Example:
        runtime = DockerRuntime()
        if await runtime.ping():
            containers = (await runtime.safe_list_containers()).value_or_empty()
    """

    def __init__(self, client: Any = None, exec_timeout: float = DEFAULT_EXEC_TIMEOUT) -> None:
        """Initialize the runtime.

        Args:
            client: Optional pre-built ``docker.DockerClient``
            exec_timeout: Default timeout for docker CLI calls, in seconds
        """
        self._client = client
        self._exec_timeout = exec_timeout

    @property
    def client(self) -> Any:
        """Get the Docker client, creating it if necessary.

        Creating the client may contact the daemon, so call this from a
        worker thread.
        """
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException as e:
                raise RuntimeUnavailableError(f"Failed to connect to Docker daemon: {e}") from e
        return self._client

    async def _api(self, method: str, *args: Any, **kwargs: Any) -> Any:
        def call() -> Any:
            return getattr(self.client.api, method)(*args, **kwargs)

        return await asyncio.to_thread(call)

    async def ping(self) -> bool:
        """Check the daemon answers.

        Raises:
            RuntimeUnavailableError: If the daemon cannot be reached
        """
        try:
            return bool(await self._api("ping"))
        except RuntimeUnavailableError:
            raise
        except DockerException as e:
            raise RuntimeUnavailableError(f"Docker daemon did not answer: {e}") from e

    async def list_containers(self, all: bool = True) -> list[ContainerSummary]:
        """List containers, including stopped ones when ``all`` is set."""
        raw = await self._api("containers", all=all)
        return [ContainerSummary.from_api(c) for c in raw]

    async def inspect_container(self, container_id: str) -> dict[str, Any]:
        """Get the full inspect document for a container."""
        return await self._api("inspect_container", container_id)

    async def list_images(self, dangling: bool | None = None) -> list[ImageSummary]:
        """List images, optionally filtered by dangling state."""
        filters = {"dangling": dangling} if dangling is not None else None
        raw = await self._api("images", filters=filters)
        return [ImageSummary.from_api(img) for img in raw]

    async def inspect_image(self, image: str) -> dict[str, Any]:
        """Get the full inspect document for an image."""
        return await self._api("inspect_image", image)

    async def image_history(self, image: str) -> list[dict[str, Any]]:
        """Get an image's layers, newest first, with ``Size`` and ``CreatedBy``."""
        return await self._api("history", image)

    async def disk_usage(self) -> DiskUsage:
        """Get disk usage per object kind."""
        return DiskUsage.from_api(await self._api("df"))

    async def container_logs(self, container_id: str, tail: int = 100) -> str:
        """Get the last ``tail`` lines of a container's output."""
        raw = await self._api("logs", container_id, stdout=True, stderr=True, tail=tail)
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return str(raw)

    async def exec(self, args: list[str], timeout: float | None = None) -> ExecResult:
        """Run the docker CLI.

        Never raises: a missing binary or a timeout is reported as a
        non-zero exit code.

        Args:
            args: Arguments after ``docker``
            timeout: Seconds before the process is killed
        """
        timeout = timeout if timeout is not None else self._exec_timeout
        try:
            proc = await asyncio.create_subprocess_exec(
                "docker",
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.debug(f"docker CLI unavailable: {e}")
            return ExecResult(exit_code=EXEC_FAILURE_CODE, stderr=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._reap(proc)
            logger.debug(f"docker {' '.join(args)} timed out after {timeout}s")
            return ExecResult(exit_code=EXEC_FAILURE_CODE, stderr=f"timed out after {timeout}s")
        except asyncio.CancelledError:
            # The caller gave up (e.g. a check timeout), the child must not outlive it
            await asyncio.shield(self._reap(proc))
            raise

        return ExecResult(
            exit_code=proc.returncode if proc.returncode is not None else EXEC_FAILURE_CODE,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    @staticmethod
    async def _reap(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()

    async def _safe(self, query: str, awaitable: Awaitable[Any]) -> RuntimeResult:
        try:
            return RuntimeResult.ok(await awaitable)
        except (DockerException, RuntimeUnavailableError, OSError) as e:
            logger.debug(f"Docker query {query} failed: {e}")
            return RuntimeResult.fail(str(e))

    async def safe_list_containers(self, all: bool = True) -> RuntimeResult:
        return await self._safe("list_containers", self.list_containers(all=all))

    async def safe_inspect_container(self, container_id: str) -> RuntimeResult:
        return await self._safe("inspect_container", self.inspect_container(container_id))

    async def safe_list_images(self, dangling: bool | None = None) -> RuntimeResult:
        return await self._safe("list_images", self.list_images(dangling=dangling))

    async def safe_inspect_image(self, image: str) -> RuntimeResult:
        return await self._safe("inspect_image", self.inspect_image(image))

    async def safe_image_history(self, image: str) -> RuntimeResult:
        return await self._safe("image_history", self.image_history(image))

    async def safe_disk_usage(self) -> RuntimeResult:
        return await self._safe("disk_usage", self.disk_usage())

    async def safe_container_logs(self, container_id: str, tail: int = 100) -> RuntimeResult:
        return await self._safe("container_logs", self.container_logs(container_id, tail=tail))
