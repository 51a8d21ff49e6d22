"""Shared test fixtures for dockerdoctor tests."""

from pathlib import Path
from typing import Any, Callable

import pytest

from dockerdoctor.models import CheckContext, DiscoveredFiles
from dockerdoctor.parsers import parse_compose, parse_dockerfile, parse_dockerignore
from dockerdoctor.runtime import (
    ContainerSummary,
    DiskUsage,
    ExecResult,
    ImageSummary,
    PortBinding,
    RuntimeResult,
)
from dockerdoctor.utils.errors import RuntimeUnavailableError


DAEMON_DOWN = "Cannot connect to the Docker daemon at unix:///var/run/docker.sock. Is the docker daemon running?"


class FakeRuntime:
    """In-memory stand-in for DockerRuntime.

    ``exec_results`` is keyed by the first docker CLI argument
    (``version``, ``volume``...). Other commands succeed with no output, as
    on an idle daemon. A failing runtime cannot reach the daemon at all.
    """

    def __init__(
        self,
        available: bool = True,
        containers: list[ContainerSummary] | None = None,
        inspections: dict[str, dict[str, Any]] | None = None,
        images: list[ImageSummary] | None = None,
        image_inspections: dict[str, dict[str, Any]] | None = None,
        histories: dict[str, list[dict[str, Any]]] | None = None,
        dangling_images: list[ImageSummary] | None = None,
        disk_usage: DiskUsage | None = None,
        logs: dict[str, str] | None = None,
        exec_results: dict[str, ExecResult] | None = None,
        failing: bool = False,
    ) -> None:
        self.available = available
        self.containers = containers or []
        self.inspections = inspections or {}
        self.images = images or []
        self.image_inspections = image_inspections or {}
        self.histories = histories or {}
        self.dangling_images = dangling_images or []
        self.disk_usage = disk_usage
        self.logs = logs or {}
        self.exec_results = exec_results or {}
        self.failing = failing
        self.exec_calls: list[list[str]] = []
        self.ping_calls = 0

    async def ping(self) -> bool:
        self.ping_calls += 1
        if not self.available:
            raise RuntimeUnavailableError()
        return True

    async def safe_list_containers(self, all: bool = True) -> RuntimeResult:
        if self.failing:
            return RuntimeResult.fail("connection refused")
        if all:
            return RuntimeResult.ok(list(self.containers))
        return RuntimeResult.ok([c for c in self.containers if c.state == "running"])

    async def safe_inspect_container(self, container_id: str) -> RuntimeResult:
        if self.failing or container_id not in self.inspections:
            return RuntimeResult.fail(f"No such container: {container_id}")
        return RuntimeResult.ok(self.inspections[container_id])

    async def safe_list_images(self, dangling: bool | None = None) -> RuntimeResult:
        if self.failing:
            return RuntimeResult.fail("connection refused")
        if dangling:
            return RuntimeResult.ok(list(self.dangling_images))
        return RuntimeResult.ok(list(self.images))

    async def safe_inspect_image(self, image: str) -> RuntimeResult:
        if self.failing or image not in self.image_inspections:
            return RuntimeResult.fail(f"No such image: {image}")
        return RuntimeResult.ok(self.image_inspections[image])

    async def safe_image_history(self, image: str) -> RuntimeResult:
        if self.failing:
            return RuntimeResult.fail("connection refused")
        return RuntimeResult.ok(self.histories.get(image, []))

    async def safe_disk_usage(self) -> RuntimeResult:
        if self.failing or self.disk_usage is None:
            return RuntimeResult.fail("connection refused")
        return RuntimeResult.ok(self.disk_usage)

    async def safe_container_logs(self, container_id: str, tail: int = 100) -> RuntimeResult:
        if self.failing:
            return RuntimeResult.fail("connection refused")
        return RuntimeResult.ok(self.logs.get(container_id, ""))

    async def exec(self, args: list[str], timeout: float | None = None) -> ExecResult:
        self.exec_calls.append(list(args))
        if self.failing:
            return ExecResult(exit_code=1, stderr=DAEMON_DOWN)
        return self.exec_results.get(args[0], ExecResult(exit_code=0))


def make_container(
    name: str,
    state: str = "running",
    status: str = "Up 2 hours",
    image: str = "app:1.0",
    ports: list[PortBinding] | None = None,
    labels: dict[str, str] | None = None,
    networks: list[str] | None = None,
) -> ContainerSummary:
    """Build a container summary with an id derived from its name."""
    return ContainerSummary(
        id=f"{name}-0123456789abcdef",
        names=[name],
        image=image,
        state=state,
        status=status,
        ports=ports or [],
        labels=labels or {},
        networks=networks or [],
    )


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    """A reachable runtime with no containers or images."""
    return FakeRuntime()


@pytest.fixture
def make_context(tmp_path: Path) -> Callable[..., CheckContext]:
    """Factory for contexts built from inline file contents."""

    def _make(
        dockerfile: str | None = None,
        compose: str | None = None,
        dockerignore: str | None = None,
        runtime: Any = None,
        files: DiscoveredFiles | None = None,
        cwd: Path | None = None,
    ) -> CheckContext:
        root = cwd or tmp_path
        return CheckContext(
            cwd=str(root),
            files=files or DiscoveredFiles(),
            dockerfile=parse_dockerfile(dockerfile, str(root / "Dockerfile")) if dockerfile is not None else None,
            compose=parse_compose(compose, str(root / "docker-compose.yml")) if compose is not None else None,
            dockerignore=(
                parse_dockerignore(dockerignore, str(root / ".dockerignore")) if dockerignore is not None else None
            ),
            docker_available=runtime is not None,
            runtime=runtime,
        )

    return _make


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[[dict[str, str | bytes]], Path]:
    """Factory writing a project directory from a name -> content mapping."""

    def _write(files: dict[str, str | bytes]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return tmp_path

    return _write


NODE_DOCKERFILE = """\
FROM node:latest
WORKDIR /app
ENV NODE_ENV=production
COPY . .
COPY package.json ./
RUN npm install
CMD npm start
"""

CLEAN_DOCKERFILE = """\
FROM node:20-alpine AS build
WORKDIR /app
COPY package*.json ./
RUN npm ci
COPY . .
RUN npm run build

FROM node:20-alpine
WORKDIR /app
COPY --from=build --chown=node:node /app/dist ./dist
USER node
CMD ["node", "dist/index.js"]
"""

CLEAN_DOCKERIGNORE = """\
node_modules
.git
.env
.npm
dist
coverage
"""


@pytest.fixture
def runtime_factory() -> type[FakeRuntime]:
    """The FakeRuntime class, for tests that need a configured runtime."""
    return FakeRuntime


@pytest.fixture
def container_factory() -> Callable[..., ContainerSummary]:
    """Factory for container summaries."""
    return make_container


@pytest.fixture
def node_dockerfile() -> str:
    """A Dockerfile with several classic Node.js mistakes."""
    return NODE_DOCKERFILE


@pytest.fixture
def clean_dockerfile() -> str:
    """A well-formed multi-stage Node.js Dockerfile."""
    return CLEAN_DOCKERFILE


@pytest.fixture
def clean_dockerignore() -> str:
    """A .dockerignore listing every recommended entry."""
    return CLEAN_DOCKERIGNORE
