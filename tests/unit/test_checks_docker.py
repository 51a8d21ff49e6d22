"""Unit tests for the Docker-backed checks, against a fake runtime."""

import json

import pytest

from dockerdoctor.checks import build, cleanup, image, network, performance, startup
from dockerdoctor.checks.utils import GB, MB
from dockerdoctor.models import Severity
from dockerdoctor.runtime import DiskUsage, ExecResult, ImageSummary, PortBinding

DOCKER_CHECKS = (
    build.CHECKS + startup.CHECKS + network.CHECKS + performance.CHECKS + image.CHECKS + cleanup.CHECKS
)


async def run(descriptor, context):
    return await descriptor(context)


class TestCommon:
    """Behavior shared by every Docker-backed check."""

    @pytest.mark.parametrize("descriptor", DOCKER_CHECKS, ids=lambda d: d.id)
    def test_requires_docker(self, descriptor):
        """Test every check declares its Docker dependency."""
        assert descriptor.requires_docker

    @pytest.mark.parametrize("descriptor", DOCKER_CHECKS, ids=lambda d: d.id)
    async def test_no_runtime(self, descriptor, make_context):
        """Test no findings without a runtime."""
        assert await run(descriptor, make_context(dockerfile="FROM --platform=linux/arm64 alpine\n")) == []

    @pytest.mark.parametrize("descriptor", DOCKER_CHECKS, ids=lambda d: d.id)
    async def test_transport_failure(self, descriptor, make_context, runtime_factory):
        """Test a failing daemon yields no findings instead of raising."""
        context = make_context(
            dockerfile="FROM --platform=linux/arm64 alpine\n",
            runtime=runtime_factory(failing=True),
        )
        assert await run(descriptor, context) == []

    @pytest.mark.parametrize("descriptor", DOCKER_CHECKS, ids=lambda d: d.id)
    async def test_idle_daemon(self, descriptor, make_context, fake_runtime):
        """Test an empty daemon produces no findings."""
        assert await run(descriptor, make_context(runtime=fake_runtime)) == []


class TestPlatformMismatch:
    """Tests for build.platform-mismatch."""

    @pytest.mark.parametrize(
        "arch,platform,flagged",
        [
            ("amd64", "linux/arm64", True),
            ("arm64", "linux/amd64", True),
            ("amd64", "linux/amd64", False),
            ("aarch64", "linux/arm64/v8", False),
            ("amd64", "$BUILDPLATFORM", False),
        ],
    )
    async def test_detection(self, make_context, runtime_factory, arch, platform, flagged):
        """Test FROM --platform is compared with the host architecture."""
        runtime = runtime_factory(exec_results={"version": ExecResult(exit_code=0, stdout=f"{arch}\n")})
        context = make_context(dockerfile=f"FROM --platform={platform} alpine:3.20\n", runtime=runtime)
        findings = await run(build.platform_mismatch, context)
        assert bool(findings) is flagged
        assert runtime.exec_calls == [["version", "--format", "{{.Server.Arch}}"]]

    async def test_no_platform_flag(self, make_context, runtime_factory):
        """Test a FROM without --platform is never flagged."""
        runtime = runtime_factory(exec_results={"version": ExecResult(exit_code=0, stdout="amd64")})
        context = make_context(dockerfile="FROM alpine:3.20\n", runtime=runtime)
        assert await run(build.platform_mismatch, context) == []


class TestBuildHost:
    """Tests for the build checks on the project and Docker host."""

    async def test_context_size(self, monkeypatch, make_context, write_project, fake_runtime):
        """Test the context size thresholds count files on disk."""
        monkeypatch.setattr(build, "CONTEXT_WARN", 1000)
        monkeypatch.setattr(build, "CONTEXT_ERROR", 10_000)
        project = write_project({"app.js": "x" * 600, "assets/logo.png": b"\0" * 600})
        findings = await run(build.context_size, make_context(runtime=fake_runtime, cwd=project))
        assert [f.severity for f in findings] == [Severity.WARNING]
        assert findings[0].meta["size_bytes"] == 1200

        write_project({"data/dump.sql": "y" * 20_000})
        findings = await run(build.context_size, make_context(runtime=fake_runtime, cwd=project))
        assert [f.severity for f in findings] == [Severity.ERROR]

    async def test_context_size_skips_ignored_directories(
        self, monkeypatch, make_context, write_project, fake_runtime
    ):
        """Test directories listed in .dockerignore do not count."""
        monkeypatch.setattr(build, "CONTEXT_WARN", 1000)
        project = write_project({"index.js": "x" * 100, "node_modules/dep/big.js": "y" * 5000})
        context = make_context(dockerignore="node_modules\n", runtime=fake_runtime, cwd=project)
        assert await run(build.context_size, context) == []

    @pytest.mark.parametrize(
        "images_gb,expected",
        [(10, None), (25, Severity.WARNING), (60, Severity.ERROR)],
    )
    async def test_disk_space(self, make_context, runtime_factory, images_gb, expected):
        """Test the 20 GB and 50 GB thresholds."""
        runtime = runtime_factory(disk_usage=DiskUsage(images=images_gb * GB))
        findings = await run(build.disk_space, make_context(runtime=runtime))
        assert [f.severity for f in findings] == ([expected] if expected else [])

    async def test_dns_failure(self, make_context, runtime_factory):
        """Test a failed registry lookup from a container is an error."""
        runtime = runtime_factory(
            exec_results={"run": ExecResult(exit_code=1, stderr="nslookup: can't resolve 'registry-1.docker.io'")}
        )
        findings = await run(build.dns_resolution, make_context(runtime=runtime))
        assert len(findings) == 1
        assert findings[0].severity == Severity.ERROR
        assert "can't resolve" in findings[0].message
        assert runtime.exec_calls == [["run", "--rm", "alpine", "nslookup", "registry-1.docker.io"]]

    async def test_dns_success(self, make_context, runtime_factory):
        """Test a successful lookup produces nothing."""
        runtime = runtime_factory(exec_results={"run": ExecResult(exit_code=0, stdout="Name: registry-1.docker.io")})
        assert await run(build.dns_resolution, make_context(runtime=runtime)) == []


class TestStartup:
    """Tests for the startup checks."""

    async def test_oom_killed(self, make_context, runtime_factory, container_factory):
        """Test OOM-killed containers are errors with their memory limit."""
        api = container_factory("api", state="exited", status="Exited (137) 5 minutes ago")
        worker = container_factory("worker", state="exited", status="Exited (0) 1 hour ago")
        runtime = runtime_factory(
            containers=[api, worker],
            inspections={
                api.id: {"State": {"OOMKilled": True}, "HostConfig": {"Memory": 512 * MB}},
                worker.id: {"State": {"OOMKilled": False}},
            },
        )
        findings = await run(startup.oom_killed, make_context(runtime=runtime))
        assert len(findings) == 1
        assert findings[0].severity == Severity.ERROR
        assert findings[0].meta["container"] == "api"
        assert findings[0].meta["memory_limit_bytes"] == 512 * MB
        assert "512 MB" in findings[0].message

    async def test_exit_code(self, make_context, runtime_factory, container_factory):
        """Test non-zero exits are described and carry the log tail."""
        crashed = container_factory("web", state="exited", status="Exited (127) 2 minutes ago")
        clean = container_factory("job", state="exited", status="Exited (0) 2 minutes ago")
        running = container_factory("db")
        runtime = runtime_factory(
            containers=[crashed, clean, running],
            logs={crashed.id: "line 1\n\nline 2\nline 3\nline 4\nline 5\nsh: app: not found\n"},
        )
        findings = await run(startup.exit_code, make_context(runtime=runtime))
        assert len(findings) == 1
        meta = findings[0].meta
        assert meta["exit_code"] == 127
        assert meta["description"].startswith("Command not found")
        assert meta["log_tail"] == ["line 2", "line 3", "line 4", "line 5", "sh: app: not found"]

    async def test_unknown_exit_code(self, make_context, runtime_factory, container_factory):
        """Test unknown codes are still reported."""
        runtime = runtime_factory(containers=[container_factory("x", state="exited", status="Exited (42) now")])
        findings = await run(startup.exit_code, make_context(runtime=runtime))
        assert findings[0].meta["description"] == "Unknown exit code 42"


class TestNetwork:
    """Tests for the network checks."""

    async def test_port_conflict(self, make_context, runtime_factory, container_factory):
        """Test a host port published by two running containers is an error."""
        runtime = runtime_factory(
            containers=[
                container_factory("a", ports=[PortBinding(ip="0.0.0.0", private_port=80, public_port=8080)]),
                container_factory(
                    "b",
                    ports=[
                        PortBinding(ip="0.0.0.0", private_port=3000, public_port=8080),
                        PortBinding(ip="::", private_port=3000, public_port=8080),
                    ],
                ),
                container_factory("c", ports=[PortBinding(ip="0.0.0.0", private_port=5432, public_port=5432)]),
                container_factory(
                    "stopped",
                    state="exited",
                    ports=[PortBinding(ip="0.0.0.0", private_port=5432, public_port=5432)],
                ),
            ]
        )
        findings = await run(network.port_conflicts, make_context(runtime=runtime))
        assert len(findings) == 1
        assert findings[0].severity == Severity.ERROR
        assert findings[0].meta == {"public_port": 8080, "containers": ["a", "b"]}

    async def test_localhost_binding(self, make_context, runtime_factory, container_factory):
        """Test ports bound to 127.0.0.1 are warnings."""
        runtime = runtime_factory(
            containers=[
                container_factory("local", ports=[PortBinding(ip="127.0.0.1", private_port=80, public_port=8080)]),
                container_factory("public", ports=[PortBinding(ip="0.0.0.0", private_port=80, public_port=9090)]),
            ]
        )
        findings = await run(network.localhost_binding, make_context(runtime=runtime))
        assert [f.meta["container"] for f in findings] == ["local"]
        assert findings[0].meta["ports"] == [8080]
        assert findings[0].severity == Severity.WARNING


class TestImageSize:
    """Tests for image.image-size."""

    async def test_thresholds(self, make_context, runtime_factory):
        """Test the warning and error thresholds."""
        runtime = runtime_factory(
            images=[
                ImageSummary(id="sha256:aaa", repo_tags=["small:1"], size=200 * MB),
                ImageSummary(id="sha256:bbb", repo_tags=["big:1"], size=int(1.5 * GB)),
                ImageSummary(id="sha256:ccc", repo_tags=["huge:1"], size=3 * GB),
            ]
        )
        findings = await run(image.image_size, make_context(runtime=runtime))
        assert [(f.meta["image"], f.severity) for f in findings] == [
            ("big:1", Severity.WARNING),
            ("huge:1", Severity.ERROR),
        ]


class TestCleanup:
    """Tests for the cleanup checks."""

    @pytest.mark.parametrize(
        "images_gb,expected",
        [(5, None), (15, Severity.WARNING), (35, Severity.ERROR)],
    )
    async def test_disk_usage(self, make_context, runtime_factory, images_gb, expected):
        """Test total disk usage thresholds."""
        runtime = runtime_factory(disk_usage=DiskUsage(images=images_gb * GB, build_cache=0))
        findings = await run(cleanup.disk_usage, make_context(runtime=runtime))
        assert [f.severity for f in findings] == ([expected] if expected else [])

    @pytest.mark.parametrize(
        "cache_gb,expected",
        [(0.5, None), (2, Severity.INFO), (6, Severity.WARNING)],
    )
    async def test_build_cache(self, make_context, runtime_factory, cache_gb, expected):
        """Test build cache thresholds."""
        runtime = runtime_factory(disk_usage=DiskUsage(build_cache=int(cache_gb * GB)))
        findings = await run(cleanup.build_cache, make_context(runtime=runtime))
        assert [f.severity for f in findings] == ([expected] if expected else [])

    async def test_dangling_images(self, make_context, runtime_factory):
        """Test dangling images are summarized in one warning."""
        runtime = runtime_factory(
            dangling_images=[
                ImageSummary(id="sha256:a", repo_tags=["<none>:<none>"], size=100 * MB),
                ImageSummary(id="sha256:b", size=50 * MB),
            ]
        )
        findings = await run(cleanup.dangling_images, make_context(runtime=runtime))
        assert len(findings) == 1
        assert findings[0].meta == {"count": 2, "total_bytes": 150 * MB}
        assert "150 MB" in findings[0].message

    async def test_stopped_containers(self, make_context, runtime_factory, container_factory):
        """Test exited and dead containers are listed."""
        runtime = runtime_factory(
            containers=[
                container_factory("old", state="exited"),
                container_factory("broken", state="dead"),
                container_factory("live"),
                container_factory("new", state="created"),
            ]
        )
        findings = await run(cleanup.stopped_containers, make_context(runtime=runtime))
        assert findings[0].severity == Severity.INFO
        assert findings[0].meta["containers"] == ["old", "broken"]

    async def test_unused_volumes(self, make_context, runtime_factory):
        """Test dangling volumes are parsed from the CLI's JSON lines."""
        stdout = "\n".join(
            [json.dumps({"Driver": "local", "Name": "old_data"}), "not json", json.dumps({"Name": "cache"}), ""]
        )
        runtime = runtime_factory(exec_results={"volume": ExecResult(exit_code=0, stdout=stdout)})
        findings = await run(cleanup.unused_volumes, make_context(runtime=runtime))
        assert findings[0].meta == {"count": 2, "volumes": ["old_data", "cache"]}
        assert runtime.exec_calls == [["volume", "ls", "--filter", "dangling=true", "--format", "{{json .}}"]]

    async def test_unused_volumes_cli_failure(self, make_context, runtime_factory):
        """Test a failing docker CLI yields nothing."""
        runtime = runtime_factory(exec_results={"volume": ExecResult(exit_code=1, stderr="permission denied")})
        assert await run(cleanup.unused_volumes, make_context(runtime=runtime)) == []


class TestEntrypointAndEnvironment:
    """Tests for startup.entrypoint-exists and startup.env-var-verification."""

    async def test_entrypoint_exit_codes(self, make_context, runtime_factory, container_factory):
        """Test exits 127 and 126 are explained and other codes are left to exit-code."""
        missing = container_factory("web", state="exited", status="Exited (127) 1 minute ago")
        denied = container_factory("job", state="exited", status="Exited (126) 1 minute ago")
        crashed = container_factory("api", state="exited", status="Exited (1) 1 minute ago")
        runtime = runtime_factory(
            containers=[missing, denied, crashed],
            logs={missing.id: "\x01\x00\x00\x00\x00\x00\x00\x1esh: app: not found\n"},
        )
        findings = await run(startup.entrypoint_exists, make_context(runtime=runtime))
        assert [f.meta["exit_code"] for f in findings] == [127, 126]
        assert all(f.severity == Severity.ERROR for f in findings)
        assert findings[0].meta["log_tail"] == "sh: app: not found"
        assert "not executable" in findings[1].title

    COMPOSE = """\
services:
  web:
    image: app
    environment:
      API_KEY: ""
  worker:
    image: app
    env_file: .env
  db:
    image: postgres
"""

    async def test_service_not_running(self, make_context, runtime_factory, container_factory):
        """Test services with environment settings but no container are reported."""
        web = container_factory("shop-web-1", labels={"com.docker.compose.service": "web"})
        runtime = runtime_factory(
            containers=[web],
            inspections={web.id: {"Config": {"Env": ["PATH=/usr/bin", "MODE=prod"]}}},
        )
        findings = await run(startup.env_var_verification, make_context(compose=self.COMPOSE, runtime=runtime))
        assert [(f.meta["service"], f.title) for f in findings] == [
            ("worker", 'Service "worker" is not running'),
        ]
        assert findings[0].meta["has_env_file"]

    async def test_empty_variables(self, make_context, runtime_factory, container_factory):
        """Test empty values are listed, except ones that may be empty."""
        web = container_factory("shop-web-1", labels={"com.docker.compose.service": "web"})
        worker = container_factory("shop_worker_2")
        runtime = runtime_factory(
            containers=[web, worker],
            inspections={
                web.id: {"Config": {"Env": ["API_KEY=", "PATH=", "HOME=", "MODE=prod", "DEBUG="]}},
                worker.id: {"Config": {"Env": ["QUEUE=jobs"]}},
            },
        )
        findings = await run(startup.env_var_verification, make_context(compose=self.COMPOSE, runtime=runtime))
        assert len(findings) == 1
        assert findings[0].meta["container"] == "shop-web-1"
        assert findings[0].meta["empty_vars"] == ["API_KEY", "DEBUG"]

    async def test_requires_compose(self, make_context, runtime_factory, container_factory):
        """Test nothing is checked without a Compose file."""
        runtime = runtime_factory(containers=[container_factory("web")])
        assert await run(startup.env_var_verification, make_context(runtime=runtime)) == []


class TestNetworkTopology:
    """Tests for network.dns-resolution and network.same-network."""

    async def test_dns_failure_in_container(self, make_context, runtime_factory, container_factory):
        """Test nslookup runs in the first running container only."""
        first = container_factory("api")
        runtime = runtime_factory(
            containers=[container_factory("old", state="exited"), first, container_factory("db")],
            exec_results={"exec": ExecResult(exit_code=1, stderr=";; connection timed out")},
        )
        findings = await run(network.dns_resolution, make_context(runtime=runtime))
        assert [f.meta["container"] for f in findings] == ["api"]
        assert findings[0].severity == Severity.WARNING
        assert runtime.exec_calls == [["exec", first.id, "nslookup", "localhost"]]

    async def test_dns_ok(self, make_context, runtime_factory, container_factory):
        """Test a working lookup produces nothing."""
        runtime = runtime_factory(
            containers=[container_factory("api")],
            exec_results={"exec": ExecResult(exit_code=0, stdout="Address: 127.0.0.1")},
        )
        assert await run(network.dns_resolution, make_context(runtime=runtime)) == []

    async def test_same_network(self, make_context, runtime_factory, container_factory):
        """Test each pair in one Compose project without a shared network is reported."""
        project = {"com.docker.compose.project": "shop"}
        runtime = runtime_factory(
            containers=[
                container_factory("web", labels=project, networks=["shop_front"]),
                container_factory("db", labels=project, networks=["shop_back"]),
                container_factory("cache", labels=project, networks=["shop_back"]),
                container_factory("lonely", networks=["bridge"]),
                container_factory("blog", labels={"com.docker.compose.project": "blog"}, networks=["x"]),
            ]
        )
        findings = await run(network.same_network, make_context(runtime=runtime))
        assert [f.meta["containers"] for f in findings] == [["web", "db"], ["web", "cache"]]
        assert all(f.meta["project"] == "shop" for f in findings)


class TestImageInspection:
    """Tests for the image checks that look inside images."""

    async def test_architecture_mismatch(self, make_context, runtime_factory):
        """Test images for another architecture are warnings, with host aliases normalized."""
        runtime = runtime_factory(
            exec_results={"version": ExecResult(exit_code=0, stdout="x86_64\n")},
            images=[
                ImageSummary(id="sha256:arm", repo_tags=["api:arm"]),
                ImageSummary(id="sha256:amd", repo_tags=["api:amd"]),
                ImageSummary(id="sha256:unknown", repo_tags=["mystery:1"]),
            ],
            image_inspections={
                "sha256:arm": {"Architecture": "arm64"},
                "sha256:amd": {"Architecture": "amd64"},
            },
        )
        findings = await run(image.architecture_mismatch, make_context(runtime=runtime))
        assert [f.meta for f in findings] == [{"image": "api:arm", "image_arch": "arm64", "host_arch": "amd64"}]

    async def test_architecture_inspects_at_most_five_images(self, make_context, runtime_factory):
        """Test the inspected image count is capped."""
        images = [ImageSummary(id=f"sha256:{i}", repo_tags=[f"img:{i}"]) for i in range(8)]
        runtime = runtime_factory(
            exec_results={"version": ExecResult(exit_code=0, stdout="amd64")},
            images=images,
            image_inspections={img.id: {"Architecture": "arm64"} for img in images},
        )
        findings = await run(image.architecture_mismatch, make_context(runtime=runtime))
        assert len(findings) == image.INSPECT_LIMIT

    async def test_base_image_bloat(self, make_context, runtime_factory):
        """Test large full-size bases get a slim suggestion, once per image."""
        big = 900 * MB
        runtime = runtime_factory(
            images=[
                ImageSummary(id="sha256:a", repo_tags=["node:20", "node:20.11"], size=big),
                ImageSummary(id="sha256:b", repo_tags=["python:3.12-slim"], size=big),
                ImageSummary(id="sha256:c", repo_tags=["myorg/app:feature-x"], size=big),
                ImageSummary(id="sha256:d", repo_tags=["localhost:5000/api"], size=big),
                ImageSummary(id="sha256:e", repo_tags=["ruby:3"], size=100 * MB),
            ]
        )
        findings = await run(image.base_image_bloat, make_context(runtime=runtime))
        assert [f.meta["tag"] for f in findings] == ["node:20", "localhost:5000/api"]
        assert all(f.severity == Severity.INFO for f in findings)
        assert "FROM node:20-slim" in findings[0].fixes[0].instructions
        assert "FROM localhost:5000/api:latest-alpine" in findings[1].fixes[0].instructions

    async def test_layer_analysis(self, make_context, runtime_factory):
        """Test layers over 200 MB are reported with the command that made them."""
        runtime = runtime_factory(
            images=[ImageSummary(id="sha256:a", repo_tags=["app:1"])],
            histories={
                "app:1": [
                    {"Size": 300 * MB, "CreatedBy": "/bin/sh -c npm install"},
                    {"Size": 10 * MB, "CreatedBy": "COPY . ."},
                    {"Size": "huge"},
                ]
            },
        )
        findings = await run(image.layer_analysis, make_context(runtime=runtime))
        assert len(findings) == 1
        assert findings[0].meta == {
            "image": "app:1",
            "size_bytes": 300 * MB,
            "size_mb": 300,
            "created_by": "/bin/sh -c npm install",
        }


class TestPerformance:
    """Tests for the performance checks."""

    MOUNTS = {
        "Mounts": [
            {"Type": "bind", "Source": "/Users/me/app/node_modules", "Destination": "/app/node_modules"},
            {"Type": "volume", "Source": "/var/lib/docker/volumes/x", "Destination": "/app/vendor"},
            {"Type": "bind", "Source": "/Users/me/targets", "Destination": "/data"},
        ]
    }

    @pytest.mark.parametrize(
        "host_os,expected",
        [("Docker Desktop", Severity.WARNING), ("Ubuntu 24.04 LTS", Severity.INFO)],
    )
    async def test_bind_mount_io(self, make_context, runtime_factory, container_factory, host_os, expected):
        """Test heavy directory bind mounts, graded by host platform."""
        app = container_factory("app")
        runtime = runtime_factory(
            containers=[app],
            inspections={app.id: self.MOUNTS},
            exec_results={"info": ExecResult(exit_code=0, stdout=f"{host_os}\n")},
        )
        findings = await run(performance.bind_mount_io, make_context(runtime=runtime))
        assert [f.severity for f in findings] == [expected]
        assert findings[0].meta["mounts"] == [
            {"source": "/Users/me/app/node_modules", "destination": "/app/node_modules"}
        ]
        assert "node_modules_data:/app/node_modules" in findings[0].fixes[0].instructions

    @pytest.mark.parametrize("cache_gb,flagged", [(4, False), (6, True)])
    async def test_build_cache(self, make_context, runtime_factory, cache_gb, flagged):
        """Test the 5 GB build cache threshold."""
        runtime = runtime_factory(disk_usage=DiskUsage(build_cache=cache_gb * GB))
        findings = await run(performance.build_cache, make_context(runtime=runtime))
        assert [f.severity for f in findings] == ([Severity.INFO] if flagged else [])

    async def test_resource_allocation(self, make_context, runtime_factory, container_factory):
        """Test only containers with neither memory nor CPU limits are noted."""
        free, capped, pinned = container_factory("free"), container_factory("capped"), container_factory("pinned")
        runtime = runtime_factory(
            containers=[free, capped, pinned],
            inspections={
                free.id: {"HostConfig": {"Memory": 0, "NanoCpus": 0}},
                capped.id: {"HostConfig": {"Memory": 512 * MB}},
                pinned.id: {"HostConfig": {"NanoCpus": 1_000_000_000}},
            },
        )
        findings = await run(performance.resource_allocation, make_context(runtime=runtime))
        assert [f.meta["container"] for f in findings] == ["free"]

    async def test_resource_usage(self, make_context, runtime_factory):
        """Test containers over 80% CPU or memory in docker stats are warnings."""
        stdout = "\n".join(
            [
                json.dumps({"Name": "api", "CPUPerc": "95.50%", "MemPerc": "10.00%", "MemUsage": "100MiB / 1GiB"}),
                json.dumps({"Name": "db", "CPUPerc": "1.00%", "MemPerc": "85.00%", "MemUsage": "850MiB / 1GiB"}),
                json.dumps({"Name": "idle", "CPUPerc": "0.50%", "MemPerc": "1.00%"}),
                json.dumps({"Name": "starting", "CPUPerc": "--", "MemPerc": "--"}),
                "not json",
                "",
            ]
        )
        runtime = runtime_factory(exec_results={"stats": ExecResult(exit_code=0, stdout=stdout)})
        findings = await run(performance.resource_usage, make_context(runtime=runtime))
        assert [(f.meta["container"], f.meta["cpu_percent"], f.meta["mem_percent"]) for f in findings] == [
            ("api", 95.5, 10.0),
            ("db", 1.0, 85.0),
        ]
        assert runtime.exec_calls == [["stats", "--no-stream", "--format", "{{json .}}"]]
