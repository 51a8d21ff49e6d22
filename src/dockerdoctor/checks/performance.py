"""Checks on how running containers use host resources."""

from __future__ import annotations

import json
from pathlib import PurePosixPath

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import GB, format_size
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity

CATEGORY = CheckCategory.PERFORMANCE

# Directories that see heavy file I/O during installs and compiles
HEAVY_IO_DIRS = ["node_modules", ".npm", "vendor", "target"]
# Docker Desktop runs the daemon in a VM, so bind mounts cross a file-sharing layer
SLOW_MOUNT_MARKERS = ("docker desktop", "windows")

BUILD_CACHE_LIMIT = 5 * GB
HIGH_USAGE_PERCENT = 80.0


def _heavy_dir(path: str) -> str | None:
    parts = PurePosixPath(path).parts
    return next((d for d in HEAVY_IO_DIRS if d in parts), None)


@check("performance.bind-mount-io", "Bind mounts over heavy I/O directories", CATEGORY, requires_docker=True)
async def bind_mount_io(context: CheckContext) -> list[Finding]:
    """Flag bind mounts of dependency and build directories in running containers.

    Warnings on Docker Desktop, where bind mounts are slow; informational on
    native Linux daemons.
    """
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=False)).value_or_empty()
    if not containers:
        return []

    info = await runtime.exec(["info", "--format", "{{.OperatingSystem}}"])
    host_os = info.stdout.strip() if info.ok and info.stdout.strip() else "linux"
    slow = any(marker in host_os.lower() for marker in SLOW_MOUNT_MARKERS)

    findings = []
    for container in containers:
        inspect = (await runtime.safe_inspect_container(container.id)).value_or({})
        heavy = []
        for mount in inspect.get("Mounts") or []:
            if mount.get("Type") != "bind":
                continue
            source = mount.get("Source") or ""
            destination = mount.get("Destination") or ""
            directory = _heavy_dir(source) or _heavy_dir(destination)
            if directory:
                heavy.append((source, destination, directory))
        if not heavy:
            continue

        name = container.display_name
        details = "\n".join(f"  - `{src}` -> `{dst}` ({d})" for src, dst, d in heavy)
        if slow:
            impact = (
                f"On {host_os}, bind mount I/O is far slower than native file access; "
                "installs and compiles can be 10 to 100 times slower."
            )
        else:
            impact = "Named volumes for these directories are still faster on Linux."
        volumes = "\n".join(f"      - {d}_data:{dst}" for _, dst, d in heavy)
        declared = "\n".join(f"  {d}_data:" for _, _, d in heavy)
        findings.append(
            Finding(
                id=bind_mount_io.id,
                title=f"Heavy I/O bind mount in container `{name}`",
                severity=Severity.WARNING if slow else Severity.INFO,
                category=CATEGORY,
                message=(
                    f"Container `{name}` ({container.id[:12]}) bind-mounts directories with heavy "
                    f"I/O:\n{details}\n\n{impact}"
                ),
                location=name,
                fixes=[
                    Fix.manual(
                        "Use named volumes for heavy I/O directories",
                        "In the Compose file:\n"
                        "  services:\n"
                        f"    {name}:\n"
                        "      volumes:\n"
                        f"{volumes}\n"
                        "  volumes:\n"
                        f"{declared}",
                    )
                ],
                meta={
                    "container_id": container.id,
                    "container": name,
                    "host_os": host_os,
                    "slow_platform": slow,
                    "mounts": [{"source": src, "destination": dst} for src, dst, _ in heavy],
                },
            )
        )
    return findings


@check("performance.build-cache", "Build cache size", CATEGORY, requires_docker=True)
async def build_cache(context: CheckContext) -> list[Finding]:
    """Note a build cache over 5 GB."""
    runtime = context.runtime
    if runtime is None:
        return []

    result = await runtime.safe_disk_usage()
    if not result.success or result.value.build_cache <= BUILD_CACHE_LIMIT:
        return []

    size = result.value.build_cache
    return [
        Finding(
            id=build_cache.id,
            title="Docker build cache is large",
            severity=Severity.INFO,
            category=CATEGORY,
            message=(
                f"The build cache uses {format_size(size)}, over 5 GB. A large cache takes disk "
                "space and slows down Docker operations."
            ),
            fixes=[
                Fix.manual(
                    "Prune the build cache",
                    "  docker builder prune                        unused cache\n"
                    "  docker builder prune --all                  all cache\n"
                    '  docker builder prune --filter "until=24h"   cache older than a day\n\n'
                    "Add `--force` to skip the confirmation prompt.",
                )
            ],
            meta={"build_cache_bytes": size},
        )
    ]


@check("performance.resource-allocation", "Containers without resource limits", CATEGORY, requires_docker=True)
async def resource_allocation(context: CheckContext) -> list[Finding]:
    """Note running containers with neither a memory nor a CPU limit."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=False)).value_or_empty()
    findings = []
    for container in containers:
        result = await runtime.safe_inspect_container(container.id)
        if not result.success:
            continue
        host_config = result.value.get("HostConfig") or {}
        memory = host_config.get("Memory") or 0
        nano_cpus = host_config.get("NanoCpus") or 0
        cpu_quota = host_config.get("CpuQuota") or 0
        if memory or nano_cpus or cpu_quota:
            continue

        name = container.display_name
        findings.append(
            Finding(
                id=resource_allocation.id,
                title=f"No resource limits on container `{name}`",
                severity=Severity.INFO,
                category=CATEGORY,
                message=(
                    f"Container `{name}` ({container.id[:12]}) runs without memory or CPU limits. "
                    "It can take all host resources and starve other containers."
                ),
                location=name,
                fixes=[
                    Fix.manual(
                        "Set memory and CPU limits",
                        "In the Compose file:\n"
                        "  services:\n"
                        f"    {name}:\n"
                        "      deploy:\n"
                        "        resources:\n"
                        "          limits:\n"
                        '            cpus: "1.0"\n'
                        "            memory: 512M\n\n"
                        f"Or: docker run --memory=512m --cpus=1.0 {container.image}",
                    )
                ],
                meta={"container_id": container.id, "container": name, "image": container.image},
            )
        )
    return findings


def _percent(value: str | None) -> float | None:
    try:
        return float((value or "").rstrip("%"))
    except ValueError:
        return None


@check("performance.resource-usage", "High container resource usage", CATEGORY, requires_docker=True)
async def resource_usage(context: CheckContext) -> list[Finding]:
    """Flag running containers above 80% CPU or memory in a ``docker stats`` snapshot."""
    if context.runtime is None:
        return []

    result = await context.runtime.exec(["stats", "--no-stream", "--format", "{{json .}}"])
    if not result.ok:
        return []

    findings = []
    for line in result.stdout.splitlines():
        try:
            stat = json.loads(line)
        except ValueError:
            continue
        if not isinstance(stat, dict):
            continue

        cpu = _percent(stat.get("CPUPerc"))
        mem = _percent(stat.get("MemPerc"))
        issues = []
        if cpu is not None and cpu > HIGH_USAGE_PERCENT:
            issues.append(f"CPU usage is {stat['CPUPerc']}")
        if mem is not None and mem > HIGH_USAGE_PERCENT:
            issues.append(f"memory usage is {stat['MemPerc']} ({stat.get('MemUsage', '?')})")
        if not issues:
            continue

        name = stat.get("Name") or stat.get("Container") or "unknown"
        findings.append(
            Finding(
                id=resource_usage.id,
                title=f"High resource usage in container `{name}`",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"Container `{name}` is over {HIGH_USAGE_PERCENT:.0f}%: {'; '.join(issues)}. "
                    "Sustained load degrades the host and other containers."
                ),
                location=name,
                fixes=[
                    Fix.manual(
                        "Raise limits or reduce the load",
                        "  1. Raise `deploy.resources.limits` in the Compose file\n"
                        "  2. Profile the application for CPU or memory hotspots\n"
                        "  3. Run more replicas behind a load balancer\n"
                        "  4. Watch for leaks if memory keeps growing",
                    )
                ],
                meta={
                    "container": name,
                    "cpu_percent": cpu,
                    "mem_percent": mem,
                    "mem_usage": stat.get("MemUsage"),
                },
            )
        )
    return findings


CHECKS = [
    bind_mount_io,
    build_cache,
    resource_allocation,
    resource_usage,
]
