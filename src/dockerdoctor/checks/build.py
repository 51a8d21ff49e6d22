"""Checks on what a docker build needs from the project and the Docker host."""

from __future__ import annotations

import asyncio
import os
import re

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import GB, MB, daemon_unreachable, format_size
from dockerdoctor.models import CheckCategory, CheckContext, DockerignoreModel, Finding, Fix, Severity

CATEGORY = CheckCategory.BUILD

# Docker server architecture -> equivalent --platform values
ARCH_PLATFORMS = {
    "amd64": ("linux/amd64", "amd64"),
    "x86_64": ("linux/amd64", "amd64"),
    "arm64": ("linux/arm64", "linux/arm64/v8", "arm64"),
    "aarch64": ("linux/arm64", "linux/arm64/v8", "arm64"),
    "arm": ("linux/arm", "linux/arm/v7", "linux/arm/v6", "arm"),
    "386": ("linux/386", "386"),
}

_PLATFORM_RE = re.compile(r"--platform=(\S+)", re.IGNORECASE)
# Build arguments such as $BUILDPLATFORM resolve at build time
_VARIABLE_RE = re.compile(r"\$")

CONTEXT_WARN = 100 * MB
CONTEXT_ERROR = 500 * MB
DISK_WARN = 20 * GB
DISK_ERROR = 50 * GB

DNS_LOOKUP_HOST = "registry-1.docker.io"
DNS_LOOKUP_TIMEOUT = 30.0

CONTEXT_IGNORE_SUGGESTIONS = ["node_modules/", ".git/", "dist/", "build/", "*.log", ".env*"]


@check("build.platform-mismatch", "Platform mismatch", CATEGORY, requires_docker=True)
async def platform_mismatch(context: CheckContext) -> list[Finding]:
    """Flag ``FROM --platform=`` values that differ from the daemon's architecture."""
    dockerfile = context.dockerfile
    if dockerfile is None or context.runtime is None:
        return []

    result = await context.runtime.exec(["version", "--format", "{{.Server.Arch}}"])
    host_arch = result.stdout.strip()
    if not result.ok or not host_arch:
        return []
    host_platforms = ARCH_PLATFORMS.get(host_arch, (host_arch,))

    findings = []
    for stage in dockerfile.stages:
        instr = stage.from_instruction
        if instr is None:
            continue
        match = _PLATFORM_RE.search(instr.args)
        if not match:
            continue
        platform = match.group(1).lower()
        if _VARIABLE_RE.search(platform) or platform in host_platforms:
            continue

        findings.append(
            Finding(
                id=platform_mismatch.id,
                title="Dockerfile platform does not match host architecture",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"`{instr.raw.strip()}` at line {instr.lineno} targets `{platform}`, but the "
                    f"Docker host is `{host_arch}`. The build needs emulation, which is slow, "
                    "or fails when QEMU is not set up."
                ),
                location=dockerfile.path,
                line=instr.lineno,
                fixes=[
                    Fix.manual(
                        "Use docker buildx for cross-platform builds",
                        "If the platform is intentional:\n"
                        "  docker buildx create --use\n"
                        f"  docker buildx build --platform {platform} -t <image> .\n\n"
                        f"Otherwise remove `--platform={platform}` to build natively.",
                    )
                ],
                meta={"host_arch": host_arch, "platform": platform},
            )
        )
    return findings




def _context_size(root: str, dockerignore: DockerignoreModel | None) -> int:
    """Sum file sizes under ``root``, skipping directories .dockerignore excludes.

    Only directory entries are honored; file globs still count.
    """
    total = 0
    for dirpath, dirnames, filenames in os.walk(root):
        rel = os.path.relpath(dirpath, root)
        if dockerignore is not None:
            dirnames[:] = [
                d
                for d in dirnames
                if not dockerignore.has_entry(d if rel == "." else f"{rel}/{d}".replace(os.sep, "/"))
            ]
        for name in filenames:
            try:
                total += os.lstat(os.path.join(dirpath, name)).st_size
            except OSError:
                continue
    return total


@check("build.context-size", "Build context size", CATEGORY, requires_docker=True)
async def context_size(context: CheckContext) -> list[Finding]:
    """Flag a build context over 100 MB (warning) or 500 MB (error)."""
    if context.runtime is None:
        return []

    size = await asyncio.to_thread(_context_size, context.cwd, context.dockerignore)
    if size > CONTEXT_ERROR:
        severity, title, limit = Severity.ERROR, "Build context is extremely large", "500 MB"
        effect = "Builds will be very slow and may exhaust disk space or memory."
    elif size > CONTEXT_WARN:
        severity, title, limit = Severity.WARNING, "Build context is large", "100 MB"
        effect = "The whole context is sent to the Docker daemon on every build."
    else:
        return []

    size_mb = round(size / MB)
    return [
        Finding(
            id=context_size.id,
            title=title,
            severity=severity,
            category=CATEGORY,
            message=f"The build context at `{context.cwd}` is {size_mb} MB, over {limit}. {effect}",
            location=context.cwd,
            fixes=[
                Fix.manual(
                    "Exclude unneeded files in .dockerignore",
                    "Create or extend `.dockerignore` in the build context root, for example:\n"
                    + "\n".join(f"  {entry}" for entry in CONTEXT_IGNORE_SUGGESTIONS)
                    + "\n\nOnly files the image actually needs should be sent.",
                )
            ],
            meta={"size_bytes": size, "size_mb": size_mb},
        )
    ]


@check("build.disk-space", "Docker disk space for builds", CATEGORY, requires_docker=True)
async def disk_space(context: CheckContext) -> list[Finding]:
    """Flag Docker disk usage over 20 GB (warning) or 50 GB (error), which starves builds."""
    runtime = context.runtime
    if runtime is None:
        return []

    result = await runtime.safe_disk_usage()
    if not result.success:
        return []
    usage = result.value

    if usage.total > DISK_ERROR:
        severity, title, limit = Severity.ERROR, "Docker disk usage is critically high", "50 GB"
    elif usage.total > DISK_WARN:
        severity, title, limit = Severity.WARNING, "Docker disk usage is high", "20 GB"
    else:
        return []

    message = (
        f"Docker uses {format_size(usage.total)} of disk, over {limit} (images "
        f"{format_size(usage.images)}, containers {format_size(usage.containers)}, volumes "
        f"{format_size(usage.volumes)}, build cache {format_size(usage.build_cache)})."
    )
    if severity is Severity.ERROR:
        message += " Builds may fail for lack of space."
    return [
        Finding(
            id=disk_space.id,
            title=title,
            severity=severity,
            category=CATEGORY,
            message=message,
            fixes=[
                Fix.manual(
                    "Prune unused Docker resources",
                    "  docker system prune -a    unused images, containers and networks\n"
                    "  docker volume prune       unused volumes\n"
                    "  docker builder prune      build cache\n\n"
                    "See what uses the space with `docker system df -v`.",
                )
            ],
            meta={
                "total_bytes": usage.total,
                "images_bytes": usage.images,
                "containers_bytes": usage.containers,
                "volumes_bytes": usage.volumes,
                "build_cache_bytes": usage.build_cache,
            },
        )
    ]


@check("build.dns-resolution", "DNS resolution inside containers", CATEGORY, requires_docker=True)
async def dns_resolution(context: CheckContext) -> list[Finding]:
    """Resolve the Docker Hub registry from a throwaway alpine container."""
    if context.runtime is None:
        return []

    result = await context.runtime.exec(
        ["run", "--rm", "alpine", "nslookup", DNS_LOOKUP_HOST],
        timeout=DNS_LOOKUP_TIMEOUT,
    )
    if result.ok or daemon_unreachable(result.stderr):
        return []

    stderr = result.stderr.strip()
    return [
        Finding(
            id=dns_resolution.id,
            title="DNS resolution is failing inside containers",
            severity=Severity.ERROR,
            category=CATEGORY,
            message=(
                f"Looking up `{DNS_LOOKUP_HOST}` from a container failed with exit code "
                f"{result.exit_code}. Builds that pull base images or install packages will fail."
                + (f" Error output: {stderr}" if stderr else "")
            ),
            fixes=[
                Fix.manual(
                    "Check Docker DNS settings and host networking",
                    "  1. Make sure the host's /etc/resolv.conf lists working nameservers\n"
                    "  2. On a VPN, set explicit servers in /etc/docker/daemon.json:\n"
                    '     {"dns": ["8.8.8.8", "8.8.4.4"]}\n'
                    "  3. Restart the daemon: sudo systemctl restart docker\n"
                    "  4. On macOS or Windows, reset Docker Desktop's network settings\n"
                    "  5. Behind a proxy, configure the daemon to use it",
                )
            ],
            meta={"exit_code": result.exit_code, "stdout": result.stdout, "stderr": result.stderr},
        )
    ]


CHECKS = [
    platform_mismatch,
    context_size,
    disk_space,
    dns_resolution,
]
