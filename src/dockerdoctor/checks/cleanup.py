"""Checks for reclaimable disk space held by Docker."""

from __future__ import annotations

import json

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import GB, MB, format_size, truncate_list
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity

CATEGORY = CheckCategory.CLEANUP

DISK_WARN = 10 * GB
DISK_ERROR = 30 * GB
BUILD_CACHE_INFO = 1 * GB
BUILD_CACHE_WARN = 5 * GB


@check("cleanup.disk-usage", "Docker disk usage", CATEGORY, requires_docker=True)
async def disk_usage(context: CheckContext) -> list[Finding]:
    """Flag total Docker disk usage over 10 GB (warning) or 30 GB (error)."""
    runtime = context.runtime
    if runtime is None:
        return []

    result = await runtime.safe_disk_usage()
    if not result.success:
        return []
    usage = result.value

    if usage.total > DISK_ERROR:
        severity, limit = Severity.ERROR, "30 GB"
    elif usage.total > DISK_WARN:
        severity, limit = Severity.WARNING, "10 GB"
    else:
        return []

    breakdown = (
        f"images {format_size(usage.images)}, containers {format_size(usage.containers)}, "
        f"volumes {format_size(usage.volumes)}, build cache {format_size(usage.build_cache)}"
    )
    return [
        Finding(
            id=disk_usage.id,
            title=f"Docker disk usage exceeds {limit}",
            severity=severity,
            category=CATEGORY,
            message=f"Docker uses {format_size(usage.total)} of disk ({breakdown}).",
            fixes=[
                Fix.manual(
                    "Reclaim disk space with docker system prune",
                    "Run `docker system prune -a` to remove unused images, stopped containers, "
                    "networks and build cache. Add `--volumes` to also drop unused volumes; "
                    "check first that they hold nothing you need.",
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


@check("cleanup.build-cache", "Build cache size", CATEGORY, requires_docker=True)
async def build_cache(context: CheckContext) -> list[Finding]:
    """Report a build cache over 1 GB (info) or 5 GB (warning)."""
    runtime = context.runtime
    if runtime is None:
        return []

    result = await runtime.safe_disk_usage()
    if not result.success:
        return []
    size = result.value.build_cache

    if size > BUILD_CACHE_WARN:
        severity, limit = Severity.WARNING, "5 GB"
    elif size > BUILD_CACHE_INFO:
        severity, limit = Severity.INFO, "1 GB"
    else:
        return []

    return [
        Finding(
            id=build_cache.id,
            title=f"Build cache exceeds {limit}",
            severity=severity,
            category=CATEGORY,
            message=f"The Docker build cache is {format_size(size)}. It grows with every build.",
            fixes=[
                Fix.manual(
                    "Clear build cache with docker builder prune",
                    "Run `docker builder prune` (add `-a` for all cache, `-f` to skip the "
                    "prompt). The next build will be slower while layers are rebuilt.",
                )
            ],
            meta={"build_cache_bytes": size},
        )
    ]


@check("cleanup.dangling-images", "Dangling images", CATEGORY, requires_docker=True)
async def dangling_images(context: CheckContext) -> list[Finding]:
    """Flag untagged images no longer referenced by any tag."""
    runtime = context.runtime
    if runtime is None:
        return []

    images = (await runtime.safe_list_images(dangling=True)).value_or_empty()
    if not images:
        return []

    total = sum(image.size for image in images)
    return [
        Finding(
            id=dangling_images.id,
            title="Dangling images found",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                f"Found {len(images)} dangling image(s) using {round(total / MB)} MB. They are "
                "left over from rebuilds and serve no purpose."
            ),
            fixes=[
                Fix.manual(
                    "Remove dangling images with docker image prune",
                    "Run `docker image prune` (add `-f` to skip the prompt).",
                )
            ],
            meta={"count": len(images), "total_bytes": total},
        )
    ]


@check("cleanup.stopped-containers", "Stopped containers", CATEGORY, requires_docker=True)
async def stopped_containers(context: CheckContext) -> list[Finding]:
    """Report exited or dead containers still holding disk space."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=True)).value_or_empty()
    stopped = [c.display_name for c in containers if c.state in ("exited", "dead")]
    if not stopped:
        return []

    return [
        Finding(
            id=stopped_containers.id,
            title="Stopped containers found",
            severity=Severity.INFO,
            category=CATEGORY,
            message=(
                f"Found {len(stopped)} stopped container(s): {truncate_list(stopped)}. They keep "
                "their writable layers on disk until removed."
            ),
            fixes=[
                Fix.manual(
                    "Remove stopped containers with docker container prune",
                    "Run `docker container prune`, or `docker rm <name>` for a single container.",
                )
            ],
            meta={"count": len(stopped), "containers": stopped},
        )
    ]


@check("cleanup.unused-volumes", "Unused volumes", CATEGORY, requires_docker=True)
async def unused_volumes(context: CheckContext) -> list[Finding]:
    """Flag volumes no container references."""
    runtime = context.runtime
    if runtime is None:
        return []

    result = await runtime.exec(["volume", "ls", "--filter", "dangling=true", "--format", "{{json .}}"])
    if not result.ok:
        return []

    names = []
    for line in result.stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            volume = json.loads(line)
        except ValueError:
            continue
        if isinstance(volume, dict) and volume.get("Name"):
            names.append(volume["Name"])

    if not names:
        return []

    return [
        Finding(
            id=unused_volumes.id,
            title="Unused volumes found",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                f"Found {len(names)} unused volume(s): {truncate_list(names)}. They are not "
                "attached to any container and may hold stale data."
            ),
            fixes=[
                Fix.manual(
                    "Remove unused volumes with docker volume prune",
                    "Run `docker volume prune`, or `docker volume rm <name>` for one volume. "
                    "This permanently deletes the data.",
                )
            ],
            meta={"count": len(names), "volumes": names},
        )
    ]


CHECKS = [
    disk_usage,
    build_cache,
    dangling_images,
    stopped_containers,
    unused_volumes,
]
