"""Checks on containers that failed to start or stay up."""

from __future__ import annotations

import re

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import MB
from dockerdoctor.models import CheckCategory, CheckContext, ComposeService, Finding, Fix, Severity
from dockerdoctor.runtime import ContainerSummary

CATEGORY = CheckCategory.STARTUP

EXIT_CODE_DESCRIPTIONS = {
    1: "General application error",
    126: "Permission denied: command found but not executable",
    127: "Command not found: entrypoint or CMD binary does not exist",
    137: "Killed with SIGKILL, often by the OOM killer",
    139: "Segmentation fault (SIGSEGV)",
    143: "Terminated with SIGTERM",
}

_EXIT_STATUS_RE = re.compile(r"Exited\s+\((\d+)\)", re.IGNORECASE)
LOG_TAIL_LINES = 5
ENTRYPOINT_LOG_LINES = 20
# Docker log stream header bytes
_CONTROL_RE = re.compile(r"[\x00-\x08]")

COMPOSE_SERVICE_LABEL = "com.docker.compose.service"
# Variables that are legitimately empty in many images
EMPTY_ALLOWED = {"PATH", "HOME", "HOSTNAME", "TERM"}


@check("startup.oom-killed", "OOM-killed containers", CATEGORY, requires_docker=True)
async def oom_killed(context: CheckContext) -> list[Finding]:
    """Flag exited containers the kernel killed for exceeding their memory limit."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=True)).value_or_empty()
    findings = []
    for container in containers:
        if container.state != "exited":
            continue
        inspect = (await runtime.safe_inspect_container(container.id)).value_or({})
        if not (inspect.get("State") or {}).get("OOMKilled"):
            continue

        name = container.display_name
        limit = (inspect.get("HostConfig") or {}).get("Memory") or 0
        limit_mb = round(limit / MB) if limit else 0
        detail = (
            f" The memory limit is {limit_mb} MB."
            if limit_mb
            else " No memory limit was set, so it exhausted host memory."
        )
        findings.append(
            Finding(
                id=oom_killed.id,
                title=f'Container "{name}" was OOM killed',
                severity=Severity.ERROR,
                category=CATEGORY,
                message=(
                    f"Container `{name}` (image `{container.image}`) was killed by the "
                    f"out-of-memory killer.{detail}"
                ),
                location=name,
                fixes=[
                    Fix.manual(
                        "Increase the memory limit or reduce memory usage",
                        "Raise the limit with `deploy.resources.limits.memory` in Compose or "
                        f"`--memory` on `docker run`. Inspect usage with `docker stats` and "
                        f"`docker logs {name}`.",
                    )
                ],
                meta={
                    "container_id": container.id,
                    "container": name,
                    "image": container.image,
                    "memory_limit_bytes": limit,
                },
            )
        )
    return findings


@check("startup.exit-code", "Non-zero container exit codes", CATEGORY, requires_docker=True)
async def exit_code(context: CheckContext) -> list[Finding]:
    """Flag exited containers with a non-zero exit code, explaining common codes."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=True)).value_or_empty()
    findings = []
    for container in containers:
        if container.state != "exited":
            continue
        match = _EXIT_STATUS_RE.search(container.status)
        if not match:
            continue
        code = int(match.group(1))
        if code == 0:
            continue

        name = container.display_name
        description = EXIT_CODE_DESCRIPTIONS.get(code, f"Unknown exit code {code}")
        logs = (await runtime.safe_container_logs(container.id, tail=LOG_TAIL_LINES)).value_or("")
        log_tail = [line for line in logs.splitlines() if line.strip()][-LOG_TAIL_LINES:]
        findings.append(
            Finding(
                id=exit_code.id,
                title=f'Container "{name}" exited with code {code}',
                severity=Severity.ERROR,
                category=CATEGORY,
                message=(
                    f"Container `{name}` (image `{container.image}`) exited with code {code}: "
                    f"{description}. Status: {container.status}."
                ),
                location=name,
                fixes=[
                    Fix.manual(
                        "Check container logs for error details",
                        f"Run `docker logs {name}` to see the container output.",
                    )
                ],
                meta={
                    "container_id": container.id,
                    "container": name,
                    "image": container.image,
                    "exit_code": code,
                    "description": description,
                    "log_tail": log_tail,
                },
            )
        )
    return findings




@check("startup.entrypoint-exists", "Missing or non-executable entrypoint", CATEGORY, requires_docker=True)
async def entrypoint_exists(context: CheckContext) -> list[Finding]:
    """Explain exits with code 127 (command not found) and 126 (not executable)."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=True)).value_or_empty()
    findings = []
    for container in containers:
        if container.state != "exited":
            continue
        match = _EXIT_STATUS_RE.search(container.status)
        if not match or int(match.group(1)) not in (126, 127):
            continue
        code = int(match.group(1))

        name = container.display_name
        logs = (await runtime.safe_container_logs(container.id, tail=ENTRYPOINT_LOG_LINES)).value_or("")
        log_tail = _CONTROL_RE.sub("", logs).strip()
        logs_block = f"\n\nLast log output:\n{log_tail}" if log_tail else ""

        if code == 127:
            title = f'Container "{name}": entrypoint or CMD not found (exit 127)'
            problem = "could not find its entrypoint or CMD binary in the container filesystem"
            fix = Fix.manual(
                "Verify the entrypoint or CMD path exists in the image",
                "Common causes:\n"
                "  1. The binary in CMD or ENTRYPOINT is misspelled\n"
                "  2. It is never installed by a RUN step\n"
                "  3. It lives on another path; use absolute paths\n"
                "  4. The entrypoint script was not COPY-ed into the image\n\n"
                f"Debug with `docker run --rm -it --entrypoint sh {container.image}` and "
                "`which <binary>`.",
            )
        else:
            title = f'Container "{name}": entrypoint not executable (exit 126)'
            problem = "found its entrypoint or CMD but could not execute it"
            fix = Fix.manual(
                "Make the entrypoint executable",
                "  RUN chmod +x /path/to/entrypoint.sh\n"
                "or\n"
                "  COPY --chmod=755 entrypoint.sh /app/entrypoint.sh\n\n"
                "Also check the shebang line (e.g. `#!/bin/sh`) and that the script uses LF "
                "line endings.",
            )

        findings.append(
            Finding(
                id=entrypoint_exists.id,
                title=title,
                severity=Severity.ERROR,
                category=CATEGORY,
                message=f"Container `{name}` (image `{container.image}`) {problem}.{logs_block}",
                location=name,
                fixes=[fix],
                meta={
                    "container_id": container.id,
                    "container": name,
                    "image": container.image,
                    "exit_code": code,
                    "log_tail": log_tail,
                },
            )
        )
    return findings


def _service_container(service: ComposeService, containers: list[ContainerSummary]) -> ContainerSummary | None:
    """Find the running container of a Compose service.

    The Compose service label wins; otherwise the ``<project>-<service>-<n>``
    naming (or its ``_`` form) or an explicit ``container_name`` is matched.
    """
    pattern = re.compile(rf"[-_]{re.escape(service.name)}[-_]\d+$")
    explicit = service.get("container_name")
    for container in containers:
        if container.labels.get(COMPOSE_SERVICE_LABEL) == service.name:
            return container
    for container in containers:
        if any(n == explicit or pattern.search(n) for n in container.names):
            return container
    return None


@check("startup.env-var-verification", "Compose environment verification", CATEGORY, requires_docker=True)
async def env_var_verification(context: CheckContext) -> list[Finding]:
    """Check that Compose services with environment settings run with non-empty values."""
    compose = context.compose
    runtime = context.runtime
    if compose is None or runtime is None:
        return []

    result = await runtime.safe_list_containers(all=False)
    if not result.success:
        return []
    running = result.value

    findings = []
    for service in compose.services:
        env_file = service.get("env_file")
        if not service.environment and env_file is None:
            continue

        container = _service_container(service, running)
        if container is None:
            findings.append(
                Finding(
                    id=env_var_verification.id,
                    title=f'Service "{service.name}" is not running',
                    severity=Severity.WARNING,
                    category=CATEGORY,
                    message=(
                        f"Service `{service.name}` sets environment variables but no running "
                        "container was found for it. Missing or invalid variables are a common "
                        "cause of startup failures."
                    ),
                    location=compose.path,
                    fixes=[
                        Fix.manual(
                            "Verify .env files exist and contain the required variables",
                            f"  1. Check every env file referenced by `{service.name}` exists\n"
                            f"  2. Run `docker compose up {service.name}` and read the errors\n"
                            f"  3. Check `docker compose logs {service.name}`\n"
                            "  4. Quote values with special characters in .env files",
                        )
                    ],
                    meta={
                        "service": service.name,
                        "has_environment": bool(service.environment),
                        "has_env_file": env_file is not None,
                    },
                )
            )
            continue

        inspect = (await runtime.safe_inspect_container(container.id)).value_or({})
        empty = []
        for entry in (inspect.get("Config") or {}).get("Env") or []:
            key, sep, value = entry.partition("=")
            if sep and key and not value and key not in EMPTY_ALLOWED:
                empty.append(key)
        if not empty:
            continue

        name = container.display_name
        findings.append(
            Finding(
                id=env_var_verification.id,
                title=f'Service "{service.name}" has empty environment variables',
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"Container `{name}` of service `{service.name}` has {len(empty)} empty "
                    f"environment variable(s): {', '.join(f'`{k}`' for k in empty)}. They may be "
                    "missing from an .env file."
                ),
                location=compose.path,
                fixes=[
                    Fix.manual(
                        "Give the variables values",
                        "Check these variables:\n"
                        + "\n".join(f"  - {k}" for k in empty)
                        + "\n\nLook for a missing .env file, a name mismatch between .env and "
                        "the Compose file, or `KEY=` lines without a value.",
                    )
                ],
                meta={
                    "service": service.name,
                    "container_id": container.id,
                    "container": name,
                    "empty_vars": empty,
                },
            )
        )
    return findings


CHECKS = [
    oom_killed,
    exit_code,
    entrypoint_exists,
    env_var_verification,
]
