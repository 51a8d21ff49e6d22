"""Checks on the networking of running containers."""

from __future__ import annotations

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import daemon_unreachable
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity

CATEGORY = CheckCategory.NETWORK

LOCALHOST = "127.0.0.1"
COMPOSE_PROJECT_LABEL = "com.docker.compose.project"
DNS_EXEC_TIMEOUT = 10.0


@check("network.port-conflicts", "Host port bound by several containers", CATEGORY, requires_docker=True)
async def port_conflicts(context: CheckContext) -> list[Finding]:
    """Flag host ports published by more than one running container."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=False)).value_or_empty()
    bindings: dict[int, list[tuple[str, int, str]]] = {}
    for container in containers:
        seen: set[int] = set()
        for port in container.ports:
            # IPv4 and IPv6 bindings of one container count once
            if port.public_port is None or port.public_port in seen:
                continue
            seen.add(port.public_port)
            bindings.setdefault(port.public_port, []).append(
                (container.display_name, port.private_port, port.type)
            )

    findings = []
    for public_port in sorted(bindings):
        users = bindings[public_port]
        if len(users) < 2:
            continue
        names = [name for name, _, _ in users]
        details = "\n".join(
            f"  - `{name}`: host port {public_port} -> container port {private}/{proto}"
            for name, private, proto in users
        )
        findings.append(
            Finding(
                id=port_conflicts.id,
                title=f"Host port {public_port} bound by multiple containers",
                severity=Severity.ERROR,
                category=CATEGORY,
                message=(
                    f"Host port {public_port} is published by {', '.join(f'`{n}`' for n in names)}. "
                    f"Connections may reach the wrong container.\n\n{details}"
                ),
                fixes=[
                    Fix.manual(
                        "Change port mappings to avoid conflicts",
                        f"Give each container its own host port, e.g. change "
                        f'"{public_port}:{users[0][1]}" to "{public_port + 1}:{users[0][1]}".',
                    )
                ],
                meta={"public_port": public_port, "containers": names},
            )
        )
    return findings


@check("network.localhost-binding", "Ports bound to 127.0.0.1", CATEGORY, requires_docker=True)
async def localhost_binding(context: CheckContext) -> list[Finding]:
    """Flag running containers whose ports are published on the loopback address only."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=False)).value_or_empty()
    findings = []
    for container in containers:
        local = [p for p in container.ports if p.ip == LOCALHOST and p.public_port is not None]
        if not local:
            continue
        name = container.display_name
        ports = ", ".join(f"{LOCALHOST}:{p.public_port} -> {p.private_port}/{p.type}" for p in local)
        findings.append(
            Finding(
                id=localhost_binding.id,
                title="Container bound to 127.0.0.1",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"Container `{name}` publishes ports on `{LOCALHOST}` only ({ports}). They are "
                    "reachable from the Docker host but not from other machines."
                ),
                location=name,
                fixes=[
                    Fix.manual(
                        "Bind to 0.0.0.0 instead of 127.0.0.1",
                        f'Change "{LOCALHOST}:{local[0].public_port}:{local[0].private_port}" to '
                        f'"{local[0].public_port}:{local[0].private_port}". Keep the loopback '
                        "binding if host-only access is intended.",
                    )
                ],
                meta={
                    "container_id": container.id,
                    "container": name,
                    "ports": [p.public_port for p in local],
                },
            )
        )
    return findings




@check("network.dns-resolution", "DNS resolution inside a running container", CATEGORY, requires_docker=True)
async def dns_resolution(context: CheckContext) -> list[Finding]:
    """Run ``nslookup localhost`` in the first running container."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=False)).value_or_empty()
    if not containers:
        return []
    target = containers[0]
    name = target.display_name

    result = await runtime.exec(["exec", target.id, "nslookup", "localhost"], timeout=DNS_EXEC_TIMEOUT)
    if result.ok or daemon_unreachable(result.stderr):
        return []

    stderr = result.stderr.strip()[:300]
    return [
        Finding(
            id=dns_resolution.id,
            title="DNS resolution failing inside container",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                f"`nslookup localhost` in container `{name}` ({target.id[:12]}) exited with code "
                f"{result.exit_code}. DNS may be misconfigured, or the image lacks DNS tools."
                + (f" stderr: {stderr}" if stderr else "")
            ),
            location=name,
            fixes=[
                Fix.manual(
                    "Check Docker DNS settings and network configuration",
                    f"  1. Test connectivity: docker exec {name} ping -c 1 8.8.8.8\n"
                    '  2. Set daemon DNS servers in /etc/docker/daemon.json: {"dns": ["8.8.8.8", "8.8.4.4"]}\n'
                    "  3. Check the DNS configuration of custom networks\n\n"
                    "Minimal images (alpine, distroless, scratch) may simply not ship nslookup.",
                )
            ],
            meta={"container_id": target.id, "container": name, "exit_code": result.exit_code},
        )
    ]


@check("network.same-network", "Compose containers without a shared network", CATEGORY, requires_docker=True)
async def same_network(context: CheckContext) -> list[Finding]:
    """Flag pairs of running containers in one Compose project that share no network."""
    runtime = context.runtime
    if runtime is None:
        return []

    containers = (await runtime.safe_list_containers(all=False)).value_or_empty()
    projects: dict[str, list] = {}
    for container in containers:
        project = container.labels.get(COMPOSE_PROJECT_LABEL)
        if project:
            projects.setdefault(project, []).append(container)

    findings = []
    for project, members in projects.items():
        for i, a in enumerate(members):
            for b in members[i + 1 :]:
                if set(a.networks) & set(b.networks):
                    continue
                a_name, b_name = a.display_name, b.display_name
                findings.append(
                    Finding(
                        id=same_network.id,
                        title="Containers in one project share no network",
                        severity=Severity.WARNING,
                        category=CATEGORY,
                        message=(
                            f"`{a_name}` and `{b_name}` belong to Compose project `{project}` but "
                            "share no Docker network, so they cannot reach each other by name. "
                            f"`{a_name}` is on: {', '.join(a.networks) or 'none'}. "
                            f"`{b_name}` is on: {', '.join(b.networks) or 'none'}."
                        ),
                        fixes=[
                            Fix.manual(
                                "Attach both services to one network",
                                "In the Compose file:\n"
                                "  services:\n"
                                f"    {a_name}:\n"
                                "      networks: [shared]\n"
                                f"    {b_name}:\n"
                                "      networks: [shared]\n"
                                "  networks:\n"
                                "    shared:",
                            )
                        ],
                        meta={"project": project, "containers": [a_name, b_name]},
                    )
                )
    return findings


CHECKS = [
    port_conflicts,
    localhost_binding,
    dns_resolution,
    same_network,
]
