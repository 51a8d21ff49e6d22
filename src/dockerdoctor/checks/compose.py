"""Static checks on the Compose manifest."""

from __future__ import annotations

from dockerdoctor.checks.base import check
from dockerdoctor.models import CheckCategory, CheckContext, ComposeService, Finding, Fix, Severity

CATEGORY = CheckCategory.COMPOSE

# Directive -> what to do instead under Swarm
_SWARM_IGNORED = {
    "restart": "Use `deploy.restart_policy` instead",
    "container_name": "Swarm manages container names automatically",
    "depends_on": "Use healthchecks and retry logic instead",
    "links": "Use overlay networks for service discovery",
    "build": "Pre-build and push images, then reference them with `image`",
}

# Compose always provides this network, it need not be declared
DEFAULT_NETWORK = "default"


def _is_bind_mount(volume: object) -> bool:
    if isinstance(volume, dict):
        return volume.get("type") == "bind"
    if not isinstance(volume, str):
        return False
    parts = volume.split(":")
    if len(parts) < 2:
        return False
    host = parts[0]
    return host.startswith(("/", "./", "../", "~")) or host in (".", "..")


def _has_key(service: ComposeService, key: str) -> bool:
    if key == "depends_on":
        return service.depends_on is not None
    if key == "build":
        return service.build is not None
    return key in service.extras


@check("compose.static-ip", "Static IP address in Compose network", CATEGORY)
async def static_ip(context: CheckContext) -> list[Finding]:
    """Flag services pinned to fixed addresses with ipv4_address/ipv6_address."""
    compose = context.compose
    if compose is None:
        return []

    findings = []
    for service in compose.services:
        for network, settings in service.network_config.items():
            ipv4 = settings.get("ipv4_address")
            ipv6 = settings.get("ipv6_address")
            if not ipv4 and not ipv6:
                continue
            addresses = ", ".join(
                f"{key}: {value}" for key, value in (("ipv4_address", ipv4), ("ipv6_address", ipv6)) if value
            )
            findings.append(
                Finding(
                    id=static_ip.id,
                    title=f'Service "{service.name}" uses static IP in network "{network}"',
                    severity=Severity.WARNING,
                    category=CATEGORY,
                    message=(
                        f'Service "{service.name}" has a fixed address on network "{network}" '
                        f"({addresses}). Static IPs conflict across environments, break scaling "
                        "and are not supported in Swarm. Reach services by name through Docker DNS."
                    ),
                    location=compose.path,
                    fixes=[
                        Fix.manual(
                            "Remove static IP assignments and use Docker DNS",
                            f"Delete `ipv4_address`/`ipv6_address` under `{network}` and connect "
                            f"to the service by name, e.g. `http://{service.name}:<port>`.",
                        )
                    ],
                    meta={"service": service.name, "network": network, "ipv4": ipv4, "ipv6": ipv6},
                )
            )
    return findings


@check("compose.swarm-ignored", "Directives Swarm silently ignores", CATEGORY)
async def swarm_ignored(context: CheckContext) -> list[Finding]:
    """Flag Swarm-bound services (with ``deploy``) that use directives Swarm ignores."""
    compose = context.compose
    if compose is None:
        return []

    findings = []
    for service in compose.services:
        if not service.get("deploy"):
            continue
        ignored = [key for key in _SWARM_IGNORED if _has_key(service, key)]
        if not ignored:
            continue
        findings.append(
            Finding(
                id=swarm_ignored.id,
                title=f'Service "{service.name}" uses directives that Swarm silently ignores',
                severity=Severity.INFO,
                category=CATEGORY,
                message=(
                    f'Service "{service.name}" has a `deploy` section, so it targets Swarm, '
                    f"but also sets {', '.join(f'`{k}`' for k in ignored)}. "
                    "`docker stack deploy` ignores these without warning."
                ),
                location=compose.path,
                fixes=[
                    Fix.manual(
                        "Remove Swarm-incompatible directives or move config to deploy",
                        "\n".join(f"  - `{key}`: {_SWARM_IGNORED[key]}" for key in ignored),
                    )
                ],
                meta={"service": service.name, "ignored_keys": ignored},
            )
        )
    return findings


@check("compose.missing-healthcheck", "Missing healthcheck", CATEGORY)
async def missing_healthcheck(context: CheckContext) -> list[Finding]:
    """Flag services that publish ports but define no healthcheck.

    Services in profiles are skipped, they are usually helpers.
    """
    compose = context.compose
    if compose is None:
        return []

    findings = []
    for service in compose.services:
        if service.has_healthcheck or not service.ports or service.get("profiles"):
            continue
        findings.append(
            Finding(
                id=missing_healthcheck.id,
                title=f'Service "{service.name}" has no healthcheck',
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f'Service "{service.name}" exposes ports ({", ".join(service.ports)}) but has no '
                    "healthcheck. Docker cannot tell when it is ready, so `depends_on` "
                    "conditions and restarts act on a container that may not be serving."
                ),
                location=compose.path,
                fixes=[
                    Fix.manual(
                        "Add a healthcheck to the service",
                        f"  {service.name}:\n"
                        "    healthcheck:\n"
                        '      test: ["CMD", "curl", "-f", "http://localhost/health"]\n'
                        "      interval: 30s\n"
                        "      timeout: 5s\n"
                        "      retries: 3",
                    )
                ],
                meta={"service": service.name, "ports": service.ports},
            )
        )
    return findings


@check("compose.bridge-network", "Bridge network driver", CATEGORY)
async def bridge_network(context: CheckContext) -> list[Finding]:
    """Flag top-level networks declared with the bridge driver, which Swarm rejects."""
    compose = context.compose
    if compose is None:
        return []

    findings = []
    for network, settings in compose.networks.items():
        if not isinstance(settings, dict) or settings.get("driver") != "bridge":
            continue
        findings.append(
            Finding(
                id=bridge_network.id,
                title=f'Network "{network}" uses bridge driver',
                severity=Severity.INFO,
                category=CATEGORY,
                message=(
                    f'Network "{network}" uses the `bridge` driver. That works for a single host, '
                    "but `docker stack deploy` needs `overlay` for multi-host networking."
                ),
                location=compose.path,
                fixes=[
                    Fix.manual(
                        "Switch to overlay driver for Swarm compatibility",
                        f"  networks:\n    {network}:\n      driver: overlay",
                    )
                ],
                meta={"network": network, "driver": "bridge"},
            )
        )
    return findings


@check("compose.bind-mounts", "Bind mounts", CATEGORY)
async def bind_mounts(context: CheckContext) -> list[Finding]:
    """Flag host-path bind mounts, which do not move between hosts."""
    compose = context.compose
    if compose is None:
        return []

    findings = []
    for service in compose.services:
        mounts = [v for v in service.volumes if _is_bind_mount(v)]
        if not mounts:
            continue
        shown = [m if isinstance(m, str) else f"{m.get('source')}:{m.get('target')}" for m in mounts]
        findings.append(
            Finding(
                id=bind_mounts.id,
                title=f'Service "{service.name}" uses bind mounts',
                severity=Severity.INFO,
                category=CATEGORY,
                message=(
                    f'Service "{service.name}" mounts host paths ({", ".join(shown)}). '
                    "Bind mounts tie the service to one host's filesystem layout and fail "
                    "when Swarm schedules it elsewhere."
                ),
                location=compose.path,
                fixes=[
                    Fix.manual(
                        "Replace bind mounts with named volumes",
                        "Declare a named volume under the top-level `volumes:` key and "
                        "mount it instead of the host path, e.g. `- app-data:/app/data`.",
                    )
                ],
                meta={"service": service.name, "bind_mounts": shown},
            )
        )
    return findings


@check("compose.network-mismatch", "depends_on across disjoint networks", CATEGORY)
async def network_mismatch(context: CheckContext) -> list[Finding]:
    """Flag a service that depends on another it shares no network with.

    Services without an explicit ``networks`` key are on the default
    network and are skipped.
    """
    compose = context.compose
    if compose is None:
        return []

    findings = []
    for service in compose.services:
        if not service.depends_on or service.networks is None:
            continue
        for dependency_name in service.depends_on:
            dependency = compose.get_service(dependency_name)
            if dependency is None or dependency.networks is None:
                continue
            if set(service.networks) & set(dependency.networks):
                continue
            findings.append(
                Finding(
                    id=network_mismatch.id,
                    title=f'Services "{service.name}" and "{dependency_name}" share no network',
                    severity=Severity.WARNING,
                    category=CATEGORY,
                    message=(
                        f'"{service.name}" depends on "{dependency_name}", but they are on '
                        f"different networks ({', '.join(service.networks) or 'none'} vs "
                        f"{', '.join(dependency.networks) or 'none'}). "
                        f'"{service.name}" will not be able to resolve or reach it.'
                    ),
                    location=compose.path,
                    fixes=[
                        Fix.manual(
                            f'Add "{dependency_name}" to a shared network with "{service.name}"',
                            f"Attach both services to a common network, e.g. add "
                            f"`{service.networks[0] if service.networks else 'backend'}` "
                            f"to the networks of `{dependency_name}`.",
                        )
                    ],
                    meta={
                        "service": service.name,
                        "dependency": dependency_name,
                        "service_networks": service.networks,
                        "dependency_networks": dependency.networks,
                    },
                )
            )
    return findings


@check("compose.undefined-network", "Undefined network reference", CATEGORY)
async def undefined_network(context: CheckContext) -> list[Finding]:
    """Flag services attached to networks missing from the top-level block.

    With no top-level ``networks`` block at all, Compose creates every
    referenced network, so nothing is flagged.
    """
    compose = context.compose
    if compose is None or not compose.networks:
        return []

    defined = set(compose.networks)
    findings = []
    for service in compose.services:
        for network in service.networks or []:
            if network in defined or network == DEFAULT_NETWORK:
                continue
            findings.append(
                Finding(
                    id=undefined_network.id,
                    title=f'Service "{service.name}" references undefined network "{network}"',
                    severity=Severity.ERROR,
                    category=CATEGORY,
                    message=(
                        f'Service "{service.name}" is attached to network "{network}", which is '
                        f"not declared in the top-level `networks:` block "
                        f"({', '.join(sorted(defined))}). `docker compose up` will fail."
                    ),
                    location=compose.path,
                    fixes=[
                        Fix.manual(
                            f'Define the "{network}" network in the top-level networks block',
                            f"  networks:\n    {network}:\n      driver: bridge",
                        )
                    ],
                    meta={"service": service.name, "network": network, "defined": sorted(defined)},
                )
            )
    return findings


CHECKS = [
    static_ip,
    swarm_ignored,
    missing_healthcheck,
    bridge_network,
    bind_mounts,
    network_mismatch,
    undefined_network,
]
