"""Checks on local images."""

from __future__ import annotations

import re

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import GB, MB
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity
from dockerdoctor.runtime import ImageSummary

CATEGORY = CheckCategory.IMAGE

WARN_SIZE = 1 * GB
ERROR_SIZE = 2 * GB
BLOAT_SIZE = 500 * MB
LARGE_LAYER = 200 * MB

# Images inspected one by one are capped to keep the scan fast
INSPECT_LIMIT = 5

# Official images that publish slim or alpine variants
KNOWN_BASE_IMAGES = [
    "node", "python", "ruby", "golang", "java", "openjdk", "php",
    "ubuntu", "debian", "centos", "fedora", "amazonlinux",
    "dotnet", "rust", "perl", "elixir", "erlang",
]

_VERSION_TAG_RE = re.compile(r"^\d+(\.\d+)*$")

ARCH_ALIASES = {"x86_64": "amd64", "aarch64": "arm64"}


@check("image.image-size", "Oversized images", CATEGORY, requires_docker=True)
async def image_size(context: CheckContext) -> list[Finding]:
    """Flag local images over 1 GB (warning) or 2 GB (error)."""
    runtime = context.runtime
    if runtime is None:
        return []

    images = (await runtime.safe_list_images()).value_or_empty()
    findings = []
    for image in images:
        if image.size > ERROR_SIZE:
            severity, limit = Severity.ERROR, "2 GB"
        elif image.size > WARN_SIZE:
            severity, limit = Severity.WARNING, "1 GB"
        else:
            continue

        size_mb = round(image.size / MB)
        findings.append(
            Finding(
                id=image_size.id,
                title=f"Image exceeds {limit}",
                severity=severity,
                category=CATEGORY,
                message=(
                    f"Image `{image.display_name}` is {size_mb} MB. Large images slow down "
                    "pulls and deployments and use more storage."
                ),
                location=image.display_name,
                fixes=[
                    Fix.manual(
                        "Reduce image size with multi-stage builds and slim base images",
                        "Build in a separate stage and copy only the artifacts, switch to a slim "
                        "base image, and clean package caches in the same RUN layer.",
                    )
                ],
                meta={"image": image.display_name, "size_bytes": image.size, "size_mb": size_mb},
            )
        )
    return findings




def _image_ref(image: ImageSummary) -> str:
    """First real tag, or the full id."""
    for tag in image.repo_tags:
        if tag != "<none>:<none>":
            return tag
    return image.id


@check("image.architecture-mismatch", "Image architecture mismatch", CATEGORY, requires_docker=True)
async def architecture_mismatch(context: CheckContext) -> list[Finding]:
    """Flag local images built for another CPU architecture than the Docker host."""
    runtime = context.runtime
    if runtime is None:
        return []

    result = await runtime.exec(["version", "--format", "{{.Server.Arch}}"])
    host_arch = result.stdout.strip()
    if not result.ok or not host_arch:
        return []
    host_arch = ARCH_ALIASES.get(host_arch, host_arch)

    images = (await runtime.safe_list_images()).value_or_empty()
    findings = []
    for image in images[:INSPECT_LIMIT]:
        inspect = (await runtime.safe_inspect_image(image.id)).value_or({})
        image_arch = inspect.get("Architecture")
        if not image_arch or ARCH_ALIASES.get(image_arch, image_arch) == host_arch:
            continue

        name = image.display_name
        findings.append(
            Finding(
                id=architecture_mismatch.id,
                title="Image architecture does not match host",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"Image `{name}` is built for `{image_arch}` but the Docker host is "
                    f"`{host_arch}`. Containers run under emulation, which is much slower "
                    "and can break native code."
                ),
                location=name,
                fixes=[
                    Fix.manual(
                        "Rebuild the image for the host architecture",
                        f"  docker buildx build --platform linux/{host_arch} -t <image> .\n\n"
                        "Or publish a multi-platform image:\n"
                        "  docker buildx build --platform linux/amd64,linux/arm64 -t <image> .",
                    )
                ],
                meta={"image": name, "image_arch": image_arch, "host_arch": host_arch},
            )
        )
    return findings


def _split_tag(tag: str) -> tuple[str, str]:
    """Split ``repo:version``; a colon before the last slash is a registry port."""
    repo, sep, version = tag.rpartition(":")
    if not sep or "/" in version:
        return tag, "latest"
    return repo, version


def _is_bloated_tag(tag: str) -> bool:
    lower = tag.lower()
    if "slim" in lower or "alpine" in lower:
        return False
    repo, version = _split_tag(lower)
    name = repo.rsplit("/", 1)[-1]
    if any(name == base or name.startswith(f"{base}-") for base in KNOWN_BASE_IMAGES):
        return True
    return version == "latest" or bool(_VERSION_TAG_RE.match(version))


@check("image.base-image-bloat", "Base image bloat", CATEGORY, requires_docker=True)
async def base_image_bloat(context: CheckContext) -> list[Finding]:
    """Suggest slim or alpine variants for large images on full-size bases."""
    runtime = context.runtime
    if runtime is None:
        return []

    images = (await runtime.safe_list_images()).value_or_empty()
    findings = []
    for image in images:
        if image.size <= BLOAT_SIZE:
            continue
        # One finding per image, for its first matching tag
        tag = next((t for t in image.repo_tags if t != "<none>:<none>" and _is_bloated_tag(t)), None)
        if tag is None:
            continue

        repo, version = _split_tag(tag)
        name = repo.rsplit("/", 1)[-1]
        size_mb = round(image.size / MB)
        findings.append(
            Finding(
                id=base_image_bloat.id,
                title="Potentially bloated base image",
                severity=Severity.INFO,
                category=CATEGORY,
                message=(
                    f"Image `{tag}` is {size_mb} MB and does not use a slim or alpine variant. "
                    f"A `{name}` slim or alpine base could make it much smaller."
                ),
                location=tag,
                fixes=[
                    Fix.manual(
                        "Switch to a slim or alpine base image",
                        f"Instead of `FROM {tag}` use `FROM {repo}:{version}-slim` or "
                        f"`FROM {repo}:{version}-alpine`.\n\n"
                        "Alpine is smallest but uses musl, which some native packages do not "
                        "support. Slim keeps glibc.",
                    )
                ],
                meta={"tag": tag, "size_bytes": image.size, "size_mb": size_mb},
            )
        )
    return findings


@check("image.layer-analysis", "Large image layers", CATEGORY, requires_docker=True)
async def layer_analysis(context: CheckContext) -> list[Finding]:
    """Flag image layers over 200 MB, naming the instruction that created them."""
    runtime = context.runtime
    if runtime is None:
        return []

    images = (await runtime.safe_list_images()).value_or_empty()
    findings = []
    for image in images[:INSPECT_LIMIT]:
        ref = _image_ref(image)
        history = (await runtime.safe_image_history(ref)).value_or_empty()
        for layer in history:
            size = layer.get("Size")
            if not isinstance(size, int) or size <= LARGE_LAYER:
                continue
            created_by = layer.get("CreatedBy") or "unknown command"
            size_mb = round(size / MB)
            findings.append(
                Finding(
                    id=layer_analysis.id,
                    title="Large image layer",
                    severity=Severity.WARNING,
                    category=CATEGORY,
                    message=(
                        f"Image `{ref}` has a {size_mb} MB layer created by `{created_by[:120]}`. "
                        "Layers over 200 MB make pulls slow."
                    ),
                    location=ref,
                    fixes=[
                        Fix.manual(
                            "Combine RUN steps and clean up in the same layer",
                            "Chain commands with `&&` in one RUN and delete caches before the "
                            "layer is committed:\n"
                            "  RUN apt-get update && apt-get install -y pkg && rm -rf /var/lib/apt/lists/*",
                        )
                    ],
                    meta={"image": ref, "size_bytes": size, "size_mb": size_mb, "created_by": created_by},
                )
            )
    return findings


CHECKS = [
    image_size,
    architecture_mismatch,
    base_image_bloat,
    layer_analysis,
]
