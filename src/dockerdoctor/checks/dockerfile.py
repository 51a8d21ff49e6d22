"""Static checks on the Dockerfile."""

from __future__ import annotations

import re

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import normalize_args
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity

CATEGORY = CheckCategory.DOCKERFILE

_BROAD_COPY_RE = re.compile(r"^(?:--[a-z-]+=\S+\s+)*\.(?:/)?\s+\S")
_PACKAGE_FILE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"package[*.]?\.?json",
        r"package-lock\.json",
        r"yarn\.lock",
        r"pnpm-lock\.yaml",
        r"requirements.*\.txt",
        r"Pipfile",
        r"poetry\.lock",
        r"pyproject\.toml",
        r"Gemfile",
        r"go\.mod",
        r"go\.sum",
        r"Cargo\.toml",
        r"Cargo\.lock",
        r"composer\.json",
        r"composer\.lock",
        r"\.csproj",
        r"pom\.xml",
        r"build\.gradle",
    )
]

_BUILD_TOOL_PATTERNS = [
    re.compile(p)
    for p in (
        r"\bgcc\b",
        r"\bg\+\+",
        r"\bmake\b",
        r"\bcmake\b",
        r"\bbuild-essential\b",
        r"\bbuild-base\b",
        r"\bautoconf\b",
        r"\bautomake\b",
        r"\blibtool\b",
        r"\bnasm\b",
        r"\bpkg-config\b",
        r"\brustc\b",
        r"\bcargo\b",
        r"\bjavac\b",
        r"\bmaven\b",
        r"\bgradle\b",
        r"\blibffi-dev\b",
        r"\blibssl-dev\b",
    )
]

_NATIVE_PACKAGES = (
    "bcrypt",
    "sharp",
    "canvas",
    "node-gyp",
    "node-pre-gyp",
    "node-sass",
    "sodium-native",
    "better-sqlite3",
    "sqlite3",
    "grpc",
    "farmhash",
    "leveldown",
    "argon2",
    "cpu-features",
    "microtime",
    "deasync",
    "re2",
    "esbuild",
    "lightningcss",
    "isolated-vm",
)
_NATIVE_PACKAGE_RE = re.compile(
    r"(?<![\w-])(?:" + "|".join(re.escape(p) for p in _NATIVE_PACKAGES) + r")(?![\w-])"
)
_NATIVE_REBUILD_RE = re.compile(r"\b(?:node-gyp\s+(?:rebuild|build|configure)|npm\s+rebuild)\b")

# "npm install" with no package argument (flags are allowed)
_NPM_INSTALL_RE = re.compile(r"\bnpm\s+(?:install|i)\b(?!\s+[^-\s&|;])")
_NPM_ANY_INSTALL_RE = re.compile(r"\bnpm\s+(?:install|i|ci)\b")
_NODE_ENV_PRODUCTION_RE = re.compile(r"\bNODE_ENV[\s=]+[\"']?production\b")
_VARIABLE_RE = re.compile(r"\$\{?[A-Za-z_][A-Za-z0-9_]*\}?")
_ROOT_USERS = ("root", "0")


def _is_root_user(args: str) -> bool:
    user = args.strip().split(":", 1)[0]
    return user in _ROOT_USERS


@check("dockerfile.layer-order", "Layer order: COPY . . before dependency manifests", CATEGORY)
async def layer_order(context: CheckContext) -> list[Finding]:
    """Flag a broad ``COPY . .`` that precedes the copy of a dependency manifest."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for stage in dockerfile.stages:
        broad_copy = None
        for instr in stage.find("COPY"):
            args = normalize_args(instr.args)
            if _BROAD_COPY_RE.match(args):
                if broad_copy is None:
                    broad_copy = instr
                continue
            if broad_copy is None:
                continue
            if not any(p.search(args) for p in _PACKAGE_FILE_PATTERNS):
                continue

            findings.append(
                Finding(
                    id=layer_order.id,
                    title="Inefficient layer order: COPY . . before package file copy",
                    severity=Severity.WARNING,
                    category=CATEGORY,
                    message=(
                        f"`{broad_copy.raw.strip()}` at line {broad_copy.lineno} comes before "
                        f"`{instr.raw.strip()}` at line {instr.lineno}. Every source change "
                        "invalidates the layer cache and forces a full dependency reinstall. "
                        "Copy dependency manifests first, install, then copy the rest."
                    ),
                    location=dockerfile.path,
                    line=broad_copy.lineno,
                    fixes=[
                        Fix.manual(
                            "Reorder COPY instructions for better layer caching",
                            "Move the manifest COPY before `COPY . .`:\n"
                            "  1. COPY package*.json ./\n"
                            "  2. RUN npm ci\n"
                            "  3. COPY . .\n\n"
                            "The install layer is then rebuilt only when manifests change.",
                        )
                    ],
                    meta={
                        "broad_copy_line": broad_copy.lineno,
                        "package_copy_line": instr.lineno,
                        "stage": stage.label,
                    },
                )
            )
            break
    return findings


@check("dockerfile.missing-multistage", "Build tools without a multi-stage build", CATEGORY)
async def missing_multistage(context: CheckContext) -> list[Finding]:
    """Flag a single-stage Dockerfile that installs compilers or build tools."""
    dockerfile = context.dockerfile
    if dockerfile is None or len(dockerfile.stages) != 1:
        return []

    stage = dockerfile.stages[0]
    tools: list[str] = []
    first_line = None
    for instr in stage.find("RUN"):
        for pattern in _BUILD_TOOL_PATTERNS:
            match = pattern.search(instr.args)
            if match and match.group(0) not in tools:
                tools.append(match.group(0))
                if first_line is None:
                    first_line = instr.lineno

    if not tools:
        return []

    return [
        Finding(
            id=missing_multistage.id,
            title="Build tools installed without multi-stage build",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                f"This Dockerfile has a single stage and installs build tools ({', '.join(tools)}). "
                "They stay in the final image, increasing its size and attack surface."
            ),
            location=dockerfile.path,
            line=first_line,
            fixes=[
                Fix.manual(
                    "Convert to a multi-stage build",
                    "Build in one stage and copy only the artifacts into a slim final stage:\n\n"
                    "  FROM node:20 AS builder\n"
                    "  WORKDIR /app\n"
                    "  COPY . .\n"
                    "  RUN npm ci && npm run build\n\n"
                    "  FROM node:20-slim\n"
                    "  WORKDIR /app\n"
                    "  COPY --from=builder /app/dist ./dist\n"
                    '  CMD ["node", "dist/index.js"]',
                )
            ],
            meta={"detected_tools": tools, "base_image": stage.base_image},
        )
    ]


@check("dockerfile.npm-install", "npm install instead of npm ci", CATEGORY)
async def npm_install(context: CheckContext) -> list[Finding]:
    """Flag bare ``npm install`` where ``npm ci`` gives reproducible installs."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for instr in dockerfile.find("RUN"):
        if not _NPM_INSTALL_RE.search(instr.args):
            continue
        findings.append(
            Finding(
                id=npm_install.id,
                title="Using npm install instead of npm ci",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"`npm install` at line {instr.lineno} should be `npm ci` in a Dockerfile. "
                    "`npm ci` installs the exact versions from package-lock.json and never "
                    "rewrites the lock file."
                ),
                location=dockerfile.path,
                line=instr.lineno,
                fixes=[
                    Fix.manual(
                        "Replace npm install with npm ci",
                        "Change `RUN npm install` to `RUN npm ci` and make sure "
                        "package-lock.json is copied into the image first.",
                    )
                ],
                meta={"instruction": instr.raw},
            )
        )
    return findings


@check("dockerfile.node-env-trap", "NODE_ENV=production before npm install", CATEGORY)
async def node_env_trap(context: CheckContext) -> list[Finding]:
    """Flag ``ENV NODE_ENV=production`` set before dependencies are installed.

    npm then skips devDependencies, which breaks build steps that need them.
    Reported at most once per stage.
    """
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for stage in dockerfile.stages:
        node_env = None
        for instr in stage.instructions:
            if instr.name == "ENV" and _NODE_ENV_PRODUCTION_RE.search(instr.args):
                node_env = instr
            elif instr.name == "RUN" and node_env is not None and _NPM_ANY_INSTALL_RE.search(instr.args):
                findings.append(
                    Finding(
                        id=node_env_trap.id,
                        title="NODE_ENV=production set before npm install/ci",
                        severity=Severity.ERROR,
                        category=CATEGORY,
                        message=(
                            f"`ENV NODE_ENV=production` at line {node_env.lineno} precedes "
                            f"`{instr.raw.strip()}` at line {instr.lineno}. npm skips "
                            "devDependencies in production mode, so build tools such as "
                            "TypeScript or bundlers will be missing."
                        ),
                        location=dockerfile.path,
                        line=node_env.lineno,
                        fixes=[
                            Fix.manual(
                                "Move NODE_ENV=production after the install and build steps",
                                "  COPY package*.json ./\n"
                                "  RUN npm ci\n"
                                "  COPY . .\n"
                                "  RUN npm run build\n"
                                "  ENV NODE_ENV=production",
                            )
                        ],
                        meta={
                            "node_env_line": node_env.lineno,
                            "install_line": instr.lineno,
                            "stage": stage.label,
                        },
                    )
                )
                break
    return findings


@check("dockerfile.base-image-latest", "Base image uses :latest or no tag", CATEGORY)
async def base_image_latest(context: CheckContext) -> list[Finding]:
    """Flag base images that are unpinned or pinned to ``:latest``.

    ``scratch``, references to earlier stages and images built from
    variables are skipped.
    """
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    stage_names: set[str] = set()
    for stage in dockerfile.stages:
        image = stage.base_image
        skip = (
            not image
            or image == "scratch"
            or image.lower() in stage_names
            or _VARIABLE_RE.search(image) is not None
            or "@" in image
        )
        if stage.name:
            stage_names.add(stage.name.lower())
        if skip:
            continue

        name_part = image.rsplit("/", 1)[-1]
        if ":" in name_part and not name_part.endswith(":latest"):
            continue

        issue = "uses the `:latest` tag" if name_part.endswith(":latest") else "has no tag (implicitly `:latest`)"
        repository = image.rsplit(":", 1)[0] if ":" in name_part else image
        findings.append(
            Finding(
                id=base_image_latest.id,
                title=f"Base image {issue}",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"`FROM {image}` at line {stage.start_line} {issue}. The tag is mutable, "
                    "so a build that works today may break when the upstream image changes."
                ),
                location=dockerfile.path,
                line=stage.start_line,
                fixes=[
                    Fix.manual(
                        "Pin the base image to a specific version",
                        f"Replace `FROM {image}` with a version tag such as `FROM {repository}:<version>`, "
                        f"or pin a digest: `FROM {repository}@sha256:...`.",
                    )
                ],
                meta={"base_image": image, "stage": stage.label},
            )
        )
    return findings


@check("dockerfile.alpine-native", "Alpine image with native dependencies", CATEGORY)
async def alpine_native(context: CheckContext) -> list[Finding]:
    """Flag Alpine stages that install Node.js modules with native bindings."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for stage in dockerfile.stages:
        if "alpine" not in stage.base_image.lower():
            continue

        packages: list[str] = []
        first_line = None
        for instr in stage.find("RUN"):
            found = _NATIVE_PACKAGE_RE.findall(instr.args)
            if _NATIVE_REBUILD_RE.search(instr.args):
                found.append("node-gyp")
            for package in found:
                if package not in packages:
                    packages.append(package)
                    if first_line is None:
                        first_line = instr.lineno

        if not packages:
            continue

        findings.append(
            Finding(
                id=alpine_native.id,
                title="Alpine image with native dependencies",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"`{stage.base_image}` is Alpine-based but the stage installs native "
                    f"modules ({', '.join(packages)}). Alpine uses musl instead of glibc, so "
                    "these often fail to compile or need extra build tooling."
                ),
                location=dockerfile.path,
                line=first_line or stage.start_line,
                fixes=[
                    Fix.manual(
                        "Switch to a Debian-based slim image",
                        f"Replace `FROM {stage.base_image}` with a slim Debian variant such as "
                        "`node:20-slim`, or install `python3 make g++` before installing.",
                    )
                ],
                meta={"base_image": stage.base_image, "packages": packages, "stage": stage.label},
            )
        )
    return findings


@check("dockerfile.running-as-root", "Container runs as root", CATEGORY)
async def running_as_root(context: CheckContext) -> list[Finding]:
    """Flag a final stage that never switches to a non-root USER."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    final = dockerfile.final_stage
    if final is None:
        return []

    users = final.find("USER")
    if users and not _is_root_user(users[-1].args):
        return []

    entry = final.find("CMD", "ENTRYPOINT")
    line = entry[0].lineno if entry else final.start_line
    return [
        Finding(
            id=running_as_root.id,
            title="No USER instruction: container runs as root",
            severity=Severity.WARNING,
            category=CATEGORY,
            message=(
                f"The final stage (based on `{final.base_image}`) does not switch to a "
                "non-root user. A compromised process gets root inside the container."
            ),
            location=dockerfile.path,
            line=line,
            fixes=[
                Fix.manual(
                    "Add a non-root USER instruction",
                    "Create a user and switch to it before CMD:\n\n"
                    "  RUN addgroup --system app && adduser --system --ingroup app app\n"
                    "  USER app\n\n"
                    "Official Node.js images already ship a `node` user: `USER node`.",
                )
            ],
            meta={"base_image": final.base_image, "stage": final.label},
        )
    ]


@check("dockerfile.missing-chown", "COPY without --chown after USER", CATEGORY)
async def missing_chown(context: CheckContext) -> list[Finding]:
    """Flag COPY/ADD after a non-root USER that leaves files owned by root."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for stage in dockerfile.stages:
        user = None
        for instr in stage.instructions:
            if instr.name == "USER":
                user = None if _is_root_user(instr.args) or not instr.args.strip() else instr
                continue
            if instr.name not in ("COPY", "ADD") or user is None:
                continue
            if "--chown=" in instr.args:
                continue

            name = user.args.strip()
            findings.append(
                Finding(
                    id=missing_chown.id,
                    title=f"{instr.name} without --chown after USER {name}",
                    severity=Severity.WARNING,
                    category=CATEGORY,
                    message=(
                        f"`{instr.raw.strip()}` at line {instr.lineno} does not use `--chown`, "
                        f"but the user was switched to `{name}` at line {user.lineno}. The "
                        "copied files are owned by root and may not be writable at runtime."
                    ),
                    location=dockerfile.path,
                    line=instr.lineno,
                    fixes=[
                        Fix.manual(
                            f"Add --chown={name} to the {instr.name} instruction",
                            f"  {instr.name} --chown={name}:{name} {instr.args.strip()}",
                        )
                    ],
                    meta={"user": name, "user_line": user.lineno, "stage": stage.label},
                )
            )
    return findings


@check("dockerfile.shell-form", "CMD/ENTRYPOINT uses shell form", CATEGORY)
async def shell_form(context: CheckContext) -> list[Finding]:
    """Flag CMD and ENTRYPOINT in shell form, which keeps the app from being PID 1."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for instr in dockerfile.find("CMD", "ENTRYPOINT"):
        args = instr.args.strip()
        if not args or args.startswith("["):
            continue
        suggestion = ", ".join(f'"{part}"' for part in args.split())
        findings.append(
            Finding(
                id=shell_form.id,
                title=f"{instr.name} uses shell form",
                severity=Severity.WARNING,
                category=CATEGORY,
                message=(
                    f"`{instr.raw.strip()}` at line {instr.lineno} uses shell form. The process "
                    "runs under `/bin/sh -c`, is not PID 1, and does not receive SIGTERM from "
                    "`docker stop`."
                ),
                location=dockerfile.path,
                line=instr.lineno,
                fixes=[
                    Fix.manual(
                        f"Convert {instr.name} to exec form",
                        f"  {instr.name} [{suggestion}]\n\n"
                        f'If shell expansion is needed use {instr.name} ["sh", "-c", "..."].',
                    )
                ],
                meta={"instruction": instr.name},
            )
        )
    return findings


CHECKS = [
    layer_order,
    missing_multistage,
    npm_install,
    node_env_trap,
    base_image_latest,
    alpine_native,
    running_as_root,
    missing_chown,
    shell_form,
]
