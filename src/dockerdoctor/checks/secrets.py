"""Checks for credentials committed to build files."""

from __future__ import annotations

import re

from dockerdoctor.checks.base import check
from dockerdoctor.checks.utils import (
    is_literal_secret,
    is_secret_name,
    normalize_args,
    parse_env_pairs,
    strip_flags,
)
from dockerdoctor.models import CheckCategory, CheckContext, Finding, Fix, Severity

CATEGORY = CheckCategory.SECRETS

SENSITIVE_FILE_PATTERNS = [
    (re.compile(r"\.env\b"), ".env"),
    (re.compile(r"\.npmrc\b"), ".npmrc"),
    (re.compile(r"\.pem\b"), "*.pem"),
    (re.compile(r"\.key\b"), "*.key"),
    (re.compile(r"\bid_rsa\b"), "id_rsa"),
    (re.compile(r"\bid_ed25519\b"), "id_ed25519"),
    (re.compile(r"\bid_ecdsa\b"), "id_ecdsa"),
    (re.compile(r"\bcredentials\b"), "credentials"),
    (re.compile(r"\.aws/"), ".aws/"),
    (re.compile(r"\.ssh/"), ".ssh/"),
    (re.compile(r"\.gnupg/"), ".gnupg/"),
    (re.compile(r"\.p12\b"), "*.p12"),
    (re.compile(r"\.pfx\b"), "*.pfx"),
    (re.compile(r"\.jks\b"), "*.jks"),
]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


@check("secrets.dockerfile-env", "Hardcoded secret in ENV", CATEGORY)
async def dockerfile_env(context: CheckContext) -> list[Finding]:
    """Flag ENV instructions that bake a credential into the image."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for instr in dockerfile.find("ENV"):
        for key, value in parse_env_pairs(instr.args):
            if not is_secret_name(key) or not is_literal_secret(value):
                continue
            findings.append(
                Finding(
                    id=dockerfile_env.id,
                    title="Hardcoded secret in ENV instruction",
                    severity=Severity.ERROR,
                    category=CATEGORY,
                    message=(
                        f"ENV at line {instr.lineno} sets `{key}` to a literal value. It is "
                        "visible to anyone who can run `docker inspect` or `docker history` "
                        "on the image."
                    ),
                    location=dockerfile.path,
                    line=instr.lineno,
                    fixes=[
                        Fix.manual(
                            "Pass the value at runtime or use a build secret",
                            f"Remove `{key}` from the Dockerfile and pass it at runtime "
                            f"(`docker run -e {key}=...`), or for build time use "
                            f"`RUN --mount=type=secret,id={key.lower()} ...`.",
                        )
                    ],
                    meta={"key": key},
                )
            )
    return findings


@check("secrets.dockerfile-arg", "Hardcoded secret in ARG default", CATEGORY)
async def dockerfile_arg(context: CheckContext) -> list[Finding]:
    """Flag ARG defaults holding a credential; they end up in the build history."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for instr in dockerfile.find("ARG"):
        args = normalize_args(instr.args)
        if "=" not in args:
            continue
        key, value = args.split("=", 1)
        key = key.strip()
        value = _unquote(value.strip())
        if not is_secret_name(key) or not is_literal_secret(value):
            continue
        findings.append(
            Finding(
                id=dockerfile_arg.id,
                title="Hardcoded secret in ARG default value",
                severity=Severity.ERROR,
                category=CATEGORY,
                message=(
                    f"ARG at line {instr.lineno} gives `{key}` a hardcoded default. ARG values "
                    "are recorded in the image build history and can be read with "
                    "`docker history`."
                ),
                location=dockerfile.path,
                line=instr.lineno,
                fixes=[
                    Fix.manual(
                        "Remove the default and use build secrets",
                        f"Declare `ARG {key}` without a default, or better use BuildKit secrets:\n"
                        f"  RUN --mount=type=secret,id={key.lower()} ...\n"
                        f"  docker build --secret id={key.lower()},src=./{key.lower()}.txt .",
                    )
                ],
                meta={"key": key},
            )
        )
    return findings


@check("secrets.compose-env", "Plaintext secret in Compose environment", CATEGORY)
async def compose_env(context: CheckContext) -> list[Finding]:
    """Flag credentials written inline in a service's environment block."""
    compose = context.compose
    if compose is None:
        return []

    findings = []
    for service in compose.services:
        for key, value in service.environment.items():
            if not is_secret_name(key) or not is_literal_secret(value):
                continue
            findings.append(
                Finding(
                    id=compose_env.id,
                    title="Plaintext secret in compose environment",
                    severity=Severity.ERROR,
                    category=CATEGORY,
                    message=(
                        f'Service "{service.name}" sets `{key}` to a plaintext value. Compose '
                        "files are usually committed, exposing the secret in repository history."
                    ),
                    location=compose.path,
                    fixes=[
                        Fix.manual(
                            "Use env_file or variable substitution",
                            f"Put `{key}=...` in an uncommitted .env file and reference it:\n"
                            f"  environment:\n    - {key}=${{{key}}}",
                        )
                    ],
                    meta={"service": service.name, "key": key},
                )
            )
    return findings


@check("secrets.sensitive-copy", "Sensitive file copied into image", CATEGORY)
async def sensitive_copy(context: CheckContext) -> list[Finding]:
    """Flag COPY/ADD of key material or credential files. One finding per instruction."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return []

    findings = []
    for instr in dockerfile.find("COPY", "ADD"):
        sources = strip_flags(normalize_args(instr.args))
        for pattern, label in SENSITIVE_FILE_PATTERNS:
            if not pattern.search(sources):
                continue
            findings.append(
                Finding(
                    id=sensitive_copy.id,
                    title=f'Sensitive file "{label}" copied into image',
                    severity=Severity.ERROR,
                    category=CATEGORY,
                    message=(
                        f"{instr.name} at line {instr.lineno} copies a sensitive file "
                        f"(`{label}`) into the image: `{instr.raw.strip()}`. It stays in the "
                        "layer history even if a later layer deletes it."
                    ),
                    location=dockerfile.path,
                    line=instr.lineno,
                    fixes=[
                        Fix.manual(
                            "Exclude sensitive files and mount them at runtime",
                            f"Add `{label}` to .dockerignore and provide the file with a "
                            "BuildKit secret mount or a read-only runtime volume.",
                        )
                    ],
                    meta={"file": label, "instruction": instr.name},
                )
            )
            break
    return findings


CHECKS = [
    dockerfile_env,
    dockerfile_arg,
    compose_env,
    sensitive_copy,
]
