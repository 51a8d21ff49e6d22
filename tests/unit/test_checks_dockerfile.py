"""Unit tests for the Dockerfile checks."""

import pytest

from dockerdoctor.checks import dockerfile as checks
from dockerdoctor.models import CheckCategory, Severity


async def run(descriptor, context):
    return await descriptor(context)


class TestWithoutDockerfile:
    """Every Dockerfile check is silent without a Dockerfile."""

    @pytest.mark.parametrize("descriptor", checks.CHECKS, ids=lambda d: d.id)
    async def test_no_dockerfile(self, descriptor, make_context):
        """Test no findings when there is nothing to inspect."""
        assert await run(descriptor, make_context()) == []

    @pytest.mark.parametrize("descriptor", checks.CHECKS, ids=lambda d: d.id)
    async def test_clean_dockerfile(self, descriptor, make_context, clean_dockerfile):
        """Test a well-formed Dockerfile passes every check."""
        assert await run(descriptor, make_context(dockerfile=clean_dockerfile)) == []


class TestLayerOrder:
    """Tests for dockerfile.layer-order."""

    async def test_broad_copy_before_manifest(self, make_context, node_dockerfile):
        """Test COPY . . before COPY package.json is flagged."""
        findings = await run(checks.layer_order, make_context(dockerfile=node_dockerfile))
        assert len(findings) == 1
        assert findings[0].severity == Severity.WARNING
        assert findings[0].category == CheckCategory.DOCKERFILE
        assert findings[0].line == 5

    async def test_python_requirements(self, make_context):
        """Test other ecosystems' manifests are recognized."""
        text = "FROM python:3.12\nCOPY ./ /app\nCOPY requirements.txt /app/\nRUN pip install -r requirements.txt\n"
        findings = await run(checks.layer_order, make_context(dockerfile=text))
        assert [f.line for f in findings] == [3]


class TestMissingMultistage:
    """Tests for dockerfile.missing-multistage."""

    async def test_build_tools_in_single_stage(self, make_context):
        """Test compilers in a single-stage build are flagged once."""
        text = "FROM debian:12\nRUN apt-get install -y gcc make\nRUN make install\n"
        findings = await run(checks.missing_multistage, make_context(dockerfile=text))
        assert len(findings) == 1
        assert findings[0].line == 2

    async def test_multistage_is_fine(self, make_context):
        """Test a multi-stage build is not flagged."""
        text = "FROM debian:12 AS build\nRUN apt-get install -y gcc\nFROM debian:12-slim\n"
        assert await run(checks.missing_multistage, make_context(dockerfile=text)) == []


class TestNpmInstall:
    """Tests for dockerfile.npm-install."""

    @pytest.mark.parametrize(
        "command,flagged",
        [
            ("npm install", True),
            ("npm i --omit=dev", True),
            ("npm install && npm run build", True),
            ("npm ci", False),
            ("npm install express", False),
        ],
    )
    async def test_detection(self, make_context, command, flagged):
        """Test bare installs are flagged but package installs are not."""
        text = f"FROM node:20\nRUN {command}\n"
        findings = await run(checks.npm_install, make_context(dockerfile=text))
        assert bool(findings) is flagged


class TestNodeEnvTrap:
    """Tests for dockerfile.node-env-trap."""

    async def test_node_env_before_install(self, make_context, node_dockerfile):
        """Test NODE_ENV=production before npm install is an error."""
        findings = await run(checks.node_env_trap, make_context(dockerfile=node_dockerfile))
        assert len(findings) == 1
        assert findings[0].severity == Severity.ERROR
        assert findings[0].line == 3
        assert findings[0].meta["install_line"] == 6

    async def test_node_env_after_install(self, make_context):
        """Test NODE_ENV set after installing is fine."""
        text = "FROM node:20\nRUN npm ci\nENV NODE_ENV=production\n"
        assert await run(checks.node_env_trap, make_context(dockerfile=text)) == []

    async def test_other_stage_is_independent(self, make_context):
        """Test NODE_ENV in one stage does not affect the next."""
        text = "FROM node:20 AS a\nENV NODE_ENV=production\nFROM node:20\nRUN npm ci\n"
        assert await run(checks.node_env_trap, make_context(dockerfile=text)) == []


class TestBaseImageLatest:
    """Tests for dockerfile.base-image-latest."""

    @pytest.mark.parametrize(
        "from_line,flagged",
        [
            ("FROM node:latest", True),
            ("FROM node", True),
            ("FROM ghcr.io/org/app", True),
            ("FROM localhost:5000/app", True),
            ("FROM node:20", False),
            ("FROM localhost:5000/app:1.2", False),
            ("FROM node@sha256:abcdef", False),
            ("FROM scratch", False),
            ("FROM ${BASE_IMAGE}", False),
        ],
    )
    async def test_detection(self, make_context, from_line, flagged):
        """Test which references count as unpinned."""
        findings = await run(checks.base_image_latest, make_context(dockerfile=f"{from_line}\n"))
        assert bool(findings) is flagged

    async def test_stage_alias_is_skipped(self, make_context):
        """Test FROM <earlier stage> is not an image reference."""
        text = "FROM node:20 AS deps\nFROM deps AS build\nFROM build\n"
        assert await run(checks.base_image_latest, make_context(dockerfile=text)) == []


class TestAlpineNative:
    """Tests for dockerfile.alpine-native."""

    async def test_native_modules_on_alpine(self, make_context):
        """Test native packages on Alpine are reported once per stage."""
        text = "FROM node:20-alpine\nRUN npm install bcrypt sharp\nRUN npm rebuild\n"
        findings = await run(checks.alpine_native, make_context(dockerfile=text))
        assert len(findings) == 1
        assert findings[0].line == 2
        assert findings[0].meta["packages"] == ["bcrypt", "sharp", "node-gyp"]

    async def test_debian_is_fine(self, make_context):
        """Test the same install on Debian is not flagged."""
        text = "FROM node:20-slim\nRUN npm install bcrypt\n"
        assert await run(checks.alpine_native, make_context(dockerfile=text)) == []

    async def test_package_name_boundaries(self, make_context):
        """Test names embedded in other names do not match."""
        text = "FROM node:20-alpine\nRUN npm install bcryptjs\n"
        assert await run(checks.alpine_native, make_context(dockerfile=text)) == []


class TestRunningAsRoot:
    """Tests for dockerfile.running-as-root."""

    async def test_no_user(self, make_context, node_dockerfile):
        """Test a final stage without USER is flagged at its CMD."""
        findings = await run(checks.running_as_root, make_context(dockerfile=node_dockerfile))
        assert len(findings) == 1
        assert findings[0].line == 7

    @pytest.mark.parametrize("user,flagged", [("root", True), ("0:0", True), ("node", False), ("1000", False)])
    async def test_last_user_wins(self, make_context, user, flagged):
        """Test only the last USER of the final stage matters."""
        text = f"FROM alpine\nUSER app\nUSER {user}\n"
        findings = await run(checks.running_as_root, make_context(dockerfile=text))
        assert bool(findings) is flagged

    async def test_user_in_build_stage_only(self, make_context):
        """Test a USER in an earlier stage does not count."""
        text = "FROM alpine AS build\nUSER app\nFROM alpine\nCMD [\"sh\"]\n"
        assert len(await run(checks.running_as_root, make_context(dockerfile=text))) == 1


class TestMissingChown:
    """Tests for dockerfile.missing-chown."""

    async def test_copy_after_user(self, make_context):
        """Test COPY after a non-root USER needs --chown."""
        text = "FROM node:20\nUSER node\nCOPY . /app\nADD --chown=node:node x /app\n"
        findings = await run(checks.missing_chown, make_context(dockerfile=text))
        assert [f.line for f in findings] == [3]
        assert findings[0].meta["user"] == "node"

    async def test_copy_after_switching_back_to_root(self, make_context):
        """Test USER root resets the tracking."""
        text = "FROM node:20\nUSER node\nUSER root\nCOPY . /app\n"
        assert await run(checks.missing_chown, make_context(dockerfile=text)) == []


class TestShellForm:
    """Tests for dockerfile.shell-form."""

    async def test_shell_form(self, make_context):
        """Test CMD and ENTRYPOINT in shell form are flagged."""
        text = 'FROM node:20\nENTRYPOINT node server.js\nCMD ["--port", "80"]\n'
        findings = await run(checks.shell_form, make_context(dockerfile=text))
        assert [f.line for f in findings] == [2]
        assert '["node", "server.js"]' in findings[0].fixes[0].instructions
