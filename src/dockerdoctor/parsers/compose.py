"""Parser for Docker Compose manifests.

Unlike the Dockerfile parser, an invalid document raises
ComposeParseError: a keyed document cannot be reliably recovered in part.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from dockerdoctor.models.compose import ComposeModel, ComposeService
from dockerdoctor.utils.errors import ComposeParseError

# Keys projected onto ComposeService fields; everything else passes through
MODELED_KEYS = frozenset(
    {
        "image",
        "build",
        "volumes",
        "ports",
        "environment",
        "networks",
        "depends_on",
        "healthcheck",
    }
)


class ComposeParser:
    """Parser for docker-compose.yml files.

    Example:
        parser = ComposeParser()
        model = parser.parse("compose.yml", text)
        for service in model.services:
            print(service.name, service.networks)
    """

    def parse_file(self, path: str | Path) -> ComposeModel:
        """Read and parse a Compose manifest from disk.

        Raises:
            OSError: If the file cannot be read
            ComposeParseError: If the document is invalid
        """
        text = Path(path).read_text(encoding="utf-8", errors="replace")
        return self.parse(str(path), text)

    def parse(self, path: str, text: str) -> ComposeModel:
        """Parse Compose YAML text.

        Args:
            path: Path recorded on the model
            text: YAML content

        Returns:
            Parsed model

        Raises:
            ComposeParseError: If the YAML is invalid or has the wrong shape
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            line = None
            mark = getattr(e, "problem_mark", None)
            if mark is not None:
                line = mark.line + 1
            raise ComposeParseError(f"Invalid YAML in {path}: {e}", path=path, line=line) from e
        except RecursionError as e:
            raise ComposeParseError(f"Invalid YAML in {path}: nesting too deep", path=path) from e

        if data is None:
            return ComposeModel(path=path, raw=text)
        if not isinstance(data, dict):
            raise ComposeParseError(
                f"Compose document root must be a mapping, got {type(data).__name__}",
                path=path,
            )

        services_raw = data.get("services") or {}
        if not isinstance(services_raw, dict):
            raise ComposeParseError("'services' must be a mapping", path=path)

        services = []
        seen: set[str] = set()
        for key, spec in services_raw.items():
            name = str(key)
            if name in seen:
                # YAML keys 1 and '1' are distinct but name the same service
                raise ComposeParseError(f"Duplicate service name: {name}", path=path)
            seen.add(name)
            if spec is None:
                spec = {}
            if not isinstance(spec, dict):
                raise ComposeParseError(f"Service '{name}' must be a mapping", path=path)
            services.append(self._parse_service(name, spec))

        version = data.get("version")
        return ComposeModel(
            path=path,
            version=str(version) if version is not None else None,
            services=services,
            networks=self._mapping(data.get("networks")),
            volumes=self._mapping(data.get("volumes")),
            raw=text,
        )

    def _parse_service(self, name: str, spec: dict[str, Any]) -> ComposeService:
        """Project one service entry onto the model."""
        networks, network_config = self._normalize_names(spec, "networks")
        depends_on, _ = self._normalize_names(spec, "depends_on")

        build = spec.get("build")
        if not isinstance(build, (str, dict)):
            build = None

        healthcheck = spec.get("healthcheck")
        if not isinstance(healthcheck, dict):
            healthcheck = None

        image = spec.get("image")
        volumes = spec.get("volumes")

        return ComposeService(
            name=name,
            image=str(image) if image is not None else None,
            build=build,
            volumes=list(volumes) if isinstance(volumes, list) else [],
            ports=self._normalize_ports(spec.get("ports")),
            environment=self._normalize_environment(spec.get("environment")),
            networks=networks,
            network_config=network_config,
            depends_on=depends_on,
            healthcheck=healthcheck,
            extras={k: v for k, v in spec.items() if k not in MODELED_KEYS},
        )

    @staticmethod
    def _normalize_names(spec: dict[str, Any], key: str) -> tuple[list[str] | None, dict[str, dict[str, Any]]]:
        """Normalize a list-or-mapping field to ordered unique names.

        Returns None when the key is absent and [] when it is present but
        empty. Mapping values that are themselves mappings are kept as
        per-name settings.
        """
        if key not in spec:
            return None, {}

        value = spec[key]
        names: list[str] = []
        settings: dict[str, dict[str, Any]] = {}

        if isinstance(value, dict):
            for item_name, item_config in value.items():
                item_name = str(item_name)
                if item_name not in names:
                    names.append(item_name)
                if isinstance(item_config, dict):
                    settings[item_name] = item_config
        elif isinstance(value, (list, tuple)):
            for item in value:
                item_name = str(item)
                if item_name not in names:
                    names.append(item_name)
        elif value is not None:
            names.append(str(value))

        return names, settings

    @staticmethod
    def _normalize_ports(value: Any) -> list[str]:
        """Render port entries in short syntax."""
        if not isinstance(value, list):
            return []

        ports = []
        for entry in value:
            if isinstance(entry, dict):
                target = entry.get("target")
                if target is None:
                    continue
                port = str(target)
                published = entry.get("published")
                if published is not None:
                    port = f"{published}:{port}"
                host_ip = entry.get("host_ip")
                if host_ip:
                    port = f"{host_ip}:{port}"
                protocol = entry.get("protocol")
                if protocol and protocol != "tcp":
                    port = f"{port}/{protocol}"
                ports.append(port)
            elif entry is not None:
                ports.append(str(entry))
        return ports

    @staticmethod
    def _normalize_environment(value: Any) -> dict[str, str | None]:
        """Normalize list (``KEY=value``) or mapping environment to a mapping."""
        env: dict[str, str | None] = {}
        if isinstance(value, dict):
            for key, item in value.items():
                env[str(key)] = None if item is None else str(item)
        elif isinstance(value, list):
            for item in value:
                text = str(item)
                if "=" in text:
                    key, val = text.split("=", 1)
                    env[key] = val
                else:
                    env[text] = None
        return env

    @staticmethod
    def _mapping(value: Any) -> dict[str, Any]:
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return {}


def parse_compose(text: str, path: str = "docker-compose.yml") -> ComposeModel:
    """Parse Compose text with a default parser."""
    return ComposeParser().parse(path, text)
