"""Unit tests for the Compose parser."""

import pytest

from dockerdoctor.parsers import ComposeParser, parse_compose
from dockerdoctor.utils.errors import ComposeParseError, ParseError


class TestServices:
    """Tests for service projection."""

    def test_services_in_document_order(self):
        """Test services keep the order they are written in."""
        model = parse_compose("services:\n  web:\n    image: nginx\n  db:\n    image: postgres\n  cache: {}\n")
        assert model.service_names == ["web", "db", "cache"]
        assert model.get_service("db").image == "postgres"
        assert model.get_service("missing") is None

    def test_networks_list_and_mapping_normalize_identically(self):
        """Test list and mapping forms of networks give the same names."""
        as_list = parse_compose("services:\n  web:\n    networks: [front, back]\n")
        as_map = parse_compose("services:\n  web:\n    networks:\n      front: {}\n      back:\n")
        assert as_list.services[0].networks == ["front", "back"]
        assert as_map.services[0].networks == ["front", "back"]

    def test_depends_on_list_and_mapping_normalize_identically(self):
        """Test list and long-form depends_on give the same names."""
        as_list = parse_compose("services:\n  web:\n    depends_on: [db, cache]\n")
        as_map = parse_compose(
            "services:\n  web:\n    depends_on:\n"
            "      db:\n        condition: service_healthy\n"
            "      cache:\n        condition: service_started\n"
        )
        assert as_list.services[0].depends_on == ["db", "cache"]
        assert as_map.services[0].depends_on == ["db", "cache"]

    def test_absent_versus_empty_names(self):
        """Test an absent key is None and an empty one is an empty list."""
        model = parse_compose("services:\n  a:\n    image: x\n  b:\n    networks: []\n  c:\n    networks:\n")
        assert model.get_service("a").networks is None
        assert model.get_service("b").networks == []
        assert model.get_service("c").networks == []

    def test_duplicate_names_are_collapsed(self):
        """Test repeated names appear once, first occurrence wins."""
        model = parse_compose("services:\n  web:\n    networks: [a, b, a]\n")
        assert model.services[0].networks == ["a", "b"]

    def test_network_config_from_mapping_form(self):
        """Test per-network settings are kept."""
        model = parse_compose(
            "services:\n  web:\n    networks:\n      back:\n        ipv4_address: 172.20.0.5\n"
        )
        assert model.services[0].network_config == {"back": {"ipv4_address": "172.20.0.5"}}

    def test_environment_list_and_mapping(self):
        """Test both environment forms become a mapping."""
        as_list = parse_compose("services:\n  web:\n    environment:\n      - A=1\n      - B=x=y\n      - C\n")
        as_map = parse_compose("services:\n  web:\n    environment:\n      A: 1\n      C:\n")
        assert as_list.services[0].environment == {"A": "1", "B": "x=y", "C": None}
        assert as_map.services[0].environment == {"A": "1", "C": None}

    def test_ports_short_and_long_syntax(self):
        """Test long-form ports are rendered in short syntax."""
        model = parse_compose(
            "services:\n  web:\n    ports:\n"
            "      - \"8080:80\"\n"
            "      - target: 53\n        published: 5353\n        protocol: udp\n"
            "      - target: 443\n        published: 8443\n        host_ip: 127.0.0.1\n"
        )
        assert model.services[0].ports == ["8080:80", "5353:53/udp", "127.0.0.1:8443:443"]

    def test_unmodeled_keys_pass_through(self):
        """Test keys without a field are available through get."""
        model = parse_compose(
            "services:\n  web:\n    image: nginx\n    restart: always\n    deploy:\n      replicas: 2\n"
        )
        service = model.services[0]
        assert service.get("restart") == "always"
        assert service.get("deploy") == {"replicas": 2}
        assert "image" not in service.extras
        assert service.get("missing", "default") == "default"

    def test_healthcheck(self):
        """Test healthcheck presence."""
        model = parse_compose("services:\n  a:\n    healthcheck:\n      test: [CMD, true]\n  b: {}\n")
        assert model.get_service("a").has_healthcheck
        assert not model.get_service("b").has_healthcheck

    def test_null_service_is_empty(self):
        """Test a service with no body parses as empty."""
        model = parse_compose("services:\n  worker:\n")
        assert model.services[0].name == "worker"
        assert model.services[0].image is None


class TestTopLevel:
    """Tests for top-level blocks."""

    def test_networks_volumes_version(self):
        """Test top-level networks, volumes and version."""
        model = parse_compose(
            "version: 3.8\nservices: {}\nnetworks:\n  back:\n    driver: bridge\nvolumes:\n  data: {}\n"
        )
        assert model.version == "3.8"
        assert model.networks == {"back": {"driver": "bridge"}}
        assert model.volumes == {"data": {}}

    @pytest.mark.parametrize("text", ["", "# nothing\n", "services:\n"])
    def test_empty_documents(self, text):
        """Test empty documents give an empty model."""
        model = parse_compose(text)
        assert model.services == []
        assert model.networks == {}


class TestErrors:
    """Tests for invalid documents."""

    def test_invalid_yaml_raises_with_line(self):
        """Test malformed YAML raises ComposeParseError with a line number."""
        with pytest.raises(ComposeParseError) as exc_info:
            parse_compose("services:\n  web:\n    image: [unclosed\n")
        assert isinstance(exc_info.value, ParseError)
        assert exc_info.value.code == "PARSE_ERROR"
        assert exc_info.value.line is not None

    @pytest.mark.parametrize(
        "text",
        [
            "- just\n- a list\n",
            "services: [web, db]\n",
            "services:\n  web: nginx\n",
        ],
    )
    def test_wrong_shape_raises(self, text):
        """Test non-mapping roots, services or service bodies raise."""
        with pytest.raises(ComposeParseError):
            parse_compose(text)

    def test_keys_naming_the_same_service_raise(self):
        """Test an integer and a string key for one service name are rejected."""
        with pytest.raises(ComposeParseError, match="Duplicate service name: 1"):
            parse_compose("services:\n  1: {image: a}\n  \x271\x27: {image: b}\n")

    def test_deeply_nested_yaml_raises(self):
        """Test pathologically nested YAML raises ComposeParseError."""
        depth = 5000
        with pytest.raises(ComposeParseError, match="nesting too deep"):
            parse_compose("services: " + "[" * depth + "]" * depth + "\n")

    def test_parse_file(self, tmp_path):
        """Test parse_file reads from disk and records the path."""
        path = tmp_path / "compose.yml"
        path.write_text("services:\n  web:\n    image: nginx\n")
        model = ComposeParser().parse_file(path)
        assert model.path == str(path)
        assert model.service_names == ["web"]
