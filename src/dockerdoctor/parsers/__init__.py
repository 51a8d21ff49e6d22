"""Parsers turning project files into typed models."""

from dockerdoctor.parsers.dockerfile import DockerfileParser, parse_dockerfile
from dockerdoctor.parsers.compose import ComposeParser, parse_compose
from dockerdoctor.parsers.dockerignore import parse_dockerignore, parse_dockerignore_file

__all__ = [
    "DockerfileParser",
    "parse_dockerfile",
    "ComposeParser",
    "parse_compose",
    "parse_dockerignore",
    "parse_dockerignore_file",
]
