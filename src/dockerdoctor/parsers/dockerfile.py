"""Parser for Dockerfiles.

The parser never fails. Malformed input, a missing FROM or an empty file
all produce a valid (possibly zero-stage) model, so checks can stay simple.
"""

from __future__ import annotations

import re
from pathlib import Path

from dockerdoctor.models.dockerfile import (
    PRE_STAGE_INDEX,
    DockerfileModel,
    Instruction,
    Stage,
)

DEFAULT_ESCAPE = "\\"

_DIRECTIVE_RE = re.compile(r"^#\s*([a-zA-Z][a-zA-Z0-9_-]*)\s*=\s*(.*?)\s*$")
_AS_RE = re.compile(r"^as$", re.IGNORECASE)


class DockerfileParser:
    """Parser for Dockerfile text.

    Example:
        parser = DockerfileParser()
        model = parser.parse("Dockerfile", "FROM node:20 AS build\\nRUN npm ci\\n")
        for stage in model.stages:
            print(stage.index, stage.base_image, len(stage.instructions))
    """

    def parse_file(self, path: str | Path) -> DockerfileModel:
        """Read and parse a Dockerfile from disk.

        Args:
            path: Path to the Dockerfile

        Returns:
            Parsed model

        Raises:
            OSError: If the file cannot be read
        """
        text = Path(path).read_text(encoding="utf-8", errors="replace")
        return self.parse(str(path), text)

    def parse(self, path: str, text: str) -> DockerfileModel:
        """Parse Dockerfile text.

        Args:
            path: Path recorded on the model
            text: Dockerfile content

        Returns:
            Parsed model with stages and a flat instruction list
        """
        # Docker breaks lines on \n only, other Unicode line breaks stay in the args
        lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
        escape = self._detect_escape(lines)
        instructions = self._logical_instructions(lines, escape)
        pre_stage, stages = self._split_stages(instructions)

        return DockerfileModel(
            path=path,
            stages=stages,
            pre_stage=pre_stage,
            all_instructions=instructions,
            raw=text,
        )

    @staticmethod
    def _detect_escape(lines: list[str]) -> str:
        """Read the escape parser directive from the top of the file."""
        for line in lines:
            match = _DIRECTIVE_RE.match(line.strip())
            if not match:
                break
            if match.group(1).lower() == "escape" and match.group(2) in ("\\", "`"):
                return match.group(2)
        return DEFAULT_ESCAPE

    @staticmethod
    def _strip_continuation(body: str, escape: str) -> tuple[bool, str]:
        """Remove a trailing line-continuation marker.

        A marker is escaped by doubling it, so only an odd run of trailing
        escape characters continues the line.
        """
        run = len(body) - len(body.rstrip(escape))
        if run % 2 == 1:
            return True, body[:-1].rstrip()
        return False, body

    def _logical_instructions(self, lines: list[str], escape: str) -> list[Instruction]:
        """Join continuation lines and build one Instruction per logical line."""
        instructions: list[Instruction] = []
        pieces: list[str] = []
        raw_lines: list[str] = []
        start_line = 0

        for lineno, line in enumerate(lines, start=1):
            stripped = line.strip()

            if not raw_lines:
                if not stripped or stripped.startswith("#"):
                    continue
                start_line = lineno
            elif not stripped or stripped.startswith("#"):
                # Blank and comment lines inside a continuation are skipped
                continue

            raw_lines.append(line.rstrip())
            continued, body = self._strip_continuation(stripped, escape)
            if body:
                pieces.append(body)
            if continued:
                continue

            instruction = self._make_instruction(pieces, raw_lines, start_line)
            if instruction is not None:
                instructions.append(instruction)
            pieces, raw_lines = [], []

        if raw_lines:
            # File ended in the middle of a continuation
            instruction = self._make_instruction(pieces, raw_lines, start_line)
            if instruction is not None:
                instructions.append(instruction)

        return instructions

    @staticmethod
    def _make_instruction(pieces: list[str], raw_lines: list[str], lineno: int) -> Instruction | None:
        joined = " ".join(pieces).strip()
        if not joined:
            return None
        parts = joined.split(None, 1)
        return Instruction(
            name=parts[0].upper(),
            args=parts[1].strip() if len(parts) > 1 else "",
            raw="\n".join(raw_lines),
            lineno=lineno,
        )

    def _split_stages(self, instructions: list[Instruction]) -> tuple[Stage, list[Stage]]:
        """Group instructions into a pre-FROM bucket and numbered stages."""
        pre: list[Instruction] = []
        groups: list[list[Instruction]] = []

        for instr in instructions:
            if instr.name == "FROM":
                groups.append([instr])
            elif groups:
                groups[-1].append(instr)
            else:
                pre.append(instr)

        stages = []
        for index, group in enumerate(groups):
            from_instr = group[0]
            base_image, alias = self.split_from_args(from_instr.args)
            stages.append(
                Stage(
                    index=index,
                    name=alias,
                    base_image=base_image,
                    from_instruction=from_instr,
                    instructions=group,
                    start_line=from_instr.lineno,
                )
            )

        pre_stage = Stage(
            index=PRE_STAGE_INDEX,
            instructions=pre,
            start_line=pre[0].lineno if pre else 1,
        )
        return pre_stage, stages

    @staticmethod
    def split_from_args(args: str) -> tuple[str, str | None]:
        """Split FROM arguments into base image and stage alias.

        Flags such as ``--platform=linux/amd64`` are skipped.

        Args:
            args: Text after FROM

        Returns:
            Tuple of (base image, alias or None)
        """
        tokens = [t for t in args.split() if not t.startswith("--")]
        if not tokens:
            return "", None
        alias = None
        if len(tokens) >= 3 and _AS_RE.match(tokens[-2]):
            alias = tokens[-1]
        return tokens[0], alias


def parse_dockerfile(text: str, path: str = "Dockerfile") -> DockerfileModel:
    """Parse Dockerfile text with a default parser."""
    return DockerfileParser().parse(path, text)
