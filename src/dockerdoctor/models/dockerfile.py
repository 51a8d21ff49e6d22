"""Dockerfile data models."""

from pydantic import BaseModel, Field

# Index of the sentinel bucket holding instructions that precede the first FROM
PRE_STAGE_INDEX = -1


class Instruction(BaseModel):
    """A single logical Dockerfile instruction.

    Continuation lines are already joined. ``args`` is the verbatim
    remainder after the instruction name; checks apply their own
    sub-parsing to it.
    """

    model_config = {"frozen": True}

    name: str = Field(description="Uppercased directive, e.g. FROM, RUN")
    args: str = Field(default="", description="Raw trailing text after the directive")
    raw: str = Field(description="Original text including joined continuation lines")
    lineno: int = Field(ge=1, description="First physical line, 1-based")


class Stage(BaseModel):
    """A build stage, starting at a FROM instruction."""

    model_config = {"frozen": True}

    index: int = Field(description="0-based stage index, or PRE_STAGE_INDEX")
    name: str | None = Field(default=None, description="Stage alias given with AS")
    base_image: str = Field(default="", description="Base image reference")
    from_instruction: Instruction | None = Field(
        default=None,
        description="The FROM instruction that opened this stage",
    )
    instructions: list[Instruction] = Field(
        default_factory=list,
        description="Instructions in this stage, FROM included",
    )
    start_line: int = Field(default=1, description="Line of the opening FROM")

    @property
    def is_pre_stage(self) -> bool:
        """Whether this is the sentinel bucket before the first FROM."""
        return self.index == PRE_STAGE_INDEX

    @property
    def label(self) -> str:
        """Alias if set, base image otherwise."""
        return self.name or self.base_image

    def find(self, *names: str) -> list[Instruction]:
        """Get instructions in this stage with the given names."""
        wanted = {n.upper() for n in names}
        return [i for i in self.instructions if i.name in wanted]


class DockerfileModel(BaseModel):
    """A parsed Dockerfile.

    ``pre_stage.instructions`` followed by every stage's instructions
    equals ``all_instructions``.
    """

    model_config = {"frozen": True}

    path: str = Field(description="Path the Dockerfile was read from")
    stages: list[Stage] = Field(default_factory=list, description="Numbered stages")
    pre_stage: Stage = Field(
        default_factory=lambda: Stage(index=PRE_STAGE_INDEX),
        description="Instructions before the first FROM (typically global ARGs)",
    )
    all_instructions: list[Instruction] = Field(
        default_factory=list,
        description="Every instruction in file order",
    )
    raw: str = Field(default="", description="Original file text")

    @property
    def final_stage(self) -> Stage | None:
        """The last stage, the one that produces the image."""
        return self.stages[-1] if self.stages else None

    @property
    def is_multistage(self) -> bool:
        """Whether the Dockerfile has more than one stage."""
        return len(self.stages) > 1

    def find(self, *names: str) -> list[Instruction]:
        """Get all instructions with the given names, in file order."""
        wanted = {n.upper() for n in names}
        return [i for i in self.all_instructions if i.name in wanted]
