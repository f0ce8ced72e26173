"""Core data types for the decode attempt chain."""

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from functools import cached_property
from typing import Any

from .extractor import extract_fenced_block


class DecodeStage(StrEnum):
    """States of the attempt chain, in the order they are tried."""

    RAW = "raw"
    REPAIRED = "repaired"
    MARKDOWN_RAW = "markdown_raw"
    MARKDOWN_REPAIRED = "markdown_repaired"
    AGGRESSIVE = "aggressive"
    FAILED = "failed"


class DecodeInput:
    """The raw response of one invocation plus lazily derived candidates."""

    def __init__(self, text: str) -> None:
        self.text = text

    @cached_property
    def fence(self) -> str | None:
        """Interior of the first markdown fence, computed on first use."""
        return extract_fenced_block(self.text)


@dataclass(frozen=True, slots=True)
class AttemptSpec:
    """One (transform -> parse) step of the chain.

    Attributes:
        stage: The chain state this attempt represents.
        prepare: Builds the string to parse, or returns None to skip the stage.
        repairs: True when ``prepare`` runs regex repair over the input; such
            attempts are skipped for oversized inputs.
    """

    stage: DecodeStage
    prepare: Callable[[DecodeInput], str | None]
    repairs: bool = False


@dataclass
class DecodeDiagnostics:
    """Per-invocation record of what the chain did."""

    context: str | None = None
    input_length: int = 0
    attempted_stages: list[str] = field(default_factory=list)
    skipped_stages: list[str] = field(default_factory=list)
    stage_errors: dict[str, str] = field(default_factory=dict)
    successful_stage: str | None = None
    flags: set[str] = field(default_factory=set)
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-serializable form."""
        data = asdict(self)
        data["flags"] = sorted(self.flags)
        return data


@dataclass(frozen=True, slots=True)
class DecodeOutcome[T]:
    """Result of `StructuredDecoder.decode`.

    ``value`` is either the decoded value or, when ``stage`` is
    `DecodeStage.FAILED`, the caller's fallback object itself.
    """

    value: T | Any
    stage: DecodeStage
    diagnostics: DecodeDiagnostics | None = None

    @property
    def used_default(self) -> bool:
        """Whether every attempt failed and the fallback was returned"""  # noqa: D415
        return self.stage is DecodeStage.FAILED
