"""Diagnostic sinks for decode fallbacks.

The decoder never logs on its own when it gives up; it hands a `DecodeFailure`
to whichever `DiagnosticSink` it was constructed with. `LoggingDiagnosticSink`
is the default and writes one log record per failure.
"""

from collections import deque
from dataclasses import dataclass, field
import logging
from typing import Protocol, runtime_checkable

from resilient_json.constants import DEFAULT_FALLBACK_LOG_LEVEL

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DecodeFailure:
    """A single fallback event.

    Attributes:
        context: Caller-supplied label naming the call site.
        message: Human-readable reason, e.g. ``"JSON parsing failed"``.
        input_length: Length of the raw response in characters.
        stage_errors: Last error message per attempted stage, in attempt order.
    """

    context: str
    message: str
    input_length: int
    stage_errors: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    def format(self) -> str:
        """Return the one-line log form of this failure."""
        return f"[{self.context}] {self.message}, using default"


@runtime_checkable
class DiagnosticSink(Protocol):
    """Receives decode failures. Implementations may raise; callers guard."""

    def record_failure(self, failure: DecodeFailure) -> None: ...  # noqa: D102


class LoggingDiagnosticSink:
    """Writes each failure to a `logging.Logger` at a fixed level."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int | str = DEFAULT_FALLBACK_LOG_LEVEL,
    ) -> None:
        self.logger = logger or log
        if isinstance(level, str):
            level = logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)
        self.level = level

    def record_failure(self, failure: DecodeFailure) -> None:
        self.logger.log(
            self.level,
            "%s",
            failure.format(),
            extra={
                "decode_context": failure.context,
                "input_length": failure.input_length,
            },
        )
        if failure.stage_errors and self.logger.isEnabledFor(logging.DEBUG):
            for stage, error in failure.stage_errors:
                self.logger.debug("[%s] %s: %s", failure.context, stage, error)


class CollectingDiagnosticSink:
    """Keeps the most recent failures in memory (tests, CLI diagnostics)."""

    def __init__(self, max_entries: int = 1000) -> None:
        self.failures: deque[DecodeFailure] = deque(maxlen=max_entries)

    def record_failure(self, failure: DecodeFailure) -> None:
        self.failures.append(failure)

    @property
    def contexts(self) -> list[str]:
        """Contexts of the recorded failures, oldest first."""
        return [f.context for f in self.failures]


class NullDiagnosticSink:
    """Discards every failure."""

    def record_failure(self, failure: DecodeFailure) -> None:
        pass
