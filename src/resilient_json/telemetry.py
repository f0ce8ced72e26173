"""Stage timings and counters for decode invocations.

Telemetry is off unless ``RESILIENT_JSON_TELEMETRY=1`` or ``DEBUG=1`` is set
*and* the decoder was given a reporter. While off, `TelemetryContext()` hands
out one shared no-op object, so the decoder pays a method call per stage and
nothing more.

Example:
    reporter = StageTimingReporter()
    decoder = StructuredDecoder(telemetry=TelemetryContext(reporter))
    ...
    print(reporter.get_report())
"""

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import threading
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

from resilient_json.constants import TELEMETRY_ENV_VAR

log = logging.getLogger(__name__)

# Enclosing scope names for the current thread or task
_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "resilient_json_scope_stack",
    default=(),
)


def telemetry_enabled() -> bool:
    """Return True when telemetry is switched on in the environment."""
    return os.getenv(TELEMETRY_ENV_VAR) == "1" or os.getenv("DEBUG") == "1"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Receives finished scope timings and counter increments."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless stand-in used while telemetry is off."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        return None

    @property
    def enabled(self) -> bool:
        return False

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Times nested scopes and forwards counters to every reporter."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager["_EnabledTelemetryContext"]:
        return self._scope(name, **metadata)

    @property
    def enabled(self) -> bool:
        return True

    @contextmanager
    def _scope(self, name: str, **metadata: Any) -> Iterator["_EnabledTelemetryContext"]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        parents = _scope_stack_var.get()
        token = _scope_stack_var.set((*parents, name))
        start_time = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start_time
            _scope_stack_var.reset(token)
            self._dispatch("record_timing", name, duration, parents, metadata)

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        """Add ``increment`` to the counter ``name`` under the current scope."""
        metadata = {"metric_type": "counter", **metadata}
        self._dispatch("record_metric", name, increment, _scope_stack_var.get(), metadata)

    def _dispatch(
        self,
        method: str,
        name: str,
        value: Any,
        parents: tuple[str, ...],
        metadata: dict[str, Any],
    ) -> None:
        scope_path = ".".join((*parents, name))
        parent_scope = ".".join(parents) or None
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(
                    scope_path, value, parent_scope=parent_scope, **metadata
                )
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return an enabled context, or the shared no-op when telemetry is off."""
    if reporters and telemetry_enabled():
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP_SINGLETON


@dataclass(slots=True)
class ScopeStats:
    """Aggregated timings of one scope."""

    calls: int = 0
    total: float = 0.0
    slowest: float = 0.0

    @property
    def average(self) -> float:
        return self.total / self.calls if self.calls else 0.0


class StageTimingReporter:
    """In-memory reporter aggregating per-stage timings and counters.

    Safe to share between threads. Used by the CLI when telemetry is on.
    """

    def __init__(self) -> None:
        self.timings: dict[str, ScopeStats] = {}
        self.counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:  # noqa: ARG002
        with self._lock:
            stats = self.timings.setdefault(scope, ScopeStats())
            stats.calls += 1
            stats.total += duration
            stats.slowest = max(stats.slowest, duration)

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:  # noqa: ARG002
        if not isinstance(value, int):
            return
        with self._lock:
            self.counters[scope] = self.counters.get(scope, 0) + value

    def get_report(self) -> str:
        """Render timings (slowest first) and counters as a text table."""
        with self._lock:
            timings = sorted(
                self.timings.items(), key=lambda item: item[1].total, reverse=True
            )
            counters = sorted(self.counters.items())

        lines = ["--- Decode timings ---"]
        for scope, stats in timings:
            lines.append(
                f"{scope:<28} | Calls: {stats.calls:<4} | "
                f"Avg: {stats.average * 1000:.3f}ms | "
                f"Max: {stats.slowest * 1000:.3f}ms"
            )
        if counters:
            lines.append("--- Counters ---")
            lines.extend(f"{scope:<28} | {total}" for scope, total in counters)
        return "\n".join(lines)
