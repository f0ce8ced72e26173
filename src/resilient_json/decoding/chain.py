"""The decode attempt chain and its fallback policy.

`StructuredDecoder` runs a fixed sequence of `AttemptSpec`s over a raw model
response and stops at the first one whose output `json.loads` accepts:

1. ``raw``: the text as-is
2. ``repaired``: ``repair(text)``
3. ``markdown_raw``: the first fenced block (skipped without a fence)
4. ``markdown_repaired``: ``repair(fence)`` (skipped without a fence)
5. ``aggressive``: ``recover(fence or text)``; the full text is used when the
   fence holds no ``{`` or ``[``

When all of them fail the caller's fallback object is returned unchanged and,
if a diagnostic context was given, a `DecodeFailure` goes to the configured
`DiagnosticSink`. Nothing in this module raises to the caller.
"""

import json
import logging
import time
from typing import Any

from resilient_json.config import DecoderSettings, resolve_settings
from resilient_json.constants import LOG_PREVIEW_LENGTH, OPENERS
from resilient_json.diagnostics import (
    DecodeFailure,
    DiagnosticSink,
    LoggingDiagnosticSink,
)
from resilient_json.telemetry import TelemetryContext, TelemetryContextProtocol

from .extractor import extract_candidate
from .recovery import recover
from .repair import repair
from .types import (
    AttemptSpec,
    DecodeDiagnostics,
    DecodeInput,
    DecodeOutcome,
    DecodeStage,
)

log = logging.getLogger(__name__)

PARSE_FAILED_MESSAGE = "JSON parsing failed"
NO_CANDIDATE_MESSAGE = "No JSON found in response"


# --- Built-in attempt preparers ---


def _raw(source: DecodeInput) -> str:
    return source.text


def _repaired(source: DecodeInput) -> str:
    return repair(source.text)


def _markdown_raw(source: DecodeInput) -> str | None:
    return source.fence


def _markdown_repaired(source: DecodeInput) -> str | None:
    return repair(source.fence) if source.fence is not None else None


def _aggressive(source: DecodeInput) -> str:
    fence = source.fence
    # A fence without any opener (a shell snippet, say) cannot hold the JSON
    if fence is None or not any(opener in fence for opener in OPENERS):
        return recover(source.text)
    return recover(fence)


def default_attempts(*, enable_aggressive: bool = True) -> tuple[AttemptSpec, ...]:
    """Return the built-in attempt sequence in chain order."""
    attempts = [
        AttemptSpec(DecodeStage.RAW, _raw),
        AttemptSpec(DecodeStage.REPAIRED, _repaired, repairs=True),
        AttemptSpec(DecodeStage.MARKDOWN_RAW, _markdown_raw),
        AttemptSpec(DecodeStage.MARKDOWN_REPAIRED, _markdown_repaired, repairs=True),
    ]
    if enable_aggressive:
        attempts.append(AttemptSpec(DecodeStage.AGGRESSIVE, _aggressive, repairs=True))
    return tuple(attempts)


def coerce_text(text: Any) -> str:
    """Turn whatever the caller passed into a string without raising."""
    if text is None:
        return ""
    if isinstance(text, str):
        return text
    if isinstance(text, bytes | bytearray):
        return bytes(text).decode("utf-8", errors="replace")
    try:
        return str(text)
    except Exception as e:
        log.debug("Could not convert %s to text: %s", type(text).__name__, e)
        return ""


class StructuredDecoder:
    """Decode model output into JSON data, falling back to a default.

    A decoder holds only immutable configuration, so one instance can be
    shared across threads and tasks.

    Attributes:
        settings: Frozen `DecoderSettings` captured at construction.
        attempts: The attempt sequence, tried in order.
        sink: Receives a `DecodeFailure` when a labelled decode falls back.
        enable_diagnostics: Whether outcomes carry `DecodeDiagnostics`.
    """

    def __init__(
        self,
        attempts: tuple[AttemptSpec, ...] | None = None,
        *,
        settings: DecoderSettings | None = None,
        sink: DiagnosticSink | None = None,
        enable_diagnostics: bool | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the decoder.

        Args:
            attempts: Optional attempt sequence. Defaults to `default_attempts`.
            settings: Optional settings. Defaults to `resolve_settings()`.
            sink: Optional diagnostic sink. Defaults to a logging sink at
                ``settings.fallback_log_level``.
            enable_diagnostics: Overrides ``settings.enable_diagnostics``.
            telemetry: Optional telemetry context. Defaults to a no-op.

        Raises:
            ConfigurationError: If settings are resolved here and invalid.
        """
        self.settings = settings if settings is not None else resolve_settings()
        self.attempts = (
            tuple(attempts)
            if attempts is not None
            else default_attempts(enable_aggressive=self.settings.enable_aggressive)
        )
        self.sink = (
            sink
            if sink is not None
            else LoggingDiagnosticSink(level=self.settings.fallback_log_level)
        )
        self.enable_diagnostics = (
            self.settings.enable_diagnostics
            if enable_diagnostics is None
            else enable_diagnostics
        )
        self._tele = telemetry if telemetry is not None else TelemetryContext()

    def decode[T](
        self, text: Any, fallback: T, context: str | None = None
    ) -> DecodeOutcome[T]:
        """Run the attempt chain over ``text``.

        Args:
            text: Raw model response. ``bytes`` are decoded as UTF-8, ``None``
                is treated as empty.
            fallback: Returned by identity when every attempt fails.
            context: Optional call-site label; enables the failure signal.

        Returns:
            A `DecodeOutcome` naming the stage that succeeded, or
            `DecodeStage.FAILED` with ``fallback`` as its value.
        """
        start_time = time.perf_counter()
        raw = coerce_text(text)
        source = DecodeInput(raw)
        diagnostics = (
            DecodeDiagnostics(context=context, input_length=len(raw))
            if self.enable_diagnostics
            else None
        )
        errors: list[tuple[str, str]] = []

        oversized = len(raw) > self.settings.max_repair_input_size
        if oversized:
            log.debug(
                "Input of %d characters exceeds repair limit %d; repair stages skipped.",
                len(raw),
                self.settings.max_repair_input_size,
            )
            if diagnostics:
                diagnostics.flags.add("oversized_input")

        outcome: DecodeOutcome[T] | None = None
        with self._tele("decode", context=context):
            for attempt in self.attempts:
                stage = attempt.stage
                if attempt.repairs and oversized:
                    if diagnostics:
                        diagnostics.skipped_stages.append(stage.value)
                    continue

                value, error, skipped = self._run_attempt(attempt, source)
                if skipped:
                    if diagnostics:
                        diagnostics.skipped_stages.append(stage.value)
                    continue
                if diagnostics:
                    diagnostics.attempted_stages.append(stage.value)
                if error is not None:
                    errors.append((stage.value, error))
                    if diagnostics:
                        diagnostics.stage_errors[stage.value] = error
                    continue

                if diagnostics:
                    diagnostics.successful_stage = stage.value
                outcome = DecodeOutcome(
                    value=value, stage=stage, diagnostics=diagnostics
                )
                break

        if outcome is None:
            self._tele.count("decode.fallback", context=context)
            log.debug(
                "All %d decode attempts failed. preview='%s'",
                len(self.attempts),
                raw[:LOG_PREVIEW_LENGTH],
            )
            if diagnostics:
                diagnostics.successful_stage = DecodeStage.FAILED.value
            if context:
                self._report_failure(
                    DecodeFailure(
                        context=context,
                        message=PARSE_FAILED_MESSAGE,
                        input_length=len(raw),
                        stage_errors=tuple(errors),
                    )
                )
            outcome = DecodeOutcome(
                value=fallback, stage=DecodeStage.FAILED, diagnostics=diagnostics
            )

        if diagnostics:
            diagnostics.duration_ms = (time.perf_counter() - start_time) * 1000
        return outcome

    def decode_with_default[T](
        self, text: Any, fallback: T, context: str | None = None
    ) -> T:
        """Return the decoded value, or ``fallback`` when every attempt fails."""
        return self.decode(text, fallback, context).value

    def decode_candidate[T](
        self, text: Any, fallback: T, context: str | None = None
    ) -> DecodeOutcome[T]:
        """Extract a candidate first, then run the chain on it.

        Text with neither a fence nor an opening bracket falls back at once
        (flagged ``no_candidate``) and signals ``"No JSON found in response"``
        for labelled calls.
        """
        raw = coerce_text(text)
        candidate = extract_candidate(raw)
        if candidate is not None:
            return self.decode(candidate, fallback, context)

        self._tele.count("decode.no_candidate", context=context)
        diagnostics = None
        if self.enable_diagnostics:
            diagnostics = DecodeDiagnostics(
                context=context,
                input_length=len(raw),
                successful_stage=DecodeStage.FAILED.value,
                flags={"no_candidate"},
                duration_ms=0.0,
            )
        if context:
            self._report_failure(
                DecodeFailure(
                    context=context,
                    message=NO_CANDIDATE_MESSAGE,
                    input_length=len(raw),
                )
            )
        return DecodeOutcome(
            value=fallback, stage=DecodeStage.FAILED, diagnostics=diagnostics
        )

    def _run_attempt(
        self, attempt: AttemptSpec, source: DecodeInput
    ) -> tuple[Any, str | None, bool]:
        """Prepare and parse one attempt.

        Returns:
            ``(value, error, skipped)``. ``error`` is None on success.
        """
        try:
            candidate = attempt.prepare(source)
        except Exception as e:
            log.debug("Preparing stage '%s' failed: %s", attempt.stage, e)
            return None, f"prepare failed: {e}", False
        if candidate is None:
            return None, None, True

        try:
            with self._tele(attempt.stage.value):
                value = json.loads(candidate)
        except Exception as e:
            log.debug("Stage '%s' did not parse: %s", attempt.stage, e)
            return None, str(e) or type(e).__name__, False

        if self.settings.require_container and not isinstance(value, dict | list):
            expected = "expected object or array"
            return None, f"decoded {type(value).__name__}, {expected}", False
        return value, None, False

    def _report_failure(self, failure: DecodeFailure) -> None:
        """Hand ``failure`` to the sink; sink errors are logged, never raised."""
        try:
            self.sink.record_failure(failure)
        except Exception as e:
            log.error(
                "Diagnostic sink '%s' failed: %s",
                type(self.sink).__name__,
                e,
                exc_info=True,
            )
