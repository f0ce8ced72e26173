"""Fault-tolerant decoding of structured data from language-model output."""

import importlib.metadata
import logging

from resilient_json.api import (
    decode_with_default,
    extract_candidate,
    parse_with_default,
    safe_parse,
)
from resilient_json.config import (
    DecoderSettings,
    resolve_settings,
    settings_override,
    settings_scope,
)
from resilient_json.decoding import (
    AttemptSpec,
    DecodeDiagnostics,
    DecodeOutcome,
    DecodeStage,
    StructuredDecoder,
    default_attempts,
    recover,
    repair,
)
from resilient_json.diagnostics import (
    CollectingDiagnosticSink,
    DecodeFailure,
    DiagnosticSink,
    LoggingDiagnosticSink,
    NullDiagnosticSink,
)
from resilient_json.exceptions import ConfigurationError, ResilientJSONError
from resilient_json.telemetry import (
    StageTimingReporter,
    TelemetryContext,
    TelemetryReporter,
)

try:
    __version__ = importlib.metadata.version("resilient-json")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Boundary functions
    "extract_candidate",
    "decode_with_default",
    "safe_parse",
    "parse_with_default",
    # Decoder
    "StructuredDecoder",
    "AttemptSpec",
    "DecodeStage",
    "DecodeOutcome",
    "DecodeDiagnostics",
    "default_attempts",
    "repair",
    "recover",
    # Diagnostics (extension points)
    "DiagnosticSink",
    "DecodeFailure",
    "LoggingDiagnosticSink",
    "CollectingDiagnosticSink",
    "NullDiagnosticSink",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    "StageTimingReporter",
    # Configuration
    "DecoderSettings",
    "resolve_settings",
    "settings_scope",
    "settings_override",
    # Exceptions
    "ResilientJSONError",
    "ConfigurationError",
]
