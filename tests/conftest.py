"""
Global test configuration for resilient-json.
"""

import os

import pytest

from resilient_json.config import DecoderSettings
from resilient_json.decoding import StructuredDecoder
from resilient_json.diagnostics import CollectingDiagnosticSink


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_decoder_env(request, monkeypatch):
    """Ensure a clean RESILIENT_JSON_* environment for each test.

    - Removes all RESILIENT_JSON_* variables and the DEBUG toggle
    - Leaves other variables intact

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("RESILIENT_JSON_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggling telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture
def collecting_sink():
    """In-memory diagnostic sink."""
    return CollectingDiagnosticSink()


@pytest.fixture
def decoder(collecting_sink):
    """Decoder with default settings, diagnostics on and a collecting sink."""
    return StructuredDecoder(
        settings=DecoderSettings(),
        sink=collecting_sink,
        enable_diagnostics=True,
    )


@pytest.fixture
def make_decoder(collecting_sink):
    """Factory for decoders with programmatic settings overrides."""

    def _make(**overrides) -> StructuredDecoder:
        return StructuredDecoder(
            settings=DecoderSettings(**overrides),
            sink=collecting_sink,
            enable_diagnostics=True,
        )

    return _make
