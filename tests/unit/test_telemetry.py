"""Unit tests for the telemetry context and the stage timing reporter."""

import logging

import pytest

from resilient_json.telemetry import (
    StageTimingReporter,
    TelemetryContext,
    TelemetryReporter,
)

pytestmark = pytest.mark.unit


class RecordingReporter:
    def __init__(self):
        self.timings = []
        self.metrics = []

    def record_timing(self, scope, duration, **metadata):
        self.timings.append((scope, duration, metadata))

    def record_metric(self, scope, value, **metadata):
        self.metrics.append((scope, value, metadata))


class TestDisabled:
    def test_returns_shared_no_op_when_disabled(self):
        """Should ignore reporters unless the environment enables telemetry"""
        reporter = RecordingReporter()
        ctx = TelemetryContext(reporter)
        assert ctx is TelemetryContext()
        assert ctx.enabled is False
        with ctx("decode"):
            ctx.count("decode.fallback")
        assert reporter.timings == []
        assert reporter.metrics == []


class TestEnabled:
    @pytest.fixture(autouse=True)
    def enable(self, monkeypatch):
        monkeypatch.setenv("RESILIENT_JSON_TELEMETRY", "1")

    def test_nested_scopes_are_dot_joined(self):
        """Should record nested timings with their parent scope"""
        reporter = RecordingReporter()
        ctx = TelemetryContext(reporter)
        with ctx("decode", context="x"):
            with ctx("raw"):
                pass
        (inner, _, inner_meta), (outer, _, outer_meta) = reporter.timings
        assert (inner, outer) == ("decode.raw", "decode")
        assert inner_meta["parent_scope"] == "decode"
        assert outer_meta["parent_scope"] is None
        assert outer_meta["context"] == "x"

    def test_debug_flag_enables_telemetry(self, monkeypatch):
        """Should also switch on with DEBUG=1"""
        monkeypatch.delenv("RESILIENT_JSON_TELEMETRY")
        monkeypatch.setenv("DEBUG", "1")
        assert TelemetryContext(RecordingReporter()).enabled is True

    def test_counter_is_scoped_and_tagged(self):
        """Should prefix counters with the enclosing scope"""
        reporter = RecordingReporter()
        ctx = TelemetryContext(reporter)
        with ctx("decode"):
            ctx.count("fallback")
        scope, value, metadata = reporter.metrics[0]
        assert (scope, value) == ("decode.fallback", 1)
        assert metadata["metric_type"] == "counter"

    def test_reporter_errors_are_logged(self, caplog):
        """Should keep going when a reporter raises"""

        class BrokenReporter:
            def record_timing(self, scope, duration, **metadata):
                raise RuntimeError("down")

            def record_metric(self, scope, value, **metadata):
                raise RuntimeError("down")

        assert isinstance(BrokenReporter(), TelemetryReporter)
        reporter = RecordingReporter()
        ctx = TelemetryContext(BrokenReporter(), reporter)
        with caplog.at_level(logging.ERROR, logger="resilient_json.telemetry"):
            with ctx("decode"):
                pass
        assert "Telemetry reporter 'BrokenReporter' failed" in caplog.text
        assert reporter.timings[0][0] == "decode"

    def test_empty_scope_name_rejected(self):
        """Should refuse unnamed scopes"""
        with pytest.raises(ValueError):
            with TelemetryContext(RecordingReporter())(""):
                pass


class TestStageTimingReporter:
    def test_aggregates_timings_and_counters(self):
        """Should keep call counts, totals and the slowest call per scope"""
        reporter = StageTimingReporter()
        reporter.record_timing("decode.raw", 0.002)
        reporter.record_timing("decode.raw", 0.004)
        reporter.record_metric("decode.fallback", 1, metric_type="counter")
        reporter.record_metric("decode.fallback", 2, metric_type="counter")
        reporter.record_metric("decode.ratio", 0.5)

        stats = reporter.timings["decode.raw"]
        assert stats.calls == 2
        assert stats.slowest == pytest.approx(0.004)
        assert stats.average == pytest.approx(0.003)
        assert reporter.counters == {"decode.fallback": 3}

    def test_report_lists_scopes_and_counters(self, monkeypatch):
        """Should render every timed scope and counter"""
        monkeypatch.setenv("RESILIENT_JSON_TELEMETRY", "1")
        reporter = StageTimingReporter()
        ctx = TelemetryContext(reporter)
        with ctx("decode"):
            with ctx("raw"):
                pass
            ctx.count("fallback")

        report = reporter.get_report()
        assert "decode.raw" in report
        assert "Calls: 1" in report
        assert "--- Counters ---" in report
        assert "decode.fallback" in report

    def test_empty_report_has_no_counter_section(self):
        """Should omit counters when none were recorded"""
        assert "Counters" not in StageTimingReporter().get_report()
