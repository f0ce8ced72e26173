"""Unit tests for the command-line front end."""

import io
import json

import pytest

from resilient_json.cli import main

pytestmark = pytest.mark.unit


def run(argv, stdin_text=""):
    stdout, stderr = io.StringIO(), io.StringIO()
    code = main(argv, stdin=io.StringIO(stdin_text), stdout=stdout, stderr=stderr)
    return code, stdout.getvalue(), stderr.getvalue()


class TestDecode:
    def test_decodes_file(self, tmp_path):
        """Should decode a response read from a file"""
        path = tmp_path / "response.txt"
        path.write_text('Here:\n```json\n{"a": 1,}\n```\n', encoding="utf-8")
        code, out, _ = run([str(path)])
        assert code == 0
        assert json.loads(out) == {"a": 1}

    def test_decodes_stdin(self):
        """Should read stdin when no file is given"""
        code, out, _ = run(["--indent", "0"], "{'a': 1}")
        assert code == 0
        assert out.strip() == '{"a": 1}'

    def test_prints_default_and_exits_one_on_failure(self):
        """Should print the default value when decoding fails"""
        code, out, _ = run(["--default", "[]", "--context", "cli"], "nothing")
        assert code == 1
        assert json.loads(out) == []

    def test_strict_rejects_scalars(self):
        """Should only accept containers with --strict"""
        code, out, _ = run(["--strict"], "42")
        assert code == 1
        assert json.loads(out) is None

    def test_candidate_first(self):
        """Should fail fast without a candidate"""
        code, _, _ = run(["--candidate-first"], "no json")
        assert code == 1

    def test_diagnostics_go_to_stderr(self):
        """Should write stage diagnostics as JSON to stderr"""
        code, out, err = run(["--diagnostics"], '{"a": 1')
        assert code == 0
        assert json.loads(out) == {"a": 1}
        assert json.loads(err)["successful_stage"] == "aggressive"


class TestExtractOnly:
    def test_prints_candidate(self):
        """Should print the raw candidate span"""
        code, out, _ = run(["--extract-only"], 'Answer: {"a": 1,} ok')
        assert code == 0
        assert out.strip() == '{"a": 1,}'

    def test_no_candidate(self):
        """Should exit 1 when there is nothing to extract"""
        code, _, err = run(["--extract-only"], "plain")
        assert code == 1
        assert "No JSON candidate found" in err


class TestUsageErrors:
    def test_invalid_default(self):
        """Should reject a --default that is not JSON"""
        with pytest.raises(SystemExit) as exc_info:
            run(["--default", "{nope"], "{}")
        assert exc_info.value.code == 2

    def test_missing_file(self, tmp_path):
        """Should report unreadable input files as usage errors"""
        with pytest.raises(SystemExit) as exc_info:
            run([str(tmp_path / "missing.txt")])
        assert exc_info.value.code == 2


class TestTelemetryReport:
    def test_report_written_when_enabled(self, monkeypatch):
        """Should print stage timings to stderr when telemetry is on"""
        monkeypatch.setenv("RESILIENT_JSON_TELEMETRY", "1")
        code, out, err = run([], '{"a": 1,}')
        assert code == 0
        assert json.loads(out) == {"a": 1}
        assert "--- Decode timings ---" in err
        assert "decode.repaired" in err

    def test_no_report_when_disabled(self):
        """Should keep stderr clean by default"""
        _, _, err = run([], '{"a": 1}')
        assert err == ""
