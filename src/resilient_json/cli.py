"""Command-line front end.

Usage:
    python -m resilient_json response.txt
    cat response.txt | python -m resilient_json --default '[]' --context tasks
    python -m resilient_json response.txt --extract-only
    python -m resilient_json response.txt --diagnostics
    RESILIENT_JSON_TELEMETRY=1 python -m resilient_json response.txt

Exit codes: 0 decoded (or candidate found), 1 fallback used (or no candidate),
2 usage error. With telemetry switched on, a stage timing report is also
written to stderr.
"""

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

from resilient_json.config import resolve_settings
from resilient_json.decoding import StructuredDecoder, extract_candidate
from resilient_json.exceptions import ConfigurationError
from resilient_json.telemetry import StageTimingReporter, TelemetryContext

# ruff: noqa: T201

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Decode JSON from language-model output",
        prog="python -m resilient_json",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="File holding the model response ('-' or omitted reads stdin)",
    )
    parser.add_argument(
        "--default",
        default="null",
        metavar="JSON",
        help="JSON value printed when decoding fails (default: null)",
    )
    parser.add_argument(
        "--context", help="Call-site label reported when decoding fails"
    )
    parser.add_argument(
        "--extract-only",
        action="store_true",
        help="Print the extracted candidate span instead of decoding it",
    )
    parser.add_argument(
        "--candidate-first",
        action="store_true",
        help="Extract a candidate before decoding; fail fast when there is none",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Only accept objects and arrays as decoded values",
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Write per-stage diagnostics as JSON to stderr",
    )
    parser.add_argument(
        "--indent", type=int, default=2, help="Output indentation (default: 2)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def _read_input(path: str, stdin: TextIO) -> str:
    if path == "-":
        return stdin.read()
    return Path(path).read_text(encoding="utf-8", errors="replace")


def _dump(value: Any, indent: int) -> str:
    return json.dumps(value, indent=indent if indent > 0 else None, ensure_ascii=False)


def main(
    argv: list[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """CLI entry point. Returns the process exit code."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=stderr,
    )

    try:
        fallback = json.loads(args.default)
    except json.JSONDecodeError as e:
        parser.error(f"--default is not valid JSON: {e}")

    try:
        text = _read_input(args.file, stdin)
    except OSError as e:
        parser.error(f"cannot read {args.file}: {e}")

    if args.extract_only:
        candidate = extract_candidate(text)
        if candidate is None:
            print("No JSON candidate found", file=stderr)
            return 1
        print(candidate, file=stdout)
        return 0

    overrides: dict[str, Any] = {}
    if args.strict:
        overrides["require_container"] = True
    if args.diagnostics:
        overrides["enable_diagnostics"] = True
    try:
        settings = resolve_settings(overrides)
    except ConfigurationError as e:
        parser.error(str(e))

    reporter = StageTimingReporter()
    decoder = StructuredDecoder(settings=settings, telemetry=TelemetryContext(reporter))
    if args.candidate_first:
        outcome = decoder.decode_candidate(text, fallback, args.context)
    else:
        outcome = decoder.decode(text, fallback, args.context)

    if outcome.diagnostics is not None:
        print(_dump(outcome.diagnostics.to_dict(), 2), file=stderr)
    if reporter.timings:
        print(reporter.get_report(), file=stderr)

    print(_dump(outcome.value, args.indent), file=stdout)
    log.debug("Decoded via stage '%s'.", outcome.stage)
    return 1 if outcome.used_default else 0


def main_entry() -> None:
    """Console-script wrapper around `main`."""
    sys.exit(main())
