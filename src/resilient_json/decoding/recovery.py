"""Lossy last-resort recovery for text that still fails after `repair`."""

import logging
import re

from .repair import repair
from .scanner import scan_structure

log = logging.getLogger(__name__)

_DANGLING_COMMA_RE = re.compile(r",\s*\Z")


def balance_brackets(text: str) -> str:
    """Append the closers needed for every unclosed ``{`` and ``[``.

    Scanning starts at the first opener, so quotes in leading prose
    (``The 5" screen: {...``) cannot swallow the structure. An unterminated
    string is closed first, and a dangling comma before the appended closers
    is dropped. Excess closers are left as they are; no opener is ever
    synthesized.
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text

    scan = scan_structure(text[min(starts) :])
    if scan.is_balanced:
        return text

    if not scan.in_string:
        text = _DANGLING_COMMA_RE.sub("", text)
    suffix = scan.closing_suffix()
    log.debug(
        "Balancing %d unclosed bracket(s)%s.",
        len(scan.unclosed),
        " and an unterminated string" if scan.in_string else "",
    )
    return text + suffix


def trim_to_structure(text: str) -> str:
    """Cut everything before the first opener and after the last closer."""
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if starts:
        text = text[min(starts) :]

    end = max(text.rfind("}"), text.rfind("]"))
    if end != -1:
        text = text[: end + 1]
    return text


def recover(blob: str) -> str:
    """Aggressively rework ``blob`` into something `json.loads` may accept.

    Steps, in order: re-run `repair`, balance brackets, trim surrounding prose.
    The result can still be invalid.
    """
    fixed = repair(blob)
    fixed = balance_brackets(fixed)
    return trim_to_structure(fixed)
