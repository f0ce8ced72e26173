"""Candidate extraction from free-form model output.

Two candidate sources are supported:

- a markdown code fence (```` ``` ```` optionally followed by a language tag),
  whose interior is the primary candidate, and
- the span from the first ``{`` or ``[`` to the last closer of the same kind.

Neither function raises; both return ``None`` when there is nothing to extract.
"""

import logging
import re

from resilient_json.constants import CLOSER_FOR, OPENERS

log = logging.getLogger(__name__)

# Lazy body up to the next fence or the end of the text (truncated responses)
_FENCE_RE = re.compile(r"```[ \t]*[\w+.-]*[ \t]*\r?\n?(.*?)(?:```|\Z)", re.DOTALL)


def extract_fenced_block(text: str) -> str | None:
    """Return the stripped interior of the first fenced code block.

    An opening fence without a closing fence yields everything after it.
    Empty fences are ignored.
    """
    if not text or "```" not in text:
        return None

    match = _FENCE_RE.search(text)
    if match is None:
        return None

    body = match.group(1).strip()
    if not body:
        return None

    log.debug("Extracted %d characters from markdown fence.", len(body))
    return body


def extract_bracket_span(text: str) -> str | None:
    """Return the span from the first opener to its last same-kind closer.

    Whichever of ``{`` and ``[`` appears first wins. When the opener has no
    closer after it, the span runs to the end of the text so that recovery can
    still balance it. This is a best-effort span, not a balanced scan.
    """
    if not text:
        return None

    positions = [(text.find(o), o) for o in OPENERS if o in text]
    if not positions:
        return None

    start, opener = min(positions)
    end = text.rfind(CLOSER_FOR[opener])
    if end < start:
        return text[start:]
    return text[start : end + 1]


def extract_candidate(text: str) -> str | None:
    """Return the most plausible structured-data span in ``text``.

    Prefers the interior of a markdown fence, then the bracket span. Returns
    ``None`` when the text holds neither a fence nor an opening bracket.
    """
    fenced = extract_fenced_block(text)
    if fenced is not None:
        return fenced
    return extract_bracket_span(text)
