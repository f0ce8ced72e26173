"""String-literal-aware scanning helpers.

The repair rules are mostly regular expressions over raw text. The two rewrites
that would do real damage when applied inside a string value, comment stripping
and bracket balancing, go through the scanner here instead so that content
such as ``"http://example.com"``, ``'src/**/*.ts'`` or ``"a {b}"`` is left
untouched.

Double-quoted strings are always tracked. A single quote only opens a string
where a JSON value or key can start (after ``{``, ``[``, ``,``, ``:`` or at the
very beginning), so apostrophes in prose such as ``Here's`` are not mistaken
for literals.
"""

from dataclasses import dataclass

from resilient_json.constants import CLOSER_FOR, CLOSERS, OPENER_FOR, OPENERS

# Last significant character before a single-quoted literal can start
_SINGLE_QUOTE_CONTEXT = frozenset(("", "{", "[", ",", ":"))


def _opens_string(ch: str, prev: str) -> bool:
    return ch == '"' or (ch == "'" and prev in _SINGLE_QUOTE_CONTEXT)


@dataclass(frozen=True, slots=True)
class StructureScan:
    """Bracket state at the end of a text.

    Attributes:
        unclosed: Openers still waiting for a closer, outermost first.
        quote: The delimiter of an unterminated string, or ``""``.
        dangling_escape: True when the text ends right after a backslash
            inside a string.
        stray_closers: Closers that had no opener to match.
    """

    unclosed: tuple[str, ...]
    quote: str
    dangling_escape: bool
    stray_closers: int

    @property
    def in_string(self) -> bool:
        """Whether the text ends inside an unterminated string"""  # noqa: D415
        return bool(self.quote)

    @property
    def is_balanced(self) -> bool:
        """Whether nothing needs to be appended to close the text"""  # noqa: D415
        return not self.unclosed and not self.quote

    def closing_suffix(self) -> str:
        """Characters that close the string and every open bracket, innermost first."""
        suffix = ""
        if self.quote:
            suffix = ("\\" if self.dangling_escape else "") + self.quote
        return suffix + "".join(CLOSER_FOR[o] for o in reversed(self.unclosed))


def strip_comments(text: str) -> str:
    """Remove ``//`` line comments and ``/* */`` block comments outside strings.

    The newline ending a line comment is kept. An unterminated block comment
    runs to the end of the text.
    """
    if "/" not in text:
        return text

    out: list[str] = []
    i = 0
    n = len(text)
    quote = ""
    escaped = False
    prev = ""

    while i < n:
        ch = text[i]

        if quote:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = ""
                prev = ch
            i += 1
            continue

        if _opens_string(ch, prev):
            quote = ch
        elif ch == "/" and i + 1 < n:
            nxt = text[i + 1]
            if nxt == "/":
                end = text.find("\n", i + 2)
                i = n if end == -1 else end
                continue
            if nxt == "*":
                end = text.find("*/", i + 2)
                i = n if end == -1 else end + 2
                continue

        out.append(ch)
        if not ch.isspace():
            prev = ch
        i += 1

    return "".join(out)


def scan_structure(text: str) -> StructureScan:
    """Walk ``text`` and report which brackets and strings are left open.

    A closer whose opener is buried under mismatched openers closes everything
    above it as well; a closer with no opener at all is counted as stray.
    """
    stack: list[str] = []
    stray = 0
    quote = ""
    escaped = False
    prev = ""

    for ch in text:
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = ""
                prev = ch
            continue

        if _opens_string(ch, prev):
            quote = ch
        elif ch in OPENERS:
            stack.append(ch)
        elif ch in CLOSERS:
            opener = OPENER_FOR[ch]
            if stack and stack[-1] == opener:
                stack.pop()
            elif opener in stack:
                while stack.pop() != opener:
                    pass
            else:
                stray += 1
        if not ch.isspace():
            prev = ch

    return StructureScan(
        unclosed=tuple(stack),
        quote=quote,
        dangling_escape=bool(quote) and escaped,
        stray_closers=stray,
    )
