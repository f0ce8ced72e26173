"""Syntax-normalizing rewrites for near-JSON text.

`repair` applies a fixed, ordered tuple of `RepairRule`s. Every rule is a pure
``str -> str`` function and is idempotent, so `repair` is too. The order is
significant:

1. ``strip_bom``
2. ``strip_comments``
3. ``strip_non_printable``
4. ``normalize_quotes``
5. ``insert_separators`` (after quotes, so converted tokens are seen)
6. ``strip_trailing_commas`` (last, so no inserted comma survives before a closer)

Quote and separator rules are regex based and do not tokenize, so a string
value that itself looks like broken JSON can be altered. Comment stripping is
string aware (see `scanner`).
"""

from collections.abc import Callable
from dataclasses import dataclass
import re

from resilient_json.constants import BYTE_ORDER_MARK

from .scanner import strip_comments


@dataclass(frozen=True, slots=True)
class RepairRule:
    """A named text rewrite applied by `repair`."""

    name: str
    apply: Callable[[str], str]


# --- Quote normalization ---

# 'key':  (the quoted token may not contain a double quote, which keeps the
# apostrophe in "it's" from pairing with a later key)
_SINGLE_QUOTED_KEY_RE = re.compile(r"(?<=[{,\s])'([^'\"\n]*)'(\s*):")
# : 'value'  followed by a delimiter
_SINGLE_QUOTED_VALUE_RE = re.compile(r"(:\s*)'([^'\n]*)'(?=\s*(?:[,}\]]|$))", re.M)
# ['a', 'b']
_SINGLE_QUOTED_ITEM_RE = re.compile(r"(?<=[\[,])(\s*)'([^'\n]*)'(?=\s*[,\]])")
_UNESCAPED_DOUBLE_QUOTE_RE = re.compile(r'(?<!\\)"')

# --- Separator insertion ---

_OBJECT_THEN_OPENER_RE = re.compile(r"\}(\s*)(?=[{\[])")
_ARRAY_THEN_OBJECT_RE = re.compile(r"\](\s*)(?=\{)")
# Newline runs use [ \t\r]*\n so the two whitespace groups cannot trade characters
_STRING_NEWLINE_STRING_RE = re.compile(r'"([ \t\r]*\n\s*)"')
_SCALAR_NEWLINE_STRING_RE = re.compile(r'(\d|\btrue|\bfalse|\bnull)([ \t\r]*\n\s*)"')
_CLOSER_NEWLINE_STRING_RE = re.compile(r'([}\]])([ \t\r]*\n\s*)"')

_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_bom(text: str) -> str:
    """Drop a leading byte-order mark."""
    return text.removeprefix(BYTE_ORDER_MARK)


def strip_non_printable(text: str) -> str:
    """Drop control and format characters, keeping whitespace and printable text.

    This is narrower than a printable-ASCII filter: printable non-ASCII text
    (``é``, ``✓``, CJK, emoji) survives, and only characters such as NUL,
    U+200B or U+FEFF that are neither printable nor whitespace are removed.
    """
    if text.isascii() and text.isprintable():
        return text
    return "".join(ch for ch in text if ch.isprintable() or ch.isspace())


def _to_double_quoted(content: str) -> str:
    return '"' + _UNESCAPED_DOUBLE_QUOTE_RE.sub(r'\\"', content) + '"'


def normalize_quotes(text: str) -> str:
    """Convert single-quoted keys, values and array items to double quotes."""
    if "'" not in text:
        return text
    text = _SINGLE_QUOTED_KEY_RE.sub(
        lambda m: _to_double_quoted(m.group(1)) + m.group(2) + ":", text
    )
    text = _SINGLE_QUOTED_VALUE_RE.sub(
        lambda m: m.group(1) + _to_double_quoted(m.group(2)), text
    )
    return _SINGLE_QUOTED_ITEM_RE.sub(
        lambda m: m.group(1) + _to_double_quoted(m.group(2)), text
    )


def insert_separators(text: str) -> str:
    """Insert commas between adjacent values that are missing one."""
    text = _OBJECT_THEN_OPENER_RE.sub(r"},\1", text)
    text = _ARRAY_THEN_OBJECT_RE.sub(r"],\1", text)
    text = _STRING_NEWLINE_STRING_RE.sub(r'",\1"', text)
    text = _SCALAR_NEWLINE_STRING_RE.sub(r'\1,\2"', text)
    return _CLOSER_NEWLINE_STRING_RE.sub(r'\1,\2"', text)


def strip_trailing_commas(text: str) -> str:
    """Remove a comma that directly precedes ``}`` or ``]``."""
    return _TRAILING_COMMA_RE.sub(r"\1", text)


DEFAULT_REPAIR_RULES: tuple[RepairRule, ...] = (
    RepairRule("strip_bom", strip_bom),
    RepairRule("strip_comments", strip_comments),
    RepairRule("strip_non_printable", strip_non_printable),
    RepairRule("normalize_quotes", normalize_quotes),
    RepairRule("insert_separators", insert_separators),
    RepairRule("strip_trailing_commas", strip_trailing_commas),
)


def repair(blob: str, rules: tuple[RepairRule, ...] = DEFAULT_REPAIR_RULES) -> str:
    """Return a normalized copy of ``blob``. Never raises for string input."""
    for rule in rules:
        blob = rule.apply(blob)
    return blob
