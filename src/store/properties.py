"""
Property-file codec for the configuration store.

Reads and writes the flat ``key=value`` text format used by
``java.util.Properties`` so files stay interchangeable with Java tools.

Reading:
- ``#`` / ``!`` comment lines and blank lines are ignored
- A line ending in an odd number of backslashes continues on the next line
- Keys end at the first unescaped ``=``, ``:`` or whitespace
- ``\\t \\n \\r \\f \\uXXXX`` escapes; any other escaped character is literal

Writing:
- Optional ``#<comment>`` header plus a ``#<timestamp>`` line
- Entries sorted by key, special characters backslash-escaped
- Characters outside printable ASCII written as ``\\uXXXX``
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from datetime import datetime
from typing import Final

from src.core.exceptions import ConfigError

# =============================================================================
# Constants
# =============================================================================

# Files are decoded/encoded with this charset; written files are pure ASCII.
FILE_ENCODING: Final[str] = "iso-8859-1"

_WHITESPACE: Final[str] = " \t\f"
_COMMENT_CHARS: Final[str] = "#!"
_SEPARATORS: Final[str] = "=:"
_NEWLINE_RE: Final[re.Pattern[str]] = re.compile(r"\r\n|\r|\n")
_HEX_DIGITS: Final[frozenset[str]] = frozenset("0123456789abcdefABCDEF")

_UNESCAPES: Final[dict[str, str]] = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_ESCAPES: Final[dict[str, str]] = {
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "\\": "\\\\",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
}

TIMESTAMP_FORMAT: Final[str] = "%a %b %d %H:%M:%S %Z %Y"


# =============================================================================
# Reading
# =============================================================================


def _logical_lines(text: str) -> Iterator[str]:
    """Yield logical lines with comments, blanks and continuations resolved."""
    pending: str | None = None
    for natural in _NEWLINE_RE.split(text):
        line = natural.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in _COMMENT_CHARS):
            continue

        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue

        yield (pending or "") + line
        pending = None

    if pending:
        yield pending


def _unescape(raw: str) -> str:
    """Resolve backslash escapes in a key or value."""
    if "\\" not in raw:
        return raw

    out: list[str] = []
    i = 0
    length = len(raw)
    while i < length:
        char = raw[i]
        i += 1
        if char != "\\":
            out.append(char)
            continue
        if i >= length:
            break
        char = raw[i]
        i += 1
        if char == "u":
            digits = raw[i : i + 4]
            if len(digits) != 4 or not _HEX_DIGITS.issuperset(digits):
                raise ConfigError(f"Malformed \\uxxxx encoding: \\u{digits}")
            out.append(chr(int(digits, 16)))
            i += 4
        else:
            out.append(_UNESCAPES.get(char, char))

    result = "".join(out)
    if any("\ud800" <= c <= "\udfff" for c in result):
        # Join \uXXXX surrogate pairs into single code points
        result = result.encode("utf-16-le", "surrogatepass").decode(
            "utf-16-le", "surrogatepass"
        )
    return result


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into its raw (still escaped) key and value."""
    length = len(line)
    key_end = length
    value_start = length
    has_separator = False
    escaped = False

    for index, char in enumerate(line):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in _SEPARATORS:
            key_end, value_start, has_separator = index, index + 1, True
            break
        elif char in _WHITESPACE:
            key_end, value_start = index, index + 1
            break

    while value_start < length:
        char = line[value_start]
        if char in _WHITESPACE:
            value_start += 1
        elif not has_separator and char in _SEPARATORS:
            has_separator = True
            value_start += 1
        else:
            break

    return line[:key_end], line[value_start:]


def parse_properties(text: str) -> dict[str, str]:
    """
    Parse property-file text into a dictionary.

    Later occurrences of a key overwrite earlier ones.

    Args:
        text: Complete property-file content.

    Returns:
        Mapping of unescaped keys to unescaped values.

    Raises:
        ConfigError: If an entry contains a malformed ``\\uXXXX`` escape.
    """
    entries: dict[str, str] = {}
    for line in _logical_lines(text):
        raw_key, raw_value = _split_entry(line)
        entries[_unescape(raw_key)] = _unescape(raw_value)
    return entries


# =============================================================================
# Writing
# =============================================================================


def _unicode_escape(char: str) -> str:
    code = ord(char)
    if code <= 0xFFFF:
        return f"\\u{code:04X}"
    code -= 0x10000
    high = 0xD800 + (code >> 10)
    low = 0xDC00 + (code & 0x3FF)
    return f"\\u{high:04X}\\u{low:04X}"


def _escape(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for index, char in enumerate(text):
        if char == " ":
            out.append("\\ " if is_key or index == 0 else " ")
        elif char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif " " < char <= "~":
            out.append(char)
        else:
            out.append(_unicode_escape(char))
    return "".join(out)


def _comment_lines(comment: str) -> Iterator[str]:
    for line in comment.splitlines() or [""]:
        escaped = "".join(c if " " <= c <= "~" else _unicode_escape(c) for c in line)
        yield f"#{escaped}"


def format_properties(
    entries: Mapping[str, str],
    comment: str | None = None,
    timestamp: datetime | None = None,
) -> str:
    """
    Serialize entries as property-file text.

    Args:
        entries: Keys and values to write.
        comment: Optional header comment (one ``#`` line per comment line).
        timestamp: Time written in the second header line; defaults to now.

    Returns:
        ASCII text with ``\\n`` line endings, entries sorted by key.
    """
    stamp = (timestamp or datetime.now().astimezone()).strftime(TIMESTAMP_FORMAT)

    lines: list[str] = []
    if comment is not None:
        lines.extend(_comment_lines(comment))
    lines.append(f"#{stamp.strip()}")
    for key in sorted(entries):
        lines.append(f"{_escape(key, is_key=True)}={_escape(entries[key], is_key=False)}")
    return "\n".join(lines) + "\n"
