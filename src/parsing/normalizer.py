# src/parsing/normalizer.py - v1
"""Clean raw model output into candidate JSON text.

Models sometimes wrap JSON in markdown fences and, for long multi-line
prompt strings, emit string literals with raw line breaks and unescaped
quotes. ``clean`` removes the fences and rebuilds the affected string arrays
with a small character-level state machine. The result of ``clean`` is a
fixed point: cleaning it again changes nothing.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

logger = logging.getLogger(__name__)

FENCE = "```"
_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_+\-]*[ \t]*\r?\n?")

_DECODE_ESCAPES: dict[str, str] = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
_ENCODE_ESCAPES: dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


class ResponseParseError(ValueError):
    """Cleaned model output is still not valid JSON."""

    def __init__(self, message: str, snippet: str):
        self.snippet = snippet
        super().__init__(f"{message} (near: {snippet!r})")


def strip_fences(text: str) -> str:
    """Trim whitespace and remove surrounding markdown code fences.

    Repeats until nothing changes, so nested wrappers are removed too.
    """
    text = text.strip()
    while True:
        before = text
        if text.startswith(FENCE):
            text = _FENCE_OPEN.sub("", text, count=1).strip()
        if text.endswith(FENCE):
            text = text[: -len(FENCE)].strip()
        if text == before:
            return text


def _is_hex4(value: str) -> bool:
    return len(value) == 4 and all(c in "0123456789abcdefABCDEF" for c in value)


def _closes_string(text: str, pos: int) -> bool:
    """Whether a quote just before ``pos`` terminates the current element.

    Only a quote followed by ``]``, or by ``,`` and then another element or
    the end of the array, counts as a terminator; any other quote is
    literal content the model forgot to escape.
    """
    n = len(text)
    while pos < n and text[pos].isspace():
        pos += 1
    if pos >= n or text[pos] == "]":
        return True
    if text[pos] != ",":
        return False
    pos += 1
    while pos < n and text[pos].isspace():
        pos += 1
    return pos >= n or text[pos] in '"]'


def _join_surrogates(value: str) -> str:
    try:
        return value.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeDecodeError:
        return value.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def scan_string_array(text: str, start: int) -> tuple[list[str], int] | None:
    """Read the string elements of an array whose ``[`` precedes ``start``.

    Walks character by character tracking two states: inside a quoted
    string, and escape pending. Escape sequences are decoded, raw control
    characters are kept verbatim.

    Returns:
        (decoded elements, index of the closing ``]``), or None when the
        array holds anything other than strings or never terminates.
    """
    elements: list[str] = []
    buf: list[str] = []
    in_string = False
    escape_pending = False
    i = start
    n = len(text)

    while i < n:
        ch = text[i]
        if in_string:
            if escape_pending:
                escape_pending = False
                if ch == "u" and _is_hex4(text[i + 1 : i + 5]):
                    buf.append(chr(int(text[i + 1 : i + 5], 16)))
                    i += 5
                    continue
                if ch in _DECODE_ESCAPES:
                    buf.append(_DECODE_ESCAPES[ch])
                else:
                    # Unknown escape: keep the backslash as content.
                    buf.append("\\")
                    buf.append(ch)
            elif ch == "\\":
                escape_pending = True
            elif ch == '"' and _closes_string(text, i + 1):
                elements.append(_join_surrogates("".join(buf)))
                buf = []
                in_string = False
            else:
                buf.append(ch)
        elif ch == '"':
            in_string = True
        elif ch == "]":
            return elements, i
        elif ch != "," and not ch.isspace():
            return None
        i += 1

    return None


def encode_string(value: str) -> str:
    """Serialize a string as a JSON literal with standard escaping."""
    out: list[str] = []
    for ch in value:
        if ch in _ENCODE_ESCAPES:
            out.append(_ENCODE_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def repair_string_array(text: str, key: str) -> str:
    """Re-escape every element of each ``"key": [ ... ]`` string array."""
    pattern = re.compile(r'"' + re.escape(key) + r'"\s*:\s*\[')
    pos = 0
    while True:
        match = pattern.search(text, pos)
        if match is None:
            return text
        scanned = scan_string_array(text, match.end())
        if scanned is None:
            logger.debug("Array '%s' is not a plain string array; left as is", key)
            pos = match.end()
            continue
        elements, close_idx = scanned
        rebuilt = ",".join(encode_string(e) for e in elements)
        text = text[: match.end()] + rebuilt + text[close_idx:]
        pos = match.end() + len(rebuilt) + 1


def clean(raw_text: str, string_array_keys: Iterable[str] = ()) -> str:
    """Turn raw model output into candidate JSON text.

    Args:
        raw_text: Text exactly as returned by the model.
        string_array_keys: Keys whose values are arrays of free-form
            (possibly multi-line) strings to rebuild.

    Returns:
        Candidate JSON text; not parsed here.
    """
    text = strip_fences(raw_text)
    for key in string_array_keys:
        text = repair_string_array(text, key)
    return text


def parse_json(text: str) -> Any:
    """Parse cleaned text.

    Raises:
        ResponseParseError: The text is not valid JSON.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        start = max(e.pos - 40, 0)
        raise ResponseParseError(
            f"Model output is not valid JSON: {e.msg} at line {e.lineno} column {e.colno}",
            text[start : e.pos + 40],
        ) from e
