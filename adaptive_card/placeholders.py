"""
adaptive_card/placeholders.py

Scanner for the single-brace placeholder syntaxes:

    @{path}  @{path||default}   binding placeholders
    ${expr}                      expression placeholders

Single source of truth for where a token starts and ends, shared by the
template engine (whole-string detection) and the expression module
(interpolation parsing).
"""

import json
from typing import Any, List, Optional, Tuple

BINDING_MARKER = "@"
EXPRESSION_MARKER = "$"

# Sentinel for "no ||default given" (distinct from a null default).
NO_DEFAULT = object()


def find_token_end(text: str, open_index: int) -> int:
    """
    Index of the '}' closing the '{' at open_index, or -1.

    Quoted strings (single or double, backslash escapes) are skipped so
    ${x == "}" ? 1 : 2} scans correctly; nested braces are balanced.
    """
    depth = 0
    quote = None
    i = open_index
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def whole_token(text: str, marker: str) -> Optional[str]:
    """
    If the trimmed text is exactly one marker{...} token, return its inner
    content (stripped); otherwise None.
    """
    stripped = text.strip()
    if not stripped.startswith(marker + "{"):
        return None
    end = find_token_end(stripped, len(marker))
    if end != len(stripped) - 1:
        return None
    return stripped[len(marker) + 1:end].strip()


Segment = Tuple[str, str, int]  # (kind, content, offset) with kind in {"text", "token"}


def split_segments(text: str, marker: str) -> List[Segment]:
    """
    Split text into literal runs and marker{...} tokens, in order.

    An opening marker without a matching '}' is kept as literal text.
    Token content is returned unstripped; offsets point at the marker.
    """
    segments: List[Segment] = []
    opener = marker + "{"
    cursor = 0
    buffer_start = 0
    while True:
        pos = text.find(opener, cursor)
        if pos < 0:
            break
        end = find_token_end(text, pos + len(marker))
        if end < 0:
            cursor = pos + len(opener)
            continue
        if pos > buffer_start:
            segments.append(("text", text[buffer_start:pos], buffer_start))
        segments.append(("token", text[pos + len(opener):end], pos))
        cursor = end + 1
        buffer_start = cursor
    if buffer_start < len(text):
        segments.append(("text", text[buffer_start:], buffer_start))
    return segments


def has_token(text: str, marker: str) -> bool:
    return any(kind == "token" for kind, _, _ in split_segments(text, marker))


def parse_default_literal(raw: str) -> Any:
    """
    Parse the text after '||' in a binding placeholder.

    JSON literals ("Guest", 3, true, null, {...}) keep their type; anything
    else is taken as a bare string.
    """
    trimmed = raw.strip()
    try:
        return json.loads(trimmed)
    except ValueError:
        return trimmed


def parse_binding(raw: str) -> Tuple[str, Any]:
    """
    Split "path||default" into (path, default). default is NO_DEFAULT when
    no '||' is present or the text after it is empty.
    """
    path, sep, rest = raw.partition("||")
    if not sep or not rest.strip():
        return path.strip(), NO_DEFAULT
    return path.strip(), parse_default_literal(rest)
