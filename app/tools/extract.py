# app/tools/extract.py
"""
Recover a JSON payload from free-text model output.

The model is asked for bare JSON but routinely wraps it in prose or a
markdown fence, and long answers can be cut off by the output limit.
`extract_json` never raises; it returns its best guess and leaves strict
parsing to the caller (see app.mapper).
"""
from __future__ import annotations
import json
import re

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.I)

# upper bound on opener positions tried in the balanced scan
MAX_CANDIDATES = 64

def _brackets(expect_array: bool) -> tuple[str, str]:
    return ("[", "]") if expect_array else ("{", "}")

def empty_literal(expect_array: bool) -> str:
    return "[]" if expect_array else "{}"

def _balanced_end(text: str, start: int, opener: str, closer: str) -> int | None:
    """Index of the closer that brings the balance opened at `start` back to zero."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        c = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
    return None

def _parses(candidate: str) -> bool:
    try:
        json.loads(candidate)
        return True
    except ValueError:
        return False

def extract_json(text: str | None, expect_array: bool) -> str:
    """
    Return the substring of `text` most likely to be the JSON value asked for.

      1. a fenced block whose interior starts with the expected bracket
      2. the first top-level balanced bracket region (string/escape aware) that
         parses, else the first such region; regions nested inside an earlier
         one are never candidates
      3. when the top-level region never closes: first opener .. last closer,
         else first opener .. end of text
    Falls back to "[]" / "{}" when the expected opener never appears.
    """
    opener, closer = _brackets(expect_array)
    if not text:
        return empty_literal(expect_array)

    fenced = _FENCE.search(text)
    if fenced:
        inner = fenced.group(1).strip()
        if inner.startswith(opener):
            return inner

    first = text.find(opener)
    if first == -1:
        return empty_literal(expect_array)

    # Only openers outside strings and outside an earlier region are candidates,
    # so a nested value is never mistaken for the whole answer.
    fallback = None
    start = None
    pos = 0
    tried = 0
    in_string = escaped = False
    while pos < len(text) and tried < MAX_CANDIDATES:
        c = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c == opener:
            tried += 1
            if start is None:
                start = pos
            end = _balanced_end(text, pos, opener, closer)
            if end is None:
                # unbalanced top-level region, usually a truncated answer
                break
            candidate = text[pos:end + 1]
            if _parses(candidate):
                return candidate
            if fallback is None:
                fallback = candidate
            pos = end
        pos += 1
    if fallback is not None:
        return fallback

    # Unbalanced: first opener .. last closer, else the tail
    if start is None:
        start = first
    last = text.rfind(closer)
    if last > start:
        return text[start:last + 1]
    return text[start:]
