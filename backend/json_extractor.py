"""
Best-effort isolation of a JSON value inside free-form model output.

Model replies are supposed to be a bare JSON array or object, but arrive
wrapped in markdown fences, preceded by commentary, or cut off mid-structure
when the output token limit is hit. The chain below tries, in order:

  1. balanced-bracket span starting at the first opening bracket
  2. (arrays only) every complete top-level {...} before the truncation point
  3. regex match
  4. the whole cleaned text

Nothing here raises on malformed input; failure is reported as None.
"""

import json
import re
from typing import Any, NamedTuple

ARRAY = "array"
OBJECT = "object"

_OPENERS = {ARRAY: "[", OBJECT: "{"}
_CLOSERS = {"[": "]", "{": "}"}

_JSON_FENCE_RE = re.compile(r"```json\s*", re.IGNORECASE)
_BARE_FENCE_RE = re.compile(r"```\s*")
_REGEX_FALLBACKS = {
    ARRAY: re.compile(r"\[[\s\S]*?\]"),
    OBJECT: re.compile(r"\{[\s\S]*\}"),
}

_UNPARSEABLE = object()


class Extraction(NamedTuple):
    value: Any
    strategy: str


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markers anywhere in the text and trim it."""
    if not text:
        return ""
    cleaned = _JSON_FENCE_RE.sub("", text)
    cleaned = _BARE_FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def find_balanced_span(text: str, start: int) -> str | None:
    """
    Return text[start:end] where text[start] is '[' or '{' and end is just past
    its matching closer. Brackets inside string literals are ignored.
    Returns None when the structure never closes.
    """
    if start < 0 or start >= len(text) or text[start] not in _CLOSERS:
        return None
    opener = text[start]
    closer = _CLOSERS[opener]

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def recover_complete_objects(text: str, start: int = 0) -> list[str]:
    """
    Collect every fully closed top-level {...} in text[start:].

    Used on truncated arrays: a trailing object that never closes is dropped.
    """
    objects = []
    depth = 0
    in_string = False
    escaped = False
    object_start = None

    for index in range(max(start, 0), len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            if depth == 0:
                object_start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                objects.append(text[object_start:index + 1])
                object_start = None
    return objects


def _locate_candidate(cleaned: str, shape: str) -> tuple[str | None, str | None]:
    start = cleaned.find(_OPENERS[shape])
    if start != -1:
        span = find_balanced_span(cleaned, start)
        if span is not None:
            return span, "balanced"
        if shape == ARRAY:
            objects = recover_complete_objects(cleaned, start + 1)
            if objects:
                return "[" + ",".join(objects) + "]", "partial_objects"

    match = _REGEX_FALLBACKS[shape].search(cleaned)
    if match:
        return match.group(0), "regex"
    return None, None


def _try_parse(text: str):
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return _UNPARSEABLE


def extract_json_text(text: str, shape: str = ARRAY) -> str | None:
    """Return the most plausible JSON substring of the given shape, or None."""
    if shape not in _OPENERS:
        raise ValueError(f"shape must be '{ARRAY}' or '{OBJECT}', got {shape!r}")
    if not isinstance(text, str):
        return None
    candidate, _ = _locate_candidate(strip_code_fences(text), shape)
    return candidate


def extract_json(text: str, shape: str = ARRAY) -> Extraction | None:
    """
    Parse the JSON value embedded in text.

    Returns Extraction(value, strategy) where strategy names the step that
    produced it ("balanced", "partial_objects", "regex", "whole_text"), or None
    when nothing parses.
    """
    if shape not in _OPENERS:
        raise ValueError(f"shape must be '{ARRAY}' or '{OBJECT}', got {shape!r}")
    if not isinstance(text, str) or not text.strip():
        return None

    cleaned = strip_code_fences(text)
    candidate, strategy = _locate_candidate(cleaned, shape)
    if candidate is not None:
        value = _try_parse(candidate)
        if value is not _UNPARSEABLE:
            return Extraction(value, strategy)

    value = _try_parse(cleaned)
    if value is not _UNPARSEABLE:
        return Extraction(value, "whole_text")
    return None
