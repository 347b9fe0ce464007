"""
Best-effort recovery of JSON from model output.

Model responses are asked for ``application/json`` but routinely arrive
wrapped in code fences, with chatter around the object, or cut off mid-object
when the output token limit is hit. ``repair_json`` walks a fixed ladder of
increasingly lossy strategies and returns the first structure that parses.
"""
import json
import re
from typing import Any, Optional

from ..core.logging import logger

MAX_TRUNCATED_LINES = 20

_OPEN_FENCE = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_CLOSE_FENCE = re.compile(r"\n?\s*```\s*$")
# `, "key` / `, "key": "partial value` left behind by a cut-off response
_DANGLING_MEMBER = re.compile(r',\s*"[^"]*"?\s*:?\s*(?:"[^"]*)?$')
_TRAILING_COMMA = re.compile(r",\s*$")
_OVERALL_SCORE = re.compile(r'"overall_score"\s*:\s*(\d+)')

_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    text = _OPEN_FENCE.sub("", text.strip())
    return _CLOSE_FENCE.sub("", text).strip()


def _loads(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _outer_object(text: str) -> Optional[str]:
    """Substring from the first '{' to the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def close_open_structures(fragment: str) -> str:
    """
    Append whatever closes the fragment's unterminated string, arrays and objects.

    Tracks nesting order, so ``{"a": [1, {"b": 2`` becomes
    ``{"a": [1, {"b": 2}]}``. Brackets inside string literals are ignored.
    """
    stack = []
    in_string = False
    escaped = False

    for ch in fragment:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in "}]" and stack and stack[-1] == ch:
            stack.pop()

    if escaped:
        fragment = fragment[:-1]
    suffix = '"' if in_string else ""
    return fragment + suffix + "".join(reversed(stack))


def _trim_dangling(fragment: str) -> str:
    fragment = _DANGLING_MEMBER.sub("", fragment)
    return _TRAILING_COMMA.sub("", fragment)


def repair_json(text: Optional[str]) -> Optional[Any]:
    """
    Parse model output into JSON, repairing it where possible.

    Args:
        text: Raw model output

    Returns:
        The parsed value; ``{"overall_score": n, "_partial": True}`` when only
        the score survives; None when nothing usable can be recovered
    """
    if not text:
        return None

    cleaned = strip_code_fences(text)
    parsed = _loads(cleaned)
    if parsed is not None:
        return parsed

    outer = _outer_object(cleaned)
    if outer is not None:
        parsed = _loads(outer)
        if parsed is not None:
            return parsed

    repaired = _trim_dangling(cleaned)
    parsed = _loads(close_open_structures(repaired))
    if parsed is not None:
        logger.info("Repaired truncated JSON response")
        return parsed

    lines = repaired.split("\n")
    for cut in range(1, min(len(lines), MAX_TRUNCATED_LINES)):
        candidate = _TRAILING_COMMA.sub("", "\n".join(lines[:-cut]))
        parsed = _loads(close_open_structures(candidate))
        if parsed is not None:
            logger.info(f"Repaired truncated JSON response after dropping {cut} line(s)")
            return parsed

    match = _OVERALL_SCORE.search(text)
    if match:
        logger.warning("Recovered only overall_score from malformed JSON response")
        return {"overall_score": int(match.group(1)), "_partial": True}

    return None
