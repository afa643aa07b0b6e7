"""Tolerant JSON parsing for LLM output.

Models wrap JSON in markdown fences and run out of tokens mid-array. The
parser strips the wrapping first, then tries a short fixed list of local
repairs: close whatever is still open, then trim back to the last complete
element and close again. All of it runs in-process; no model calls here.
"""

import json
import logging
import re
from typing import Any, Iterator

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*")

# Tried in order after the computed closing sequence.
FALLBACK_CLOSERS = ('"', "}", "]", '"}', '"]', "]}", '"}}', '"}]')


class JSONRepairError(ValueError):
    pass


def strip_wrapping(text: str) -> str:
    """Remove markdown code fences, BOM and surrounding whitespace."""
    cleaned = text.lstrip("\ufeff")
    cleaned = _FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def closing_sequence(text: str) -> str:
    """Delimiters needed to close every string, object and array left open in ``text``."""
    stack = []
    in_string = False
    escaped = False
    for ch in text:
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
        elif ch == "{":
            stack.append("}")
        elif ch == "[":
            stack.append("]")
        elif ch in "}]" and stack:
            stack.pop()
    return ('"' if in_string else "") + "".join(reversed(stack))


def _repair_candidates(cleaned: str) -> Iterator[str]:
    if cleaned.endswith("\\"):
        cleaned = cleaned[:-1]
    yield cleaned + closing_sequence(cleaned)
    for closer in FALLBACK_CLOSERS:
        yield cleaned + closer

    # Trim back to the last complete element and re-close
    cut = max(cleaned.rfind(","), cleaned.rfind("}"), cleaned.rfind("]"))
    if cut > 0:
        salvage = cleaned[:cut + 1].rstrip()
        if salvage.endswith(","):
            salvage = salvage[:-1].rstrip()
        yield salvage + closing_sequence(salvage)
        for closer in ("",) + FALLBACK_CLOSERS:
            yield salvage + closer


def safe_parse_json(text: Any) -> Any:
    """Parse model output as JSON, repairing truncation where possible.

    Raises ``JSONRepairError`` carrying the original parser message when no
    local repair yields a JSON object or array.
    """
    if text is None:
        raise JSONRepairError("Empty response")
    cleaned = strip_wrapping(str(text))
    if not cleaned:
        raise JSONRepairError("Empty response")

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        original_error = exc

    logger.warning("JSON parse failed (%s); attempting local repair", original_error)
    for candidate in _repair_candidates(cleaned):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        # A repaired bare scalar is never what the model meant to send
        if isinstance(value, (dict, list)):
            return value

    raise JSONRepairError(str(original_error))
