"""Locate JSON objects embedded in free-form model output."""

import json
import math
import re
from typing import Any, Dict, List, Optional

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    return _FENCE_CLOSE.sub("", cleaned)


def iter_json_object_candidates(text: str) -> List[str]:
    """Extract balanced {...} substrings from arbitrary text.

    Models often wrap JSON in prose or markdown fences, and sometimes emit
    more than one object. Braces inside string literals are ignored.
    """
    cleaned = _strip_fences(text)

    candidates: List[str] = []
    in_str = False
    escaped = False
    depth = 0
    start_idx: Optional[int] = None

    for i, ch in enumerate(cleaned):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "\"":
                in_str = False
            continue

        if ch == "\"":
            # Quotes only open strings inside an object.
            if depth > 0:
                in_str = True
            continue

        if ch == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start_idx is not None:
                candidates.append(cleaned[start_idx:i + 1])
                start_idx = None

    return candidates


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first embedded JSON object that parses, or None."""
    for candidate in iter_json_object_candidates(text):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_THOUSANDS = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")


def strip_thousands(text: str) -> str:
    """Drop thousands separators: "1,200 kcal" -> "1200 kcal"."""
    return _THOUSANDS.sub("", text)


def coerce_number(value: Any) -> Optional[float]:
    """Finite numbers pass through; numeric strings like "1,200 kcal" are parsed.

    json.loads accepts NaN and Infinity, so non-finite values count as missing.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = _NUMBER.search(strip_thousands(value))
        if not match:
            return None
        value = match.group()
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None
