"""Recover a JSON object from free-form model output."""

import json
import re
from typing import Any

from chartqa.inference.exceptions import InferenceParseError

_FENCE_RE = re.compile(r"```(?:json|JSON)?")
_LINE_BREAKS_RE = re.compile(r"[\n\r\t]")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1F\x7F]")


def safe_parse_json(raw: str) -> dict[str, Any]:
    """Parse the outermost JSON object embedded in ``raw``.

    Markdown fences are removed, the candidate is cut from the first ``{`` to
    the last ``}``, and control characters (including literal line breaks)
    are stripped before parsing. Prose before or after the object is ignored.

    Raises:
        InferenceParseError: if no object can be located or decoded.
    """
    cleaned = _FENCE_RE.sub("", raw or "")
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise InferenceParseError("No JSON object found in model response")

    candidate = cleaned[start : end + 1]
    candidate = _LINE_BREAKS_RE.sub(" ", candidate)
    candidate = _CONTROL_CHARS_RE.sub("", candidate)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise InferenceParseError(f"Invalid JSON response: {exc}") from exc

    if not isinstance(parsed, dict):
        raise InferenceParseError("JSON response must be an object")
    return parsed
