import json
import re
from typing import Any, Dict, Optional

CODE_FENCE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return CODE_FENCE.sub("", text).strip()


def extract_first_json_object(text: str) -> Optional[str]:
    """Return the first top-level ``{...}`` span, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

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
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def load_json_object(text: str) -> Dict[str, Any]:
    """Strip fencing, isolate the first JSON object and decode it.

    Raises ``ValueError`` when there is no object or it does not decode.
    """
    candidate = extract_first_json_object(strip_code_fences(text))
    if candidate is None:
        raise ValueError("no JSON object found")
    data = json.loads(candidate)
    if not isinstance(data, dict):
        raise ValueError("top-level JSON value is not an object")
    return data
