"""Parsing of structured (JSON) model output.

Models wrap JSON in markdown fences or add a sentence before and after it.
`parse_json_object` strips the known wrappers and decodes the first balanced
JSON object, raising `UnparseableModelOutputError` when there is none.
"""

import json
import re
from typing import Any

from recipe_cache.errors import UnparseableModelOutputError

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*|\s*```")


def strip_fences(text: str) -> str:
    """Remove markdown code fences around a model response."""
    return _FENCE_RE.sub("", text).strip()


def extract_first_object(text: str) -> str | None:
    """Return the first balanced `{...}` span in text, or None.

    Braces inside JSON strings are ignored.
    """
    start = text.find("{")
    while start != -1:
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
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse a model response into a JSON object.

    Args:
        raw: The raw model response text

    Returns:
        The decoded JSON object

    Raises:
        UnparseableModelOutputError: If no JSON object can be decoded
    """
    if not raw or not raw.strip():
        raise UnparseableModelOutputError("Empty model response", raw=raw or "")

    cleaned = strip_fences(raw)
    candidate = extract_first_object(cleaned)
    if candidate is None:
        raise UnparseableModelOutputError("No JSON object found in model response", raw=raw)

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise UnparseableModelOutputError(f"Invalid JSON in model response: {e}", raw=raw) from e

    if not isinstance(data, dict):
        raise UnparseableModelOutputError("Model response JSON is not an object", raw=raw)
    return data


def clean_string_list(value: Any) -> list[str]:
    """Keep the non-blank strings of a JSON array, stripped."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
