"""Extract JSON objects embedded in free-form model replies."""

import json
import re

from nutriscan.domain.errors import AIContractError

_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def extract_json_object(text: str | None) -> dict[str, object]:
    """Return the first top-level JSON object found in text.

    A fenced ```json block wins when present. Otherwise the text is scanned
    for the first balanced ``{...}`` region; braces inside string literals
    are ignored.
    """
    if not text:
        raise AIContractError("Empty model reply", raw=text)
    fenced = _FENCE.search(text)
    candidate_source = fenced.group(1) if fenced else text
    region = find_balanced_object(candidate_source)
    if region is None and fenced:
        region = find_balanced_object(text)
    if region is None:
        raise AIContractError("No JSON object found in model reply", raw=text)
    try:
        parsed = json.loads(region)
    except json.JSONDecodeError as exc:
        raise AIContractError("Model reply contained invalid JSON", raw=text) from exc
    if not isinstance(parsed, dict):
        raise AIContractError("Model reply JSON is not an object", raw=text)
    return parsed


def find_balanced_object(text: str) -> str | None:
    """Return the first balanced brace region, respecting string quoting."""
    start = text.find("{")
    while start != -1:
        end = _match_closing_brace(text, start)
        if end is not None:
            return text[start : end + 1]
        start = text.find("{", start + 1)
    return None


def _match_closing_brace(text: str, start: int) -> int | None:
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
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None
