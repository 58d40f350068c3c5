"""Extract structured JSON payloads from free-text model output."""

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

# Control characters other than \t, \n and \r
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_decoder = json.JSONDecoder(strict=False)


class InvalidResponseFormatError(ValueError):
    """Raised when model output holds no parseable JSON payload."""

    def __init__(self, message: str = "Invalid response format"):
        super().__init__(message)


def sanitize_model_text(raw_output: str) -> str:
    """Strip control characters, markdown code fences and surrounding whitespace."""
    cleaned = _CONTROL_CHARS.sub("", raw_output).strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _scan(text: str, opener: str, expected: type) -> Any:
    """Decode the first value starting at an ``opener`` character."""
    start = text.find(opener)
    while start != -1:
        try:
            value, _end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find(opener, start + 1)
            continue
        if isinstance(value, expected):
            return value
        start = text.find(opener, start + 1)
    return None


def extract_json_object(raw_output: str) -> dict:
    """
    Return the first top-level JSON object in model output.

    The greedy block from the first ``{`` to the last ``}`` is tried first, which
    discards stray commentary around a single object. When that block does not
    parse (for example a brace inside prose before the real object), each ``{``
    is tried in turn with a real decoder.

    Raises:
        InvalidResponseFormatError: If no JSON object can be decoded
    """
    text = sanitize_model_text(raw_output)

    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last < first:
        raise InvalidResponseFormatError()

    try:
        value = _decoder.decode(text[first : last + 1])
        if isinstance(value, dict):
            return value
    except json.JSONDecodeError:
        pass

    value = _scan(text, "{", dict)
    if value is None:
        raise InvalidResponseFormatError()
    return value


def extract_json_array(raw_output: str) -> list:
    """Return the first top-level JSON array in model output."""
    text = sanitize_model_text(raw_output)

    first = text.find("[")
    last = text.rfind("]")
    if first == -1 or last < first:
        raise InvalidResponseFormatError()

    try:
        value = _decoder.decode(text[first : last + 1])
        if isinstance(value, list):
            return value
    except json.JSONDecodeError:
        pass

    value = _scan(text, "[", list)
    if value is None:
        raise InvalidResponseFormatError()
    return value


def parse_model_json(raw_output: str, model: type[T]) -> T:
    """
    Extract the JSON object from model output and validate it.

    Raises:
        InvalidResponseFormatError: If no object is found or it fails validation
    """
    payload = extract_json_object(raw_output)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidResponseFormatError() from e
