"""Cleanup and validation of JSON produced by the text model.

The model is asked for bare JSON but routinely wraps it in markdown fences
or surrounds it with prose. Everything here works on the raw response text
and either returns typed objects or raises.
"""
import json
import logging
import re
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .schemas import Recommendation

logger = logging.getLogger(__name__)

MIN_RECOMMENDATIONS = 3
MAX_RECOMMENDATIONS = 5

_OPEN_FENCE = re.compile(r"^\s*```(?:json|JSON)?\s*")
_CLOSE_FENCE = re.compile(r"\s*```\s*$")
_FENCE_LINE = re.compile(r"(?m)^[ \t]*```(?:json|JSON)?[ \t]*$")

ModelT = TypeVar("ModelT", bound=BaseModel)


class RecommendationParseError(ValueError):
    """Raised when the model output cannot be turned into recommendations."""


def strip_code_fences(text: str) -> str:
    if not text:
        return ""
    cleaned = text.strip()
    cleaned = _OPEN_FENCE.sub("", cleaned)
    cleaned = _CLOSE_FENCE.sub("", cleaned)
    # stray fence lines left in the middle of the payload
    cleaned = _FENCE_LINE.sub("", cleaned)
    return cleaned.strip()


def _extract_balanced(text: str, opener: str, closer: str, label: str) -> str:
    start = text.find(opener)
    if start == -1:
        raise ValueError(f"No JSON {label} found in response")
    depth = 0
    in_string = False
    escape = False
    for index in range(start, len(text)):
        char = text[index]
        if char == '"' and not escape:
            in_string = not in_string
        if in_string and char == "\\" and not escape:
            escape = True
            continue
        escape = False
        if in_string:
            continue
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    raise ValueError(f"Incomplete JSON {label} in response")


def extract_json_array(raw_text: str) -> str:
    if not raw_text:
        raise ValueError("Empty response from model")
    return _extract_balanced(strip_code_fences(raw_text), "[", "]", "array")


def extract_json_object(raw_text: str) -> str:
    if not raw_text:
        raise ValueError("Empty response from model")
    return _extract_balanced(strip_code_fences(raw_text), "{", "}", "object")


def loads_lenient(raw_text: str, expect: type = list) -> Any:
    """Parse model output, falling back to the first balanced JSON block.

    ``expect`` picks which block (array or object) to look for when the
    cleaned text is not valid JSON on its own.
    """
    cleaned = strip_code_fences(raw_text)
    if not cleaned:
        raise ValueError("Empty response from model")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    if expect is dict:
        block = extract_json_object(cleaned)
    else:
        try:
            block = extract_json_array(cleaned)
        except ValueError:
            block = extract_json_object(cleaned)
    return json.loads(block)


def validate_items(items: List[Any], model: Type[ModelT], label: str = "item") -> List[ModelT]:
    valid: List[ModelT] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Dropping %s %d: expected an object, got %s", label, index, type(item).__name__)
            continue
        try:
            valid.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Dropping %s %d: %s", label, index, exc.errors()[:3])
    return valid


def parse_recommendations(
    raw_text: str,
    min_items: int = MIN_RECOMMENDATIONS,
    max_items: int = MAX_RECOMMENDATIONS,
) -> List[Recommendation]:
    if not raw_text or not raw_text.strip():
        raise RecommendationParseError("Empty response from model")

    try:
        data = loads_lenient(raw_text, expect=list)
    except (ValueError, json.JSONDecodeError) as exc:
        logger.error("JSON parse error: %s", exc)
        logger.error("Problematic text: %s", raw_text)
        raise RecommendationParseError("Failed to parse recommendations JSON. Please try again.") from exc

    if isinstance(data, dict) and isinstance(data.get("recommendations"), list):
        data = data["recommendations"]

    if not isinstance(data, list) or not data:
        raise RecommendationParseError("Invalid recommendations format received")

    recommendations = validate_items(data, Recommendation, label="recommendation")
    if len(recommendations) < min_items:
        raise RecommendationParseError(
            f"Expected at least {min_items} recommendations but received {len(recommendations)} usable ones"
        )
    if len(recommendations) > max_items:
        logger.info("Trimming %d recommendations to %d", len(recommendations), max_items)
        recommendations = recommendations[:max_items]
    return recommendations
