"""
Recovery of a JSON object from free-form model output.

Models are asked to answer with JSON only, but replies often wrap the object
in prose, code fences or trailing commas. Each strategy below is a pure
function from the raw text to a parsed object (or None); `recover_json`
tries them in order and returns the first success.
"""
import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.errors import ContentParseError
from app.logging_config import logger


Strategy = Callable[[str], Optional[Dict[str, Any]]]

# Object-like spans with at most one level of nested braces
OBJECT_PATTERN = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")

REQUIRED_KEYS = ("title", "problem", "solution")


def normalize(candidate: str) -> str:
    """Collapse whitespace and strip trailing commas before } or ]"""
    candidate = re.sub(r"\n\s*", " ", candidate)
    candidate = re.sub(r"\s+", " ", candidate)
    candidate = re.sub(r",\s*}", "}", candidate)
    candidate = re.sub(r",\s*]", "]", candidate)
    return candidate.strip()


def normalize_aggressive(candidate: str) -> str:
    """normalize() plus tightening around brackets and key separators"""
    candidate = re.sub(r"[\r\n]+", " ", candidate)
    candidate = re.sub(r"\s+", " ", candidate)
    candidate = re.sub(r",\s*([}\]])", r"\1", candidate)
    candidate = re.sub(r"([{\[])\s+", r"\1", candidate)
    candidate = re.sub(r"\s+([}\]])", r"\1", candidate)
    candidate = re.sub(r'"\s*:\s*', '":', candidate)
    return candidate.strip()


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(candidate)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _has_required_keys(parsed: Dict[str, Any]) -> bool:
    return all(isinstance(parsed.get(key), str) and parsed[key].strip() for key in REQUIRED_KEYS)


def first_balanced_object(text: str) -> Optional[str]:
    """
    Return the first balanced top-level {...} span of the text.

    Args:
        text: Arbitrary text

    Returns:
        The span including its braces, or None if no span closes
    """
    depth = 0
    start = -1
    for index, char in enumerate(text):
        if char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def brace_counting(text: str) -> Optional[Dict[str, Any]]:
    span = first_balanced_object(text)
    if span is None:
        return None
    return _loads_object(normalize(span))


def pattern_extraction(text: str) -> Optional[Dict[str, Any]]:
    matches = sorted(OBJECT_PATTERN.findall(text), key=len, reverse=True)
    for match in matches:
        parsed = _loads_object(normalize(match))
        if parsed is not None and _has_required_keys(parsed):
            return parsed
    return None


def outer_bracket_slice(text: str) -> Optional[Dict[str, Any]]:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or first >= last:
        return None
    return _loads_object(normalize_aggressive(text[first:last + 1]))


STRATEGIES: List[Tuple[str, Strategy]] = [
    ("brace_counting", brace_counting),
    ("pattern_extraction", pattern_extraction),
    ("outer_bracket_slice", outer_bracket_slice),
]


def recover_json(text: str, strategies: Optional[List[Tuple[str, Strategy]]] = None) -> Dict[str, Any]:
    """
    Parse the JSON object contained in a model reply

    Args:
        text: Raw model output
        strategies: Ordered (name, strategy) pairs, defaults to STRATEGIES

    Returns:
        The parsed object, unmodified

    Raises:
        ContentParseError: If no strategy yields an object
    """
    cleaned = (text or "").strip().replace("\r\n", "\n").replace("\r", "\n")

    for name, strategy in strategies or STRATEGIES:
        parsed = strategy(cleaned)
        if parsed is not None:
            logger.debug(f"Recovered JSON from model output using {name}")
            return parsed
        logger.debug(f"JSON recovery strategy {name} found nothing")

    logger.error(
        "All JSON recovery strategies failed",
        extra={"response_preview": cleaned[:500]}
    )
    raise ContentParseError()
