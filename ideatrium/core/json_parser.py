"""
JSON extraction from model output
Tries progressively looser strategies until one yields a JSON value
"""

import json
import re
from typing import Any, Optional

from json_repair import repair_json

from ideatrium.core.logger import get_logger

logger = get_logger(__name__)

# Typographic quotes models like to emit instead of ASCII quotes
_QUOTE_MAP = {
    "“": '"',  # LEFT DOUBLE QUOTATION MARK
    "”": '"',  # RIGHT DOUBLE QUOTATION MARK
    "‘": "'",  # LEFT SINGLE QUOTATION MARK
    "’": "'",  # RIGHT SINGLE QUOTATION MARK
    "«": '"',  # LEFT-POINTING DOUBLE ANGLE QUOTATION MARK
    "»": '"',  # RIGHT-POINTING DOUBLE ANGLE QUOTATION MARK
    "＂": '"',  # FULLWIDTH QUOTATION MARK
    "＇": "'",  # FULLWIDTH APOSTROPHE
}


def parse_json_from_response(response: str) -> Optional[Any]:
    """
    Extract the JSON value embedded in a model response

    Handles code fences, prose around the object and repairable syntax
    errors such as trailing commas or unclosed brackets

    Args:
        response: Raw model text

    Returns:
        The parsed value, or None when no strategy succeeds
    """
    if not isinstance(response, str):
        logger.warning(f"Cannot parse JSON from {type(response).__name__}")
        return None

    response = response.strip()
    if not response:
        logger.warning("Model response is empty")
        return None

    response = _normalize_quotes(response)

    # Strategy 1: Direct parsing
    try:
        result = json.loads(response)
        logger.debug("Strategy 1 success: Direct JSON parsing")
        return result
    except json.JSONDecodeError as e:
        logger.debug(f"Strategy 1 failed: {e}")

    # Strategy 2: Extract JSON from code blocks (```json ... ```)
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", response)
    if match:
        result = _loads_or_repair(match.group(1).strip(), "Strategy 2")
        if result is not None:
            return result

    # Strategy 3: First balanced {...} or [...] in the text
    candidate = _extract_balanced(response)
    if candidate:
        result = _loads_or_repair(candidate, "Strategy 3")
        if result is not None:
            return result

    # Strategy 4: Greedy regex match of a JSON structure
    match = re.search(r"(\{[\s\S]*\}|\[[\s\S]*\])", response)
    if match:
        result = _loads_or_repair(match.group(0), "Strategy 4")
        if result is not None:
            return result

    logger.error(
        f"All strategies failed, unable to parse JSON. Response content: {response[:500]}"
    )
    return None


def _normalize_quotes(text: str) -> str:
    """Normalize Unicode quote characters to standard ASCII quotes"""
    for unicode_quote, ascii_quote in _QUOTE_MAP.items():
        text = text.replace(unicode_quote, ascii_quote)
    return text


def _loads_or_repair(json_str: str, label: str) -> Optional[Any]:
    try:
        result = json.loads(json_str)
        logger.debug(f"{label} success")
        return result
    except json.JSONDecodeError as e:
        logger.debug(f"{label} failed: {e}")

    repaired = repair_json(json_str, return_objects=True)
    # repair_json returns "" when there is nothing to salvage
    if isinstance(repaired, (dict, list)) and repaired:
        logger.debug(f"{label}b success: json-repair")
        return repaired
    logger.debug(f"{label}b failed: json-repair found nothing")
    return None


def _extract_balanced(text: str) -> Optional[str]:
    """Return the first bracket-balanced JSON object/array, respecting strings"""
    start = -1
    for index, char in enumerate(text):
        if char in "{[":
            start = index
            break
    if start < 0:
        return None

    stack = []
    in_string = False
    escaped = False
    pairs = {"{": "}", "[": "]"}
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
        elif char in pairs:
            stack.append(pairs[char])
        elif char in "}]":
            if not stack or stack.pop() != char:
                return None
            if not stack:
                return text[start : index + 1]
    # Unterminated: let json-repair try to close it
    return text[start:]
