"""
Defensive parsing of classifier output into an Intent.

Small local models wrap JSON in ```json fences, prepend prose ("Sure! Here is
the JSON:"), or emit something that is not JSON at all. parse_intent never
raises: anything it cannot turn into a valid Intent becomes a degraded
QueryIntent carrying the raw text as its message.
"""
import json
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from hrchat.core.intents import INTENT_ADAPTER, QueryIntent
from hrchat.utils.logger import get_logger

logger = get_logger("parsing.response_extractor")

EMPTY_OUTPUT_MESSAGE = "I understood that, but I'm having trouble formatting the action."

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_fences(text: str) -> str:
    """Remove ```json / ``` markers wherever they appear."""
    return _FENCE_RE.sub("", text or "").strip()


def find_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} substring, or None.

    Scans brace depth from the first '{' so nested objects survive; braces
    inside JSON string literals are ignored.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(text[start:], start):
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
                return text[start:i + 1]
    return None


def extract_json(raw: str) -> Optional[Dict[str, Any]]:
    """Best-effort JSON object extraction; None when there is no usable object."""
    candidate = find_json_object(strip_fences(raw))
    if candidate is None:
        return None
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def degraded_intent(raw: str) -> QueryIntent:
    """Plain-text answer with no result rows."""
    message = (raw or "").strip() or EMPTY_OUTPUT_MESSAGE
    return QueryIntent(message=message, matching_ids=[])


def parse_intent(raw: str):
    """
    Parse classifier text into a validated Intent.

    Args:
        raw: Model output, possibly fenced, prefixed or malformed

    Returns:
        QueryIntent | CreateIntent | UpdateIntent | DeleteIntent
    """
    payload = extract_json(raw)
    if payload is None:
        logger.warning(f"Classifier output is not a JSON object, degrading: {(raw or '')[:120]!r}")
        return degraded_intent(raw)

    intent_name = payload.get("intent")
    if isinstance(intent_name, str):
        payload = {**payload, "intent": intent_name.strip().lower()}

    try:
        return INTENT_ADAPTER.validate_python(payload)
    except PydanticValidationError as e:
        logger.warning(f"Classifier JSON has unknown shape (intent={intent_name!r}), degrading: {e.error_count()} error(s)")
        return degraded_intent(raw)
