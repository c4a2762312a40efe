"""
JSON extraction for model responses.
"""
import re
import json
import logging
from typing import Any

from ootd_service.core.errors import PipelineParseError

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def strip_fences(text: str) -> str:
    """Return the body of the first ``` fence, or the trimmed text."""
    match = _FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_response(text: str, stage: str) -> Any:
    """
    Parse a model response as JSON.

    Raises:
        PipelineParseError: If the content is empty or not JSON
    """
    body = strip_fences(text or "")
    if not body:
        raise PipelineParseError(f"Empty AI response during {stage}")

    try:
        return json.loads(body)
    except ValueError as e:
        logger.error(f"Invalid JSON from {stage}: {e}; content={body[:300]!r}")
        raise PipelineParseError(f"Invalid AI response during {stage}. Please try again.")


def parse_json_object(text: str, stage: str) -> dict:
    data = parse_json_response(text, stage)
    if not isinstance(data, dict):
        raise PipelineParseError(f"Unexpected AI response shape during {stage}")
    return data
