"""
Requirements Synthesizer (v1.0.0)
AI call 2: turn the classification into structured outfit requirements.
"""
import logging
from typing import Any, Dict, List, Optional

from ootd_service.config.llm_config import PipelineStage, get_stage_config
from ootd_service.llm.context import (
    format_json_block,
    format_liked_history,
    format_profile,
    format_request,
    format_weather,
)
from ootd_service.llm.json_utils import parse_json_object
from ootd_service.llm.retry import with_configured_retry
from ootd_service.services.weather import WeatherInfo

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a fashion stylist writing the requirements for an outfit.

Use the classification as ground truth. Return ONLY valid JSON, no markdown:
{
  "required_categories": ["top", "bottom", "footwear"],
  "optional_categories": ["outerwear", "accessories"],
  "color_palette": {
    "primary": ["..."],
    "accent": ["..."],
    "avoid": ["..."],
    "skin_tone_notes": "..."
  },
  "materials": {"preferred": ["..."], "avoid": ["..."]},
  "style_rules": ["..."],
  "layering_strategy": "...",
  "formality_constraints": {"must_include": ["..."], "must_avoid": ["..."]},
  "personalization_notes": "..."
}

Categories must come from: top, bottom, dress, outerwear, footwear, accessories."""


def build_requirements_prompt(
    classification: Dict[str, Any],
    prompt: str,
    weather: Optional[WeatherInfo],
    profile: Dict[str, Any],
    liked_history: List[dict],
) -> str:
    return "\n\n".join([
        format_request(prompt, None),
        format_json_block("CLASSIFICATION", classification),
        format_weather(weather),
        format_profile(profile),
        format_liked_history(liked_history),
        "Write the outfit requirements.",
    ])


async def synthesize_requirements(
    client,
    classification: Dict[str, Any],
    prompt: str,
    weather: Optional[WeatherInfo],
    profile: Dict[str, Any],
    liked_history: List[dict],
) -> Dict[str, Any]:
    """
    Derive outfit requirements from a classification.

    Returns:
        Requirements dict (only JSON-parseability is checked)

    Raises:
        PipelineParseError: On malformed JSON
        UpstreamThrottled / UpstreamCreditsExhausted / UpstreamError
    """
    config = get_stage_config(PipelineStage.REQUIREMENTS)
    user_prompt = build_requirements_prompt(classification, prompt, weather, profile, liked_history)

    text = await with_configured_retry(
        lambda: client.complete(config, SYSTEM_PROMPT, user_prompt),
        label="requirements",
    )
    requirements = parse_json_object(text, "requirements synthesis")

    logger.info(f"Requirements: required={requirements.get('required_categories')}")
    return requirements
