"""
Request Classifier (v1.0.0)
AI call 1: classify occasion, style, season and formality of a request.
"""
import logging
from typing import Any, Dict, List, Optional

from ootd_service.config.llm_config import PipelineStage, get_stage_config
from ootd_service.llm.context import format_liked_history, format_profile, format_request, format_weather
from ootd_service.llm.json_utils import parse_json_object
from ootd_service.llm.retry import with_configured_retry
from ootd_service.services.weather import WeatherInfo

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a fashion stylist classifying an outfit request.

Return ONLY valid JSON, no markdown:
{
  "occasion": "short occasion label",
  "style": "overall style direction",
  "season": "spring | summer | autumn | winter | all",
  "formality_level": "casual | smart-casual | semi-formal | formal",
  "color_preference": ["color", "..."],
  "weather_consideration": "low | medium | high",
  "personalization_notes": "how the user's profile and history should shape the outfit"
}"""


def build_classifier_prompt(
    prompt: str,
    mood: Optional[str],
    weather: Optional[WeatherInfo],
    profile: Dict[str, Any],
    liked_history: List[dict],
) -> str:
    return "\n\n".join([
        format_request(prompt, mood),
        format_weather(weather),
        format_profile(profile),
        format_liked_history(liked_history),
        "Classify this request.",
    ])


async def classify(
    client,
    prompt: str,
    mood: Optional[str],
    weather: Optional[WeatherInfo],
    profile: Dict[str, Any],
    liked_history: List[dict],
) -> Dict[str, Any]:
    """
    Classify the request.

    Args:
        client: GatewayClient (anything with an async `complete`)
        prompt: User request text
        mood: Optional mood
        weather: Resolved weather, if any
        profile: Merged user preferences
        liked_history: Liked-outfit summaries

    Returns:
        Classification dict, trusted as returned by the model

    Raises:
        PipelineParseError: On malformed JSON
        UpstreamThrottled / UpstreamCreditsExhausted / UpstreamError
    """
    config = get_stage_config(PipelineStage.CLASSIFIER)
    user_prompt = build_classifier_prompt(prompt, mood, weather, profile, liked_history)

    text = await with_configured_retry(
        lambda: client.complete(config, SYSTEM_PROMPT, user_prompt),
        label="classifier",
    )
    classification = parse_json_object(text, "request classification")

    logger.info(
        f"Classification: occasion={classification.get('occasion')}, "
        f"formality={classification.get('formality_level')}"
    )
    return classification
