"""
Candidate Generator & Scorer (v1.0.0)
AI call 3: propose several distinct outfits from the filtered inventory and
score each one.

The model's output is cleaned before selection: item references outside the
offered inventory are dropped, and candidates left without items or without a
numeric score are discarded.
"""
import math
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from ootd_service.config.llm_config import PipelineStage, get_stage_config
from ootd_service.core.errors import PipelineParseError
from ootd_service.core.inventory import Inventory
from ootd_service.llm.context import (
    format_json_block,
    format_liked_history,
    format_profile,
    format_request,
    format_weather,
)
from ootd_service.llm.json_utils import parse_json_response
from ootd_service.llm.retry import with_configured_retry
from ootd_service.services.pinterest import TrendContext
from ootd_service.services.weather import WeatherInfo

logger = logging.getLogger(__name__)

BREAKDOWN_KEYS = ("style_match", "weather_appropriateness", "color_harmony", "requirements_fulfillment")


SYSTEM_PROMPT = """You are a professional fashion stylist building outfits from a user's own wardrobe.

CRITICAL RULES:
1. Use ONLY item ids from AVAILABLE CLOTHES. Never invent items.
2. Select AT MOST ONE item per category.
3. Every outfit needs a top + bottom, or a dress. Footwear, outerwear and accessories are optional.
4. Every PINNED item MUST appear in every outfit, unchanged.
5. Prefer items that are NOT in RECENTLY USED. Reuse them only if nothing else fits.
6. Produce 2-3 outfits that are structurally different from each other.
7. Score each outfit from 0.0 to 1.0 and give the breakdown behind the score.

Return ONLY valid JSON, no markdown:
{
  "candidates": [
    {
      "title": "Creative outfit name",
      "items": [
        {"item_id": "id from the inventory", "category": "top", "name": "White Shirt", "color": "white", "style": "business"}
      ],
      "description": "2-3 sentences on why the combination works",
      "color_harmony": "color scheme description",
      "styling_tips": ["tip1", "tip2"],
      "reasoning": "how the outfit meets the requirements",
      "score": 0.0,
      "score_breakdown": {
        "style_match": 0.0,
        "weather_appropriateness": 0.0,
        "color_harmony": 0.0,
        "requirements_fulfillment": 0.0
      }
    }
  ]
}"""


def format_trends(trends: Optional[TrendContext]) -> str:
    if trends is None or not trends.used:
        return "TREND INSPIRATION: none, use classic styling"

    lines = ["TREND INSPIRATION (use as inspiration, not as items):"]
    if trends.summary:
        lines.append(f"- Summary: {trends.summary}")
    for snippet in trends.snippets:
        lines.append(f"- {snippet}")
    return "\n".join(lines)


def format_pinned(pinned_items: List[dict]) -> str:
    if not pinned_items:
        return "PINNED ITEMS: none"
    return format_json_block("PINNED ITEMS (must be included)", pinned_items)


def format_recent(recent_item_ids: List[str]) -> str:
    if not recent_item_ids:
        return "RECENTLY USED: none"
    return f"RECENTLY USED (avoid where possible): {', '.join(recent_item_ids)}"


def build_generator_prompt(
    classification: Dict[str, Any],
    requirements: Dict[str, Any],
    prompt: str,
    mood: Optional[str],
    weather: Optional[WeatherInfo],
    profile: Dict[str, Any],
    liked_history: List[dict],
    pinned_items: List[dict],
    trends: Optional[TrendContext],
    recent_item_ids: List[str],
    inventory: Inventory,
) -> str:
    available = {name: items for name, items in inventory.to_prompt_dict().items() if items}
    return "\n\n".join([
        format_request(prompt, mood),
        f"STYLE CONTEXT: {inventory.context.name}",
        format_json_block("CLASSIFICATION", classification),
        format_json_block("REQUIREMENTS", requirements),
        format_json_block("AVAILABLE CLOTHES BY CATEGORY", available),
        format_pinned(pinned_items),
        format_recent(recent_item_ids),
        format_trends(trends),
        format_weather(weather),
        format_profile(profile),
        format_liked_history(liked_history),
        "Generate the candidate outfits.",
    ])


# ==================== CANDIDATE HYGIENE ====================

def _as_score(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score) or math.isinf(score):
        return None
    return score


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def sanitize_candidates(data: Any, valid_ids: Set[str], inventory: Optional[Inventory] = None) -> List[dict]:
    """
    Normalize the generator output into well-formed candidates.

    Args:
        data: Parsed JSON (array, or object with "candidates"/"outfits")
        valid_ids: Item ids the model was allowed to use
        inventory: Used to fill in item fields the model left out

    Returns:
        Non-empty list of candidates

    Raises:
        PipelineParseError: If no candidate survives
    """
    if isinstance(data, dict):
        raw_candidates = data.get("candidates") or data.get("outfits")
    else:
        raw_candidates = data

    if not isinstance(raw_candidates, list):
        raise PipelineParseError("AI returned no outfit candidates")

    candidates = []
    for index, raw in enumerate(raw_candidates):
        if not isinstance(raw, dict):
            continue

        score = _as_score(raw.get("score"))
        if score is None:
            logger.warning(f"Discarding candidate {index}: non-numeric score {raw.get('score')!r}")
            continue

        items = []
        seen = set()
        for ref in _as_list(raw.get("items")):
            if not isinstance(ref, dict):
                continue
            item_id = ref.get("item_id") or ref.get("id")
            item_id = str(item_id) if item_id is not None else None
            if item_id not in valid_ids:
                logger.warning(f"Candidate {index}: dropping unknown item {item_id!r}")
                continue
            if item_id in seen:
                continue
            seen.add(item_id)

            known = inventory.get(item_id) if inventory else None
            items.append({
                "item_id": item_id,
                "category": ref.get("category") or (known.main_category if known else None),
                "name": ref.get("name") or ref.get("item_name") or (known.item.get("category") if known else None),
                "color": ref.get("color") or (known.analysis.color if known else None),
                "style": ref.get("style") or (known.analysis.style if known else None),
            })

        if not items:
            logger.warning(f"Discarding candidate {index}: no valid items")
            continue

        breakdown = raw.get("score_breakdown") if isinstance(raw.get("score_breakdown"), dict) else {}
        candidates.append({
            "title": raw.get("title") or f"Outfit {len(candidates) + 1}",
            "items": items,
            "description": raw.get("description", ""),
            "color_harmony": raw.get("color_harmony", ""),
            "styling_tips": [str(tip) for tip in _as_list(raw.get("styling_tips"))],
            "reasoning": raw.get("reasoning", ""),
            "score": score,
            "score_breakdown": {key: breakdown.get(key) for key in BREAKDOWN_KEYS},
        })

    if not candidates:
        raise PipelineParseError("AI returned no usable outfit candidates. Please try again.")

    return candidates


async def generate_candidates(
    client,
    classification: Dict[str, Any],
    requirements: Dict[str, Any],
    prompt: str,
    mood: Optional[str],
    weather: Optional[WeatherInfo],
    profile: Dict[str, Any],
    liked_history: List[dict],
    pinned_items: List[dict],
    trends: Optional[TrendContext],
    recent_item_ids: Iterable[str],
    inventory: Inventory,
) -> List[dict]:
    """
    Generate and score outfit candidates.

    Args:
        client: GatewayClient (anything with an async `complete`)
        classification: Output of AI call 1
        requirements: Output of AI call 2
        prompt: User request text
        mood: Optional mood
        weather: Resolved weather, if any
        profile: Merged user preferences
        liked_history: Liked-outfit summaries
        pinned_items: [{id, category, color}] the outfit must contain
        trends: Trend inspiration
        recent_item_ids: Ids to avoid where possible
        inventory: Filtered wardrobe

    Returns:
        Cleaned candidates (at least one)

    Raises:
        PipelineParseError: Malformed JSON or no usable candidate
        UpstreamThrottled / UpstreamCreditsExhausted / UpstreamError
    """
    config = get_stage_config(PipelineStage.GENERATOR)
    recent = list(recent_item_ids)
    user_prompt = build_generator_prompt(
        classification, requirements, prompt, mood, weather, profile,
        liked_history, pinned_items, trends, recent, inventory,
    )

    text = await with_configured_retry(
        lambda: client.complete(config, SYSTEM_PROMPT, user_prompt),
        label="generator",
    )
    data = parse_json_response(text, "candidate generation")

    valid_ids = {item.id for item in inventory.eligible_items}
    valid_ids.update(str(item["id"]) for item in pinned_items)
    candidates = sanitize_candidates(data, valid_ids, inventory)

    logger.info(f"Generated {len(candidates)} candidates: scores={[c['score'] for c in candidates]}")
    return candidates
