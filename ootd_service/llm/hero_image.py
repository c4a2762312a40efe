"""
Hero Image (v1.0.0)
Optional, costed flat-lay image of the chosen outfit.
"""
import logging
from typing import Optional

from ootd_service.config.llm_config import PipelineStage, get_stage_config
from ootd_service.core.errors import OutfitServiceError

logger = logging.getLogger(__name__)


def build_image_prompt(candidate: dict, prompt: str, mood: Optional[str]) -> str:
    pieces = ", ".join(
        " ".join(part for part in (item.get("color"), item.get("name") or item.get("category")) if part)
        for item in candidate.get("items", [])
    )
    mood_text = f" Mood: {mood}." if mood else ""
    return (
        f"Fashion flat-lay photo of this outfit on a clean neutral background: {pieces}. "
        f"Occasion: {prompt}.{mood_text} Soft natural lighting, editorial style, no people, no text."
    )


async def generate_hero_image(client, candidate: dict, prompt: str, mood: Optional[str]) -> Optional[str]:
    """
    Generate the hero image; failures only cost the image.

    Returns:
        Image URL or None
    """
    config = get_stage_config(PipelineStage.IMAGE)
    try:
        url = await client.generate_image(config, build_image_prompt(candidate, prompt, mood))
    except OutfitServiceError as e:
        logger.warning(f"Hero image generation failed: {e.code} {e.message}")
        return None

    if url is None:
        logger.warning("Hero image response contained no image")
    return url
