"""
Pipeline Orchestrator (v3.0.0)
Outfit generation: cache -> context -> inventory -> classify -> requirements
-> candidates -> select -> persist -> cache write.

Each stage feeds the next, so stages run sequentially. The cache is consulted
before any gateway call and written only after the outfit has been saved.
"""
import time
import uuid
import asyncio
import logging
from typing import Any, Dict, List, Optional

from ootd_service.cache import cache_manager, derive_cache_key
from ootd_service.config.settings import get_settings
from ootd_service.core.errors import (
    CacheWriteError,
    OutfitServiceError,
    PersistenceError,
    ValidationError,
    WardrobeUnavailableError,
)
from ootd_service.core.inventory import build_inventory, ensure_sufficient
from ootd_service.core.selection import ensure_pinned_included, select_best, summarize_candidates, candidate_item_ids
from ootd_service.core.style_context import detect_context
from ootd_service.core.validation import GenerateOutfitRequest
from ootd_service.db import history, outfits, wardrobe
from ootd_service.llm import GatewayClient, classify, generate_candidates, generate_hero_image, synthesize_requirements
from ootd_service.observability import increment_request, log_request
from ootd_service.services.enrichment import schedule_enrichment
from ootd_service.services.pinterest import build_trend_context
from ootd_service.services.weather import resolve_weather

logger = logging.getLogger(__name__)

CACHE_HIT = "hit"
CACHE_MISS = "miss"
CACHE_BYPASS = "bypass"
CACHE_DISABLED = "disabled"


class _RunState:
    """Bookkeeping for one generation, used for logs and meta."""

    def __init__(self, request_id: str):
        self.request_id = request_id
        self.start_time = time.time()
        self.cache_status = CACHE_DISABLED
        self.steps: List[str] = []
        self.candidates = 0

    def step(self, name: str) -> None:
        self.steps.append(name)
        logger.info(f"[{self.request_id}] step: {name}")

    @property
    def elapsed_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)


# ==================== ENTRY POINT ====================

async def generate_outfit(request: GenerateOutfitRequest, client=None) -> Dict[str, Any]:
    """
    Run the outfit generation pipeline for a validated request.

    Args:
        request: Validated request (caller identity already checked)
        client: Gateway client; a GatewayClient is created when omitted

    Returns:
        {"data": {...}, "meta": {...}}

    Raises:
        OutfitServiceError subclasses for every expected failure
    """
    state = _RunState(uuid.uuid4().hex[:12])
    client = client or GatewayClient()
    logger.info(f"[{state.request_id}] Generation starting: user={request.user_id}")

    try:
        result = await _run_pipeline(request, client, state)
    except OutfitServiceError as e:
        logger.warning(f"[{state.request_id}] Generation failed: {e.code} {e.message}")
        _track_request(state, request.user_id, client, "fail", e.code)
        raise
    except Exception:
        logger.exception(f"[{state.request_id}] Unexpected pipeline failure")
        _track_request(state, request.user_id, client, "fail", "INTERNAL_ERROR")
        raise

    _track_request(state, request.user_id, client, "success")
    return result


async def _run_pipeline(request: GenerateOutfitRequest, client, state: _RunState) -> Dict[str, Any]:
    settings = get_settings()
    pinned_ids = request.pinned_ids
    cache_key = None

    # Step 1: Cache lookup (never for pinned requests)
    if pinned_ids:
        state.cache_status = CACHE_BYPASS
    elif cache_manager.enabled:
        state.step("cache_lookup")
        cache_key = derive_cache_key(request.prompt, request.user_id, request.mood)
        cached = await asyncio.to_thread(cache_manager.lookup, cache_key)
        if cached:
            state.cache_status = CACHE_HIT
            return _cached_response(cached, state)
        state.cache_status = CACHE_MISS

    # Step 2: Context fetch
    state.step("context_fetch")
    clothes = await asyncio.to_thread(wardrobe.get_clothing_items, request.user_id)
    if clothes is None:
        raise WardrobeUnavailableError("Could not load your wardrobe. Please try again.")

    pinned_items = _resolve_pinned_items(request, clothes)

    profile = history.merge_preferences(
        await asyncio.to_thread(history.get_profile, request.user_id),
        request.user_preferences.model_dump(exclude_none=True) if request.user_preferences else None,
    )
    liked_history = await asyncio.to_thread(
        history.get_liked_outfits, request.user_id, settings.liked_history_limit
    )
    recent_item_ids = await asyncio.to_thread(
        outfits.get_recent_item_ids, request.user_id, settings.recent_outfits_window
    )
    weather = await resolve_weather(request.weather_data, profile.get("location"))
    trends = await build_trend_context(
        request.pinterest_context,
        request.pinterest_pins,
        request.pinterest_board_id,
        settings.max_trend_snippets,
    )

    # Step 3: Inventory normalization and style-context filtering
    state.step("inventory_filter")
    context = detect_context(request.prompt)
    inventory = build_inventory(clothes, context, pinned_ids)
    ensure_sufficient(inventory)

    # Steps 4-6: Gateway stages
    state.step("classification")
    classification = await classify(client, request.prompt, request.mood, weather, profile, liked_history)

    state.step("requirements")
    requirements = await synthesize_requirements(client, classification, request.prompt, weather, profile, liked_history)

    state.step("candidate_generation")
    candidates = await generate_candidates(
        client,
        classification,
        requirements,
        request.prompt,
        request.mood,
        weather,
        profile,
        liked_history,
        pinned_items,
        trends,
        recent_item_ids,
        inventory,
    )
    state.candidates = len(candidates)

    # Step 7: Selection
    state.step("selection")
    winner = select_best(candidates)
    ensure_pinned_included(winner, pinned_ids)

    chosen_ids = candidate_item_ids(winner)
    reused = [item_id for item_id in chosen_ids if item_id in set(recent_item_ids)]
    if reused:
        logger.info(f"[{state.request_id}] Winner reuses {len(reused)} recently worn items")

    # Optional hero image
    image_url = None
    if request.generate_image:
        state.step("image_generation")
        image_url = await generate_hero_image(client, winner, request.prompt, request.mood)

    # Step 8: Persistence
    state.step("persistence")
    summary = summarize_candidates(candidates, winner)
    ai_analysis = {
        "request_id": state.request_id,
        "classification": classification,
        "requirements": requirements,
        "reasoning": winner["reasoning"],
        "score": winner["score"],
        "score_breakdown": winner["score_breakdown"],
        "color_harmony": winner["color_harmony"],
        "styling_tips": winner["styling_tips"],
        "structured_items": winner["items"],
        "candidates": summary,
        "style_context": context.name,
        "pinterest_trends_used": trends.used,
        "trend_context": trends.to_dict(),
        "weather": weather.to_dict() if weather else None,
        "pinned_items": pinned_ids,
        "recent_items_reused": reused,
        "filter_decisions": [decision.to_dict() for decision in inventory.decisions],
    }

    saved = await asyncio.to_thread(
        outfits.save_outfit,
        user_id=request.user_id,
        title=winner["title"],
        prompt=request.prompt,
        mood=request.mood,
        is_public=request.is_public,
        description=winner["description"],
        recommended_clothes=chosen_ids,
        ai_analysis=ai_analysis,
        generated_image_url=image_url,
        purchase_links=[link.model_dump(exclude_none=True) for link in request.purchase_links or []],
        styling_tips=winner["styling_tips"],
    )
    if saved is None:
        raise PersistenceError("Your outfit could not be saved. Please try again.")

    clothes_by_id = {str(item.get("id")): item for item in clothes}
    recommended_clothes = [clothes_by_id[item_id] for item_id in chosen_ids if item_id in clothes_by_id]

    # Fire-and-forget enrichment
    schedule_enrichment(saved["id"], recommended_clothes)

    data = {
        "outfit": saved,
        "recommendedClothes": recommended_clothes,
        "structuredOutfit": winner,
        "reasoning": winner["reasoning"],
        "score": winner["score"],
        "scoreBreakdown": winner["score_breakdown"],
        "classification": classification,
        "requirements": requirements,
        "candidates": summary,
        "styleContext": context.name,
    }
    meta = {
        "processing_time_ms": state.elapsed_ms,
        "wardrobe_items_analyzed": inventory.analyzed_count,
        "trends_used": trends.used,
        "image_generated": image_url is not None,
        "pipeline_steps": len(state.steps),
        "candidates_count": len(candidates),
        "cache_status": state.cache_status,
        "fromCache": False,
    }

    # Step 9: Cache write (never fails the request)
    if cache_key:
        state.step("cache_write")
        try:
            await asyncio.to_thread(
                cache_manager.save,
                cache_key,
                request.user_id,
                request.prompt,
                request.mood,
                {"data": data, "meta": meta},
            )
        except CacheWriteError as e:
            logger.warning(f"[{state.request_id}] {e.message}")
        meta["pipeline_steps"] = len(state.steps)

    logger.info(
        f"[{state.request_id}] Outfit {saved['id']} generated in {state.elapsed_ms}ms "
        f"(context={context.name}, score={winner['score']})"
    )
    return {"data": data, "meta": meta}


# ==================== HELPERS ====================

def _resolve_pinned_items(request: GenerateOutfitRequest, clothes: List[dict]) -> List[dict]:
    """
    Match pinned items against the wardrobe.

    Raises:
        ValidationError: If a pinned id is not one of the user's items
    """
    if not request.selected_items:
        return []

    clothes_by_id = {str(item.get("id")): item for item in clothes}
    missing = [item.id for item in request.selected_items if item.id not in clothes_by_id]
    if missing:
        raise ValidationError(
            "Selected items were not found in your wardrobe",
            details=[{"field": "selectedItem", "message": f"Unknown item {item_id}"} for item_id in missing],
        )

    return [
        {
            "id": item.id,
            "category": clothes_by_id[item.id].get("category") or item.category,
            "color": clothes_by_id[item.id].get("color") or item.color,
        }
        for item in request.selected_items
    ]


def _cached_response(cached: Dict[str, Any], state: _RunState) -> Dict[str, Any]:
    meta = dict(cached.get("meta") or {})
    meta.update({
        "processing_time_ms": state.elapsed_ms,
        "pipeline_steps": len(state.steps),
        "cache_status": CACHE_HIT,
        "fromCache": True,
        "cacheAge": cached.get("cacheAge"),
    })
    logger.info(f"[{state.request_id}] Cache hit, age={cached.get('cacheAge')}ms")
    return {"data": cached.get("data") or {}, "meta": meta}


def _track_request(state: _RunState, user_id: str, client, status: str, error_code: Optional[str] = None):
    """Log and track request metrics."""
    log_request(
        request_id=state.request_id,
        user_id=user_id,
        cache_status=state.cache_status,
        latency_ms=state.elapsed_ms,
        status=status,
        error_code=error_code,
        candidates=state.candidates,
        ai_calls=getattr(client, "calls", 0),
        tokens=getattr(client, "tokens", 0),
        cost_usd=getattr(client, "cost_usd", 0.0),
    )
    increment_request(state.cache_status, error_code)
