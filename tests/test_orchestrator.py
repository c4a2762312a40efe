"""
Pipeline Orchestrator Tests
End-to-end generation against a scripted gateway with the database patched out.
"""
import asyncio
import pytest
from unittest.mock import patch

from conftest import (
    USER_ID,
    SHIRT_ID,
    TROUSERS_ID,
    OXFORDS_ID,
    SNEAKERS_ID,
    HOODIE_ID,
    FakeGateway,
    candidate,
    clothing,
    gateway_responses,
)
from ootd_service.cache import cache_manager, derive_cache_key
from ootd_service.core.errors import (
    InventoryInsufficientError,
    PersistenceError,
    SelectionConstraintViolation,
    UpstreamCreditsExhausted,
    ValidationError,
    WardrobeUnavailableError,
)
from ootd_service.core.orchestrator import generate_outfit
from ootd_service.core.validation import parse_generate_request
from ootd_service.observability import get_metrics


def build_request(**overrides):
    body = {"prompt": "Outfit for a business meeting", "userId": USER_ID}
    body.update(overrides)
    return parse_generate_request(body)


def fake_save_outfit(**kwargs):
    saved = dict(kwargs)
    saved["id"] = "outfit-1"
    saved["created_at"] = "2026-01-01T00:00:00+00:00"
    return saved


def run(request, gateway):
    return asyncio.run(generate_outfit(request, client=gateway))


@pytest.fixture
def db(wardrobe_items):
    """Wardrobe and outfit writes patched; yields the save_outfit mock."""
    with patch("ootd_service.db.wardrobe.get_clothing_items", return_value=wardrobe_items), \
         patch("ootd_service.db.outfits.save_outfit", side_effect=fake_save_outfit) as save:
        yield save


# ==================== HAPPY PATH ====================

class TestBusinessGeneration:
    """A business prompt over a mixed wardrobe."""

    def test_winner_is_highest_scoring_candidate(self, db, fake_gateway):
        result = run(build_request(), fake_gateway)

        data = result["data"]
        assert data["structuredOutfit"]["title"] == "Boardroom Classic"
        assert data["score"] == 0.92
        assert [c["selected"] for c in data["candidates"]] == [True, False]
        assert data["outfit"]["id"] == "outfit-1"

    def test_gateway_stages_run_in_order(self, db, fake_gateway):
        run(build_request(), fake_gateway)

        assert fake_gateway.stages == ["classifier", "requirements", "generator"]

    def test_casual_items_are_not_offered(self, db, fake_gateway):
        run(build_request(), fake_gateway)

        generator_prompt = fake_gateway.prompts["generator"]
        assert SHIRT_ID in generator_prompt
        assert OXFORDS_ID in generator_prompt
        assert SNEAKERS_ID not in generator_prompt
        assert HOODIE_ID not in generator_prompt

    def test_ineligible_item_reference_is_dropped(self, db, fake_gateway):
        result = run(build_request(), fake_gateway)

        runner_up = result["data"]["candidates"][1]
        assert runner_up["item_ids"] == [SHIRT_ID, TROUSERS_ID]

    def test_persisted_trace(self, db, fake_gateway):
        run(build_request(isPublic=False), fake_gateway)

        saved = db.call_args.kwargs
        assert saved["user_id"] == USER_ID
        assert saved["is_public"] is False
        assert saved["recommended_clothes"] == [SHIRT_ID, TROUSERS_ID, OXFORDS_ID]

        analysis = saved["ai_analysis"]
        assert analysis["style_context"] == "business"
        assert analysis["pinterest_trends_used"] is False
        assert analysis["classification"]["occasion"] == "business meeting"
        assert analysis["score"] == 0.92
        dropped = {d["item_id"] for d in analysis["filter_decisions"] if not d["kept"]}
        assert dropped == {SNEAKERS_ID, HOODIE_ID}

    def test_response_meta(self, db, fake_gateway):
        result = run(build_request(), fake_gateway)

        meta = result["meta"]
        assert meta["cache_status"] == "miss"
        assert meta["fromCache"] is False
        assert meta["wardrobe_items_analyzed"] == 5
        assert meta["candidates_count"] == 2
        assert meta["image_generated"] is False
        assert meta["trends_used"] is False
        assert meta["pipeline_steps"] > 0

    def test_recommended_clothes_are_wardrobe_records(self, db, fake_gateway):
        result = run(build_request(), fake_gateway)

        ids = [item["id"] for item in result["data"]["recommendedClothes"]]
        assert ids == [SHIRT_ID, TROUSERS_ID, OXFORDS_ID]

    def test_trend_context_reaches_generator(self, db, fake_gateway):
        request = build_request(
            pinterestContext="Quiet luxury, muted tones",
            pinterestPins=[{"id": "p1", "title": "Camel coat", "description": "oversized"}],
        )
        result = run(request, fake_gateway)

        assert "Quiet luxury" in fake_gateway.prompts["generator"]
        assert "Camel coat - oversized" in fake_gateway.prompts["generator"]
        assert result["meta"]["trends_used"] is True

    def test_hero_image_when_requested(self, db):
        gateway = FakeGateway(gateway_responses(), image_url="data:image/png;base64,AAAA")

        result = run(build_request(generateImage=True), gateway)

        assert gateway.stages[-1] == "image"
        assert result["meta"]["image_generated"] is True
        assert db.call_args.kwargs["generated_image_url"] == "data:image/png;base64,AAAA"


# ==================== CACHE ====================

class TestCaching:
    """Cache lookup before any AI call, write after persistence."""

    def test_cache_hit_short_circuits(self, db, fake_gateway):
        cached = {
            "data": {"outfit": {"id": "cached-outfit"}},
            "meta": {"candidates_count": 3, "cache_status": "miss", "fromCache": False},
            "fromCache": True,
            "cacheAge": 1200,
        }
        with patch.object(cache_manager, "lookup", return_value=cached) as lookup, \
             patch("ootd_service.db.wardrobe.get_clothing_items") as get_items:
            result = run(build_request(), fake_gateway)

        lookup.assert_called_once_with(derive_cache_key("Outfit for a business meeting", USER_ID, None))
        get_items.assert_not_called()
        assert fake_gateway.stages == []
        assert result["data"]["outfit"]["id"] == "cached-outfit"
        assert result["meta"]["cache_status"] == "hit"
        assert result["meta"]["fromCache"] is True
        assert result["meta"]["cacheAge"] == 1200
        assert get_metrics()["cache_hits"] == 1

    def test_miss_writes_cache_after_save(self, db, fake_gateway):
        with patch.object(cache_manager, "save") as save:
            run(build_request(mood="confident"), fake_gateway)

        save.assert_called_once()
        key, user_id, prompt, mood, payload = save.call_args.args
        assert key == derive_cache_key("Outfit for a business meeting", USER_ID, "confident")
        assert (user_id, mood) == (USER_ID, "confident")
        assert payload["data"]["outfit"]["id"] == "outfit-1"

    def test_cache_write_failure_does_not_fail_request(self, db, fake_gateway):
        # Database is unavailable, so the write fails and is only logged
        result = run(build_request(), fake_gateway)

        assert result["data"]["outfit"]["id"] == "outfit-1"

    def test_pinned_request_bypasses_cache(self, db, fake_gateway):
        request = build_request(selectedItem={"id": SHIRT_ID, "category": "shirt", "color": "white"})

        with patch.object(cache_manager, "lookup") as lookup, patch.object(cache_manager, "save") as save:
            result = run(request, fake_gateway)

        lookup.assert_not_called()
        save.assert_not_called()
        assert result["meta"]["cache_status"] == "bypass"

    def test_disabled_cache(self, db, fake_gateway, monkeypatch):
        from ootd_service.config import reload_settings
        monkeypatch.setenv("OOTD_CACHE_ENABLED", "false")
        reload_settings()

        with patch.object(cache_manager.store, "get") as get:
            result = run(build_request(), fake_gateway)

        get.assert_not_called()
        assert result["meta"]["cache_status"] == "disabled"


# ==================== PINNED ITEMS ====================

class TestPinnedItems:
    """Pinned items survive filtering and must reach the winner."""

    def test_pinned_excluded_item_is_offered(self, db):
        gateway = FakeGateway(gateway_responses([
            candidate("Smart Sneakers", [SHIRT_ID, TROUSERS_ID, SNEAKERS_ID], 0.8),
        ]))
        request = build_request(selectedItem=[{"id": SNEAKERS_ID, "category": "sneakers", "color": "white"}])

        result = run(request, gateway)

        assert SNEAKERS_ID in gateway.prompts["generator"].split("PINNED ITEMS")[0]
        assert SNEAKERS_ID in result["data"]["outfit"]["recommended_clothes"]
        decision = next(
            d for d in db.call_args.kwargs["ai_analysis"]["filter_decisions"] if d["item_id"] == SNEAKERS_ID
        )
        assert decision["kept"] is True
        assert decision["overridden"] is True

    def test_pinned_unmapped_item_counts_toward_minimum(self):
        kimono_id = "66666666-6666-4666-8666-666666666666"
        clothes = [
            clothing(SHIRT_ID, "White Shirt", "white", "casual"),
            clothing(kimono_id, "Silk Kimono", "green", "casual"),
        ]
        gateway = FakeGateway(gateway_responses([candidate("Kimono Brunch", [SHIRT_ID, kimono_id], 0.8)]))
        request = build_request(
            prompt="Weekend brunch",
            selectedItem=[{"id": kimono_id, "category": "kimono", "color": "green"}],
        )

        with patch("ootd_service.db.wardrobe.get_clothing_items", return_value=clothes), \
             patch("ootd_service.db.outfits.save_outfit", side_effect=fake_save_outfit):
            result = run(request, gateway)

        assert gateway.stages == ["classifier", "requirements", "generator"]
        assert kimono_id in gateway.prompts["generator"].split("PINNED ITEMS")[0]
        assert result["data"]["outfit"]["recommended_clothes"] == [SHIRT_ID, kimono_id]
        assert result["meta"]["cache_status"] == "bypass"

    def test_winner_missing_pinned_item_fails(self, db):
        gateway = FakeGateway(gateway_responses([
            candidate("Boardroom Classic", [SHIRT_ID, TROUSERS_ID, OXFORDS_ID], 0.95),
            candidate("Smart Sneakers", [SHIRT_ID, TROUSERS_ID, SNEAKERS_ID], 0.6),
        ]))
        request = build_request(selectedItem=[{"id": SNEAKERS_ID, "category": "sneakers", "color": "white"}])

        with pytest.raises(SelectionConstraintViolation) as exc_info:
            run(request, gateway)

        assert exc_info.value.details == {"missing_item_ids": [SNEAKERS_ID]}
        db.assert_not_called()

    def test_unknown_pinned_item_is_rejected(self, db, fake_gateway):
        request = build_request(
            selectedItem=[{"id": "66666666-6666-4666-8666-666666666666", "category": "hat", "color": "red"}]
        )

        with pytest.raises(ValidationError):
            run(request, fake_gateway)
        assert fake_gateway.stages == []


# ==================== FAILURES ====================

class TestFailures:
    """Typed failures and what they skip."""

    def test_insufficient_inventory_makes_no_ai_calls(self, fake_gateway):
        casual_only = [
            {"id": SNEAKERS_ID, "category": "White Sneakers", "color": "white", "style": "casual"},
            {"id": HOODIE_ID, "category": "Grey Hoodie", "color": "grey", "style": "casual"},
        ]
        with patch("ootd_service.db.wardrobe.get_clothing_items", return_value=casual_only):
            with pytest.raises(InventoryInsufficientError) as exc_info:
                run(build_request(), fake_gateway)

        assert fake_gateway.stages == []
        assert exc_info.value.details["style_context"] == "business"
        assert exc_info.value.details["eligible_items"] == 0
        assert "blazer" in exc_info.value.details["suggested_categories"]

    def test_wardrobe_unavailable(self, fake_gateway):
        with pytest.raises(WardrobeUnavailableError):
            run(build_request(), fake_gateway)
        assert fake_gateway.stages == []

    def test_credits_exhausted_propagates(self, db):
        responses = gateway_responses()
        responses["classifier"] = UpstreamCreditsExhausted("AI credits exhausted")
        gateway = FakeGateway(responses)

        with pytest.raises(UpstreamCreditsExhausted):
            run(build_request(), gateway)

        assert gateway.stages == ["classifier"]
        assert get_metrics()["errors_by_code"] == {"AI_CREDITS_EXHAUSTED": 1}

    def test_persistence_failure_skips_cache_write(self, wardrobe_items, fake_gateway):
        with patch("ootd_service.db.wardrobe.get_clothing_items", return_value=wardrobe_items), \
             patch.object(cache_manager, "save") as save:
            with pytest.raises(PersistenceError):
                run(build_request(), fake_gateway)

        save.assert_not_called()
