"""
Context Source Tests
Weather, trend context, profile merge and fire-and-forget enrichment.
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from conftest import USER_ID, SHIRT_ID, TROUSERS_ID
from ootd_service.core.validation import PinterestPin, WeatherData
from ootd_service.db.history import get_liked_outfits, merge_preferences
from ootd_service.db.outfits import get_recent_item_ids
from ootd_service.db.wardrobe import create_clothing_item, delete_clothing_item, get_clothing_items
from ootd_service.services.enrichment import enqueue_texture_jobs, schedule_enrichment
from ootd_service.services.pinterest import build_trend_context, pin_snippet
from ootd_service.services.weather import from_request, resolve_weather


class TestWeather:
    """Request weather and layering hints."""

    @pytest.mark.parametrize("temperature,condition,wind,expected", [
        (28, "Clear", None, "light"),
        (18, "Clouds", None, "medium"),
        (17, "Rain", None, "heavy"),
        (5, "Snow", None, "heavy"),
        (16, "Clear", 40, "heavy"),
    ])
    def test_layer_hint(self, temperature, condition, wind, expected):
        data = WeatherData(temperature=temperature, condition=condition, description="x", wind_speed=wind)
        assert from_request(data).layer_hint == expected

    def test_prompt_context(self):
        data = WeatherData(temperature=21, condition="Clear", description="clear sky", humidity=40)
        context = from_request(data).to_prompt_context()

        assert "21°C" in context
        assert "humidity 40%" in context
        assert context.endswith("Recommended clothing weight: medium.")

    def test_request_weather_wins_over_lookup(self):
        data = WeatherData(temperature=21, condition="Clear", description="clear sky")
        with patch("ootd_service.services.weather.get_weather", new=AsyncMock()) as lookup:
            info = asyncio.run(resolve_weather(data, "Stockholm"))

        lookup.assert_not_called()
        assert info.source == "request"

    def test_profile_location_lookup(self):
        with patch("ootd_service.services.weather.get_weather", new=AsyncMock(return_value=None)) as lookup:
            assert asyncio.run(resolve_weather(None, "Stockholm")) is None
        lookup.assert_awaited_once_with("Stockholm")

    def test_no_weather_at_all(self):
        assert asyncio.run(resolve_weather(None, None)) is None


class TestTrendContext:
    """Pinterest context and pins, capped to a few snippets."""

    def test_snippets_are_capped_and_deduplicated(self):
        pins = [
            PinterestPin(id="1", title="Linen set"),
            PinterestPin(id="2", title="Linen set"),
            PinterestPin(id="3", title="Camel coat", description="oversized"),
            PinterestPin(id="4", title="Loafers"),
            PinterestPin(id="5", title="Silk scarf"),
        ]
        context = asyncio.run(build_trend_context("Quiet luxury", pins, None, max_snippets=3))

        assert context.snippets == ["Linen set", "Camel coat - oversized", "Loafers"]
        assert context.summary == "Quiet luxury"
        assert context.used is True

    def test_empty_context_is_unused(self):
        context = asyncio.run(build_trend_context("  ", None, None))
        assert context.used is False

    def test_board_skipped_without_token(self):
        with patch("ootd_service.services.pinterest.httpx.AsyncClient") as http:
            context = asyncio.run(build_trend_context(None, None, "board-1"))

        http.assert_not_called()
        assert context.used is False
        assert context.board_id == "board-1"

    def test_pin_snippet_from_api_dict(self):
        assert pin_snippet({"title": " Trench ", "description": None}) == "Trench"
        assert pin_snippet({"title": "", "description": ""}) is None


class TestHistory:
    """Profile merge, liked outfits and recent items."""

    def test_request_preferences_win(self):
        profile = {"body_type": "petite", "favorite_colors": ["black"], "location": "Oslo"}
        merged = merge_preferences(profile, {"favorite_colors": ["green"], "body_type": None})

        assert merged == {"body_type": "petite", "favorite_colors": ["green"], "location": "Oslo"}

    def test_database_unavailable(self):
        assert get_liked_outfits(USER_ID) == []
        assert get_recent_item_ids(USER_ID) == []

    def test_recent_item_ids_are_distinct(self):
        collection = MagicMock()
        collection.find.return_value.sort.return_value.limit.return_value = [
            {"recommended_clothes": [SHIRT_ID, TROUSERS_ID]},
            {"recommended_clothes": [SHIRT_ID]},
        ]
        with patch("ootd_service.db.mongo.get_collection", return_value=collection):
            assert get_recent_item_ids(USER_ID, window=5) == [SHIRT_ID, TROUSERS_ID]

        collection.find.return_value.sort.return_value.limit.assert_called_once_with(5)


class TestWardrobe:
    """Clothing item CRUD against the clothes collection."""

    def test_create_item(self):
        collection = MagicMock()
        with patch("ootd_service.db.mongo.get_collection", return_value=collection):
            item = create_clothing_item(USER_ID, "  Navy Trousers ", color="navy", style="business")

        assert item["category"] == "Navy Trousers"
        assert item["user_id"] == USER_ID
        assert "_id" not in item
        collection.insert_one.assert_called_once()

    def test_create_requires_category(self):
        collection = MagicMock()
        with patch("ootd_service.db.mongo.get_collection", return_value=collection):
            assert create_clothing_item(USER_ID, "   ") is None

        collection.insert_one.assert_not_called()

    def test_delete_is_scoped_to_owner(self):
        collection = MagicMock()
        collection.delete_one.return_value.deleted_count = 0
        with patch("ootd_service.db.mongo.get_collection", return_value=collection):
            assert delete_clothing_item(USER_ID, SHIRT_ID) is False

        collection.delete_one.assert_called_once_with({"id": SHIRT_ID, "user_id": USER_ID})

    def test_store_unavailable(self):
        assert get_clothing_items(USER_ID) is None
        assert create_clothing_item(USER_ID, "Shirt") is None
        assert delete_clothing_item(USER_ID, SHIRT_ID) is False


class TestEnrichment:
    """Texture jobs are enqueued in the background."""

    def test_jobs_only_for_items_with_images(self):
        collection = MagicMock()
        items = [
            {"id": SHIRT_ID, "category": "Shirt", "image_url": "https://cdn/x.png"},
            {"id": TROUSERS_ID, "category": "Trousers", "image_url": None},
        ]
        with patch("ootd_service.db.mongo.get_collection", return_value=collection):
            assert enqueue_texture_jobs("outfit-1", items) == 1

        jobs = collection.insert_many.call_args.args[0]
        assert jobs[0]["clothing_id"] == SHIRT_ID
        assert jobs[0]["status"] == "pending"

    def test_failure_is_swallowed(self):
        async def scenario():
            with patch("ootd_service.services.enrichment.enqueue_texture_jobs", side_effect=RuntimeError("down")):
                task = schedule_enrichment("outfit-1", [{"id": SHIRT_ID, "image_url": "https://cdn/x.png"}])
                await task
            return task

        task = asyncio.run(scenario())
        assert task.exception() is None

    def test_no_running_loop(self):
        assert schedule_enrichment("outfit-1", []) is None
