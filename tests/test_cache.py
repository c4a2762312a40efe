"""
Cache Tests
Key derivation, Mongo-backed store semantics and the manager's failure policy.
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from conftest import USER_ID, OTHER_USER_ID
from ootd_service.cache import CacheStore, cache_manager, derive_cache_key
from ootd_service.core.errors import CacheWriteError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


@pytest.fixture
def collection():
    """A MagicMock collection served for every get_collection call."""
    mock = MagicMock()
    with patch("ootd_service.db.mongo.get_collection", return_value=mock):
        yield mock


class TestCacheKey:
    """SHA-256 over normalized prompt, user id and mood."""

    def test_prompt_is_trimmed_and_lowercased(self):
        assert derive_cache_key("  Business Meeting ", USER_ID) == derive_cache_key("business meeting", USER_ID)

    def test_key_is_hex_sha256(self):
        key = derive_cache_key("business meeting", USER_ID, "calm")
        assert len(key) == 64
        int(key, 16)

    def test_user_and_mood_change_the_key(self):
        base = derive_cache_key("business meeting", USER_ID)
        assert derive_cache_key("business meeting", OTHER_USER_ID) != base
        assert derive_cache_key("business meeting", USER_ID, "calm") != base

    def test_missing_mood_uses_sentinel(self):
        assert derive_cache_key("x", USER_ID, None) == derive_cache_key("x", USER_ID, "none")

    def test_mood_is_not_normalized(self):
        assert derive_cache_key("x", USER_ID, "Calm") != derive_cache_key("x", USER_ID, "calm")


class TestCacheStore:
    """outfit_generation_cache collection semantics."""

    def test_hit_returns_payload_with_age(self, collection):
        collection.find_one_and_update.return_value = {
            "cache_key": "k",
            "outfit_data": {"data": {"outfit": {"id": "o1"}}, "meta": {}},
            "created_at": NOW - timedelta(seconds=90),
            "hit_count": 2,
        }
        store = CacheStore(clock=fixed_clock)

        payload = store.get("k")

        assert payload["data"]["outfit"]["id"] == "o1"
        assert payload["fromCache"] is True
        assert payload["cacheAge"] == 90_000

        query, update = collection.find_one_and_update.call_args.args[:2]
        assert query == {"cache_key": "k", "expires_at": {"$gt": NOW}}
        assert update == {"$inc": {"hit_count": 1}}

    def test_expired_or_missing_is_miss(self, collection):
        collection.find_one_and_update.return_value = None
        assert CacheStore(clock=fixed_clock).get("k") is None

    def test_read_error_is_miss(self, collection):
        collection.find_one_and_update.side_effect = RuntimeError("socket closed")
        assert CacheStore(clock=fixed_clock).get("k") is None

    def test_set_upserts_with_ttl(self, collection):
        store = CacheStore(ttl_hours=24, clock=fixed_clock)

        assert store.set("k", USER_ID, "Business meeting", None, {"data": {}}) is True

        query, update = collection.update_one.call_args.args
        assert query == {"cache_key": "k"}
        assert update["$set"]["expires_at"] == NOW + timedelta(hours=24)
        assert update["$set"]["hit_count"] == 0
        assert collection.update_one.call_args.kwargs["upsert"] is True

    def test_set_without_database(self):
        assert CacheStore().set("k", USER_ID, "p", None, {}) is False

    def test_cleanup_two_passes(self, collection):
        collection.delete_many.side_effect = [MagicMock(deleted_count=4), MagicMock(deleted_count=2)]

        result = CacheStore(clock=fixed_clock).cleanup(unused_max_age_days=7)

        assert result == {"expired_entries_deleted": 4, "old_unused_entries_deleted": 2}
        expired_query = collection.delete_many.call_args_list[0].args[0]
        unused_query = collection.delete_many.call_args_list[1].args[0]
        assert expired_query == {"expires_at": {"$lt": NOW}}
        assert unused_query == {"created_at": {"$lt": NOW - timedelta(days=7)}, "hit_count": 0}


class TestCacheManager:
    """Write failures surface as CacheWriteError for the caller to log."""

    def test_failed_write_raises(self):
        with pytest.raises(CacheWriteError):
            cache_manager.save("k", USER_ID, "p", None, {"data": {}})

    def test_lookup_disabled(self, monkeypatch):
        from ootd_service.config import reload_settings
        monkeypatch.setenv("OOTD_CACHE_ENABLED", "false")
        reload_settings()

        with patch.object(cache_manager.store, "get") as get:
            assert cache_manager.lookup("k") is None
        get.assert_not_called()

    def test_status(self):
        status = cache_manager.get_status()
        assert status["enabled"] is True
        assert status["ttl_hours"] == 24
