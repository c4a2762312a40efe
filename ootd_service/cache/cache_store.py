"""
Cache Store (v2.0.0)
MongoDB-backed outfit cache with TTL predicate and hit counting.

Entries are never evicted on read: an entry is valid while expires_at > now
and is removed later by cleanup().
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from pymongo import ReturnDocument

from ootd_service.db import mongo

logger = logging.getLogger(__name__)

COLLECTION = "outfit_generation_cache"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CacheStore:
    """Outfit cache entries in the outfit_generation_cache collection."""

    def __init__(self, ttl_hours: int = 24, clock: Callable[[], datetime] = _utcnow):
        """
        Initialize cache store.

        Args:
            ttl_hours: Lifetime of a new entry
            clock: Returns the current aware UTC datetime
        """
        self.ttl = timedelta(hours=ttl_hours)
        self._clock = clock

    def get(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """
        Get a live entry and count the hit.

        Args:
            cache_key: SHA-256 cache key

        Returns:
            Stored payload annotated with fromCache/cacheAge, or None
        """
        try:
            collection = mongo.get_collection(COLLECTION)
            if collection is None:
                return None

            now = self._clock()
            entry = collection.find_one_and_update(
                {"cache_key": cache_key, "expires_at": {"$gt": now}},
                {"$inc": {"hit_count": 1}},
                return_document=ReturnDocument.AFTER,
            )
            if entry is None:
                return None

            created_at = _as_aware(entry["created_at"])
            age_ms = int((now - created_at).total_seconds() * 1000)
            logger.info(f"Cache hit: {cache_key[:16]}... (hits={entry.get('hit_count')}, age={age_ms}ms)")

            payload = dict(entry.get("outfit_data") or {})
            payload["fromCache"] = True
            payload["cacheAge"] = age_ms
            return payload

        except Exception as e:
            logger.warning(f"Cache read error: {e}")
            return None

    def set(
        self,
        cache_key: str,
        user_id: str,
        prompt: str,
        mood: Optional[str],
        payload: Dict[str, Any],
    ) -> bool:
        """
        Upsert an entry; concurrent writers of the same key overwrite each other.

        Returns:
            True if written
        """
        try:
            collection = mongo.get_collection(COLLECTION)
            if collection is None:
                logger.warning("MongoDB not available for cache write")
                return False

            now = self._clock()
            collection.update_one(
                {"cache_key": cache_key},
                {"$set": {
                    "cache_key": cache_key,
                    "user_id": user_id,
                    "prompt": prompt,
                    "mood": mood,
                    "outfit_data": payload,
                    "created_at": now,
                    "expires_at": now + self.ttl,
                    "hit_count": 0,
                }},
                upsert=True,
            )
            logger.info(f"Cache saved: {cache_key[:16]}...")
            return True

        except Exception as e:
            logger.warning(f"Cache write error: {e}")
            return False

    def cleanup(self, unused_max_age_days: int = 7) -> Optional[Dict[str, int]]:
        """
        Remove expired entries, then old entries that were never hit.

        Returns:
            Counts per pass, or None when the database is unavailable
        """
        collection = mongo.get_collection(COLLECTION)
        if collection is None:
            return None

        now = self._clock()
        expired = collection.delete_many({"expires_at": {"$lt": now}}).deleted_count

        unused = 0
        try:
            cutoff = now - timedelta(days=unused_max_age_days)
            unused = collection.delete_many({"created_at": {"$lt": cutoff}, "hit_count": 0}).deleted_count
        except Exception as e:
            logger.warning(f"Unused cache cleanup failed: {e}")

        logger.info(f"Cache cleanup: {expired} expired, {unused} old unused entries removed")
        return {"expired_entries_deleted": expired, "old_unused_entries_deleted": unused}

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        try:
            collection = mongo.get_collection(COLLECTION)
            if collection is None:
                return {"entries": 0, "live_entries": 0}

            return {
                "entries": collection.count_documents({}),
                "live_entries": collection.count_documents({"expires_at": {"$gt": self._clock()}}),
            }
        except Exception as e:
            logger.warning(f"Cache stats error: {e}")
            return {"entries": 0, "live_entries": 0}
