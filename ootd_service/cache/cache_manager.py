"""
Cache Manager (v2.0.0)
Cache key derivation and high-level cache operations for outfit requests.

The key covers (prompt, user, mood) only. Weather, preferences and trend
context are not part of it, so requests that differ only in those share an
entry until it expires.
"""
import hashlib
import logging
from typing import Dict, Any, Optional

from ootd_service.cache.cache_store import CacheStore
from ootd_service.config.settings import get_settings
from ootd_service.core.errors import CacheWriteError

logger = logging.getLogger(__name__)

MOOD_SENTINEL = "none"


def derive_cache_key(prompt: str, user_id: str, mood: Optional[str] = None) -> str:
    """
    Derive the cache key for a generation request.

    Args:
        prompt: Free-text request (trimmed and lowercased before hashing)
        user_id: Owner id
        mood: Optional mood, used verbatim

    Returns:
        SHA-256 hex digest
    """
    normalized_prompt = prompt.strip().lower()
    key_string = f"{normalized_prompt}|{user_id}|{mood or MOOD_SENTINEL}"
    return hashlib.sha256(key_string.encode("utf-8")).hexdigest()


class CacheManager:
    """High-level cache management for outfit requests."""

    _instance = None
    _store: Optional[CacheStore] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._store = CacheStore(ttl_hours=get_settings().cache_ttl_hours)
        return cls._instance

    @property
    def enabled(self) -> bool:
        """Check if caching is enabled."""
        return get_settings().cache_enabled

    @property
    def store(self) -> CacheStore:
        return self._store

    def lookup(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """Get a cached payload (None on miss or when disabled)."""
        if not self.enabled:
            return None
        return self._store.get(cache_key)

    def save(
        self,
        cache_key: str,
        user_id: str,
        prompt: str,
        mood: Optional[str],
        payload: Dict[str, Any],
    ) -> None:
        """
        Cache a generation result.

        Raises:
            CacheWriteError: If the entry could not be written
        """
        if not self.enabled:
            return
        if not self._store.set(cache_key, user_id, prompt, mood, payload):
            raise CacheWriteError(f"Failed to write cache entry {cache_key[:16]}...")

    def cleanup(self) -> Optional[Dict[str, int]]:
        return self._store.cleanup(get_settings().cache_unused_max_age_days)

    def get_status(self) -> Dict[str, Any]:
        """Get cache status for health endpoint."""
        stats = self._store.get_stats() if self._store else {}
        return {
            "enabled": self.enabled,
            "type": "mongodb",
            "ttl_hours": int(self._store.ttl.total_seconds() // 3600),
            "entries": stats.get("entries", 0),
            "live_entries": stats.get("live_entries", 0),
        }


# Global instance
cache_manager = CacheManager()
