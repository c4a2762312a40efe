# Cache module
from ootd_service.cache.cache_manager import cache_manager, derive_cache_key, CacheManager
from ootd_service.cache.cache_store import CacheStore
