"""
MongoDB Connection Module (v2.0.0)
Shared client for wardrobe, outfit, history and cache collections.
"""
import os
import logging
from typing import Optional

from pymongo import MongoClient
from pymongo.collection import Collection

logger = logging.getLogger(__name__)

# MongoDB configuration
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "ootd")

# Global client
_client: Optional[MongoClient] = None
_db = None


def connect() -> bool:
    """
    Connect to MongoDB.

    Returns:
        True if connected, False otherwise
    """
    global _client, _db

    try:
        logger.info(f"Connecting to MongoDB: {MONGO_URI[:30]}...")

        _client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=5000, tz_aware=True)

        # Test connection
        _client.admin.command("ping")

        _db = _client[MONGO_DB_NAME]
        _ensure_indexes()

        logger.info(f"Connected to MongoDB database: {MONGO_DB_NAME}")
        return True

    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        _client = None
        _db = None
        return False


def _ensure_indexes() -> None:
    """Create lookup indexes used by the pipeline."""
    try:
        _db["outfit_generation_cache"].create_index("cache_key", unique=True)
        _db["outfit_generation_cache"].create_index("expires_at")
        _db["clothes"].create_index("user_id")
        _db["outfits"].create_index([("user_id", 1), ("created_at", -1)])
        _db["outfit_feedback"].create_index([("user_id", 1), ("feedback_type", 1)])
    except Exception as e:
        logger.warning(f"Index creation failed: {e}")


def get_collection(name: str) -> Optional[Collection]:
    """Get a MongoDB collection, or None when the database is unavailable."""
    if _db is None:
        connect()

    if _db is None:
        return None

    return _db[name]


def health_check() -> dict:
    """Check MongoDB connection health."""
    try:
        if _client is None:
            connect()

        if _client:
            _client.admin.command("ping")
            return {"status": "connected", "database": MONGO_DB_NAME}
        return {"status": "disconnected", "reason": "client not initialized"}

    except Exception as e:
        return {"status": "disconnected", "reason": str(e)}


def clean_document(doc: Optional[dict]) -> Optional[dict]:
    """Drop Mongo's _id so documents serialize as JSON."""
    if doc is None:
        return None
    doc.pop("_id", None)
    return doc
