"""
Wardrobe Module (v3.0.0)
Clothing item storage in the `clothes` collection.
"""
import uuid
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from ootd_service.db import mongo

logger = logging.getLogger(__name__)

COLLECTION = "clothes"


# ==================== CLOTHING ITEM MODEL ====================

def create_clothing_item(
    user_id: str,
    category: str,
    image_url: Optional[str] = None,
    color: Optional[str] = None,
    style: Optional[str] = None,
    brand: Optional[str] = None,
    description: Optional[str] = None,
    ai_detected_metadata: Optional[Any] = None,
) -> Optional[Dict[str, Any]]:
    """
    Create a new clothing item.

    Args:
        user_id: Owner's user ID
        category: Free-text category (e.g. "navy trousers"), must be non-empty
        image_url: Public URL of the item photo
        color: Dominant color
        style: Style label (casual, business, formal, ...)
        brand: Brand name
        description: Free-text description
        ai_detected_metadata: Prior AI analysis (dict or JSON string)

    Returns:
        Created item document or None
    """
    if not category or not category.strip():
        logger.warning("Refusing to create clothing item without category")
        return None

    try:
        collection = mongo.get_collection(COLLECTION)
        if collection is None:
            return None

        item = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "category": category.strip(),
            "image_url": image_url,
            "color": color,
            "style": style,
            "brand": brand,
            "description": description,
            "ai_detected_metadata": ai_detected_metadata,
            "created_at": datetime.now(timezone.utc),
        }

        collection.insert_one(item)
        logger.info(f"Clothing item created: {item['id']} ({item['category']})")

        return mongo.clean_document(item)

    except Exception as e:
        logger.error(f"Failed to create clothing item: {e}")
        return None


def get_clothing_items(user_id: str) -> Optional[List[Dict[str, Any]]]:
    """
    Get every clothing item a user owns.

    Returns:
        List of items (possibly empty), or None if the store is unreachable
    """
    try:
        collection = mongo.get_collection(COLLECTION)
        if collection is None:
            return None

        cursor = collection.find({"user_id": user_id}, {"_id": 0}).sort("created_at", -1)
        return list(cursor)

    except Exception as e:
        logger.error(f"Failed to get clothing items for {user_id}: {e}")
        return None


def delete_clothing_item(user_id: str, item_id: str) -> bool:
    """
    Delete a clothing item owned by the user.

    Returns:
        True if deleted, False otherwise
    """
    try:
        collection = mongo.get_collection(COLLECTION)
        if collection is None:
            return False

        result = collection.delete_one({"id": item_id, "user_id": user_id})
        return result.deleted_count > 0

    except Exception as e:
        logger.error(f"Failed to delete clothing item: {e}")
        return False
