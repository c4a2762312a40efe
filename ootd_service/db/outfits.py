"""
Outfits Module (v1.0.0)
Persisted outfits in the `outfits` collection.

The pipeline inserts an outfit once; likes and comments touch it later but the
pipeline never updates it.
"""
import uuid
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from ootd_service.db import mongo

logger = logging.getLogger(__name__)

COLLECTION = "outfits"


def save_outfit(
    user_id: str,
    title: str,
    prompt: str,
    mood: Optional[str],
    is_public: bool,
    description: Optional[str],
    recommended_clothes: List[str],
    ai_analysis: Dict[str, Any],
    generated_image_url: Optional[str] = None,
    purchase_links: Optional[List[dict]] = None,
    styling_tips: Optional[List[str]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Insert a generated outfit.

    Args:
        user_id: Owner user ID
        title: Outfit title from the winning candidate
        prompt: Original request text
        mood: Optional mood
        is_public: Visible in the community feed
        description: Outfit description
        recommended_clothes: Clothing item ids in the outfit
        ai_analysis: Full pipeline trace
        generated_image_url: Hero image, if one was generated
        purchase_links: Shopping links from the request
        styling_tips: Tips from the winning candidate

    Returns:
        Saved outfit document, or None if the write failed
    """
    try:
        collection = mongo.get_collection(COLLECTION)
        if collection is None:
            logger.error("MongoDB not available for outfit save")
            return None

        outfit = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "title": title,
            "prompt": prompt,
            "mood": mood,
            "is_public": is_public,
            "generated_image_url": generated_image_url,
            "description": description,
            "recommended_clothes": recommended_clothes,
            "purchase_links": purchase_links or [],
            "styling_tips": styling_tips or [],
            "ai_analysis": ai_analysis,
            "created_at": datetime.now(timezone.utc),
        }

        collection.insert_one(outfit)
        logger.info(f"Outfit saved: {outfit['id']} ({len(recommended_clothes)} items)")

        saved = mongo.clean_document(outfit)
        saved["created_at"] = saved["created_at"].isoformat()
        return saved

    except Exception as e:
        logger.error(f"Failed to save outfit for {user_id}: {e}")
        return None


def get_recent_item_ids(user_id: str, window: int = 5) -> List[str]:
    """
    Clothing ids used in the user's most recent outfits.

    Args:
        user_id: Owner user ID
        window: How many recent outfits to look at

    Returns:
        Distinct item ids, most recent outfit first
    """
    try:
        collection = mongo.get_collection(COLLECTION)
        if collection is None:
            return []

        cursor = collection.find(
            {"user_id": user_id},
            {"_id": 0, "recommended_clothes": 1},
        ).sort("created_at", -1).limit(window)

        seen: List[str] = []
        for outfit in cursor:
            for item_id in outfit.get("recommended_clothes") or []:
                if item_id not in seen:
                    seen.append(item_id)
        return seen

    except Exception as e:
        logger.error(f"Failed to get recent items for {user_id}: {e}")
        return []
