"""
Profile & Style History Module (v3.0.0)
User profile preferences and liked-outfit history used to personalize prompts.
"""
import logging
from typing import Optional, List, Dict, Any

from ootd_service.db import mongo

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("body_type", "style_preferences", "favorite_colors", "location")


# ==================== PROFILE ====================

def get_profile(user_id: str) -> Dict[str, Any]:
    """
    Get the stored style profile.

    Returns:
        Dict with any of body_type, style_preferences, favorite_colors, location
    """
    try:
        collection = mongo.get_collection("profiles")
        if collection is None:
            return {}

        doc = collection.find_one({"user_id": user_id}, {"_id": 0})
        if not doc:
            return {}

        return {key: doc[key] for key in PROFILE_FIELDS if doc.get(key) not in (None, "", [])}

    except Exception as e:
        logger.error(f"Failed to get profile for {user_id}: {e}")
        return {}


def merge_preferences(profile: Dict[str, Any], request_preferences: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Overlay request preferences on the stored profile; request values win."""
    merged = dict(profile)
    for key, value in (request_preferences or {}).items():
        if value not in (None, "", []):
            merged[key] = value
    return merged


# ==================== LIKED OUTFITS ====================

def get_liked_outfits(user_id: str, limit: int = 5) -> List[dict]:
    """
    Get summaries of outfits the user liked, most recent like first.

    Returns:
        List of {title, prompt, mood, style_context, occasion, style}
    """
    try:
        feedback_collection = mongo.get_collection("outfit_feedback")
        outfits_collection = mongo.get_collection("outfits")
        if feedback_collection is None or outfits_collection is None:
            return []

        likes = feedback_collection.find(
            {"user_id": user_id, "feedback_type": "like"},
            {"_id": 0, "outfit_id": 1},
        ).sort("created_at", -1).limit(limit)

        outfit_ids = [like["outfit_id"] for like in likes]
        if not outfit_ids:
            return []

        outfits = {
            outfit["id"]: outfit
            for outfit in outfits_collection.find(
                {"id": {"$in": outfit_ids}},
                {"_id": 0, "id": 1, "title": 1, "prompt": 1, "mood": 1, "ai_analysis": 1},
            )
        }

        history = []
        for outfit_id in outfit_ids:
            outfit = outfits.get(outfit_id)
            if not outfit:
                continue
            analysis = outfit.get("ai_analysis") or {}
            classification = analysis.get("classification") or {}
            history.append({
                "title": outfit.get("title"),
                "prompt": outfit.get("prompt"),
                "mood": outfit.get("mood"),
                "style_context": analysis.get("style_context"),
                "occasion": classification.get("occasion"),
                "style": classification.get("style"),
            })

        return history

    except Exception as e:
        logger.error(f"Failed to get liked outfits for {user_id}: {e}")
        return []
