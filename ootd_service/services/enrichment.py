"""
Texture Enrichment Jobs (v1.0.0)
Fire-and-forget job enqueue after an outfit is saved.

A separate worker consumes `texture_jobs`; the request path only attempts the
enqueue and never waits for or reports on it.
"""
import asyncio
import logging
from typing import List, Optional, Set
from datetime import datetime, timezone

from ootd_service.db import mongo

logger = logging.getLogger(__name__)

COLLECTION = "texture_jobs"

# Strong references so pending tasks are not garbage collected
_pending: Set[asyncio.Task] = set()


def enqueue_texture_jobs(outfit_id: str, items: List[dict]) -> int:
    """
    Insert one pending job per clothing item with an image.

    Returns:
        Number of jobs enqueued
    """
    jobs = [
        {
            "outfit_id": outfit_id,
            "clothing_id": item.get("id"),
            "image_url": item.get("image_url"),
            "clothing_type": item.get("category"),
            "status": "pending",
            "created_at": datetime.now(timezone.utc),
        }
        for item in items
        if item.get("image_url")
    ]
    if not jobs:
        return 0

    collection = mongo.get_collection(COLLECTION)
    if collection is None:
        logger.warning("MongoDB not available for texture jobs")
        return 0

    collection.insert_many(jobs)
    logger.info(f"Enqueued {len(jobs)} texture jobs for outfit {outfit_id}")
    return len(jobs)


async def _run_enqueue(outfit_id: str, items: List[dict]) -> None:
    try:
        await asyncio.to_thread(enqueue_texture_jobs, outfit_id, items)
    except Exception as e:
        logger.warning(f"Texture job enqueue failed for outfit {outfit_id}: {e}")


def schedule_enrichment(outfit_id: str, items: List[dict]) -> Optional[asyncio.Task]:
    """
    Start the enqueue in the background and return immediately.

    Returns:
        The background task, or None when scheduling itself failed
    """
    try:
        task = asyncio.get_running_loop().create_task(_run_enqueue(outfit_id, items))
    except RuntimeError as e:
        logger.warning(f"Could not schedule texture enrichment: {e}")
        return None

    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task
