"""
API Routes for OOTD Outfit Service v3.0.0
"""
import asyncio
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ootd_service.cache import cache_manager
from ootd_service.config import get_gateway_status, get_settings
from ootd_service.core.auth import authenticate, ensure_same_user
from ootd_service.core.errors import AuthError, OutfitServiceError, ValidationError
from ootd_service.core.orchestrator import generate_outfit
from ootd_service.core.rate_limit import enforce_rate_limit, get_rate_limit_headers, get_rate_limit_identifier
from ootd_service.core.validation import parse_generate_request
from ootd_service.db import mongo
from ootd_service.observability import get_metrics, is_logging_enabled

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_KEY_HEADER = "X-Service-Key"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# ==================== PUBLIC ENDPOINTS ====================

@router.get("/health")
async def health_check():
    """Health check with observability info."""
    metrics = get_metrics()

    return {
        "status": "ok",
        "version": "3.0.0",
        "gateway": get_gateway_status(),
        "cache": cache_manager.get_status(),
        "mongo": mongo.health_check(),
        "observability": {
            "logging_enabled": is_logging_enabled(),
            "total_requests": metrics["total_requests"],
            "cache_hit_ratio": metrics["cache_hit_ratio"],
            "total_cost_usd": metrics["total_cost_usd"],
        },
    }


@router.get("/metrics")
async def get_metrics_endpoint():
    """Get detailed metrics for monitoring."""
    return JSONResponse(content=get_metrics())


# ==================== OUTFIT GENERATION ====================

@router.post("/generate-outfit")
async def generate_outfit_endpoint(request: Request):
    """
    Generate an outfit from the caller's wardrobe.

    Checks run in order: rate limit, bearer identity, body schema, caller
    matches body userId. Failures raise OutfitServiceError subclasses which
    the app-level handler renders as the error envelope.
    """
    identifier = get_rate_limit_identifier(request)
    enforce_rate_limit(identifier)

    user = authenticate(request)

    try:
        body = await request.json()
    except ValueError:
        raise ValidationError(
            "Invalid request data",
            details=[{"field": "body", "message": "Malformed JSON"}],
        )

    payload = parse_generate_request(body)
    ensure_same_user(user, payload.user_id)

    result = await generate_outfit(payload)

    response = {
        "success": True,
        "data": result["data"],
        "meta": result["meta"],
        "timestamp": _timestamp(),
    }
    return JSONResponse(content=jsonable_encoder(response), headers=get_rate_limit_headers(identifier))


# ==================== INTERNAL ====================

@router.post("/internal/cleanup-outfit-cache")
async def cleanup_outfit_cache(request: Request):
    """Delete expired cache entries and old entries that were never hit."""
    service_key = get_settings().service_key
    if service_key and request.headers.get(SERVICE_KEY_HEADER) != service_key:
        raise AuthError("Invalid service key")

    result = await asyncio.to_thread(cache_manager.cleanup)
    if result is None:
        raise OutfitServiceError("Cache store unavailable")

    logger.info(f"Cache cleanup: {result}")
    return JSONResponse(content={"success": True, "data": result, "timestamp": _timestamp()})
