"""
OOTD Outfit Service v3.0.0
Prompt-driven outfit generation from the user's own wardrobe.

ROUTES:
-------
- POST /generate-outfit               - Main outfit generation endpoint
- POST /internal/cleanup-outfit-cache - Expired/unused cache cleanup (service key)
- GET  /health, /metrics              - Health and monitoring

Every failure is rendered as {success: false, error: {message, code, details}}.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from ootd_service.app.routes import router
from ootd_service.cache import cache_manager
from ootd_service.config import validate_gateway_config
from ootd_service.core.cors import get_cors_headers
from ootd_service.core.errors import OutfitServiceError, RateLimitError
from ootd_service.db import mongo
from ootd_service.llm.gateway_client import close_sdk_clients
from ootd_service.observability import is_logging_enabled

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 50)
    logger.info("OOTD Outfit Service v3.0.0 Starting...")
    logger.info("Pipeline: classify -> requirements -> candidates -> select")
    logger.info("=" * 50)

    mongo_connected = mongo.connect()
    logger.info(f"MongoDB: {'connected' if mongo_connected else 'disconnected'}")

    warnings = validate_gateway_config()
    logger.info(f"AI gateway: {'ready' if not warnings else f'{len(warnings)} warning(s)'}")

    cache_status = cache_manager.get_status()
    logger.info(f"Cache: {'enabled' if cache_status['enabled'] else 'disabled'}")

    logger.info(f"Logging: {'enabled' if is_logging_enabled() else 'disabled'}")
    logger.info("Service ready! Metrics available at /metrics")
    logger.info("=" * 50)

    yield

    logger.info("Service shutting down...")
    await close_sdk_clients()


app = FastAPI(
    title="OOTD Outfit Service",
    description="Wardrobe-aware outfit generation pipeline",
    version="3.0.0",
    lifespan=lifespan,
)


# ==================== MIDDLEWARE ====================

@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Allow-list CORS: answer preflight directly, decorate everything else."""
    headers = get_cors_headers(request.headers.get("origin"))

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    response = await call_next(request)
    response.headers.update(headers)
    return response


# ==================== ERROR HANDLERS ====================

@app.exception_handler(OutfitServiceError)
async def outfit_service_error_handler(request: Request, exc: OutfitServiceError):
    headers = {}
    if isinstance(exc, RateLimitError):
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.to_dict()},
        headers=headers,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {"message": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
        },
        headers=get_cors_headers(request.headers.get("origin")),
    )


app.include_router(router)
