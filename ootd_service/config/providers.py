"""
Providers Module (v1.1.0)
AI gateway availability and configuration warnings.
"""
import logging
from typing import List, Dict, Any

from ootd_service.config.settings import get_settings
from ootd_service.config.llm_config import get_all_configs_dict

logger = logging.getLogger(__name__)


def get_gateway_status() -> Dict[str, Any]:
    """
    Get gateway status for the health endpoint.

    Returns:
        Dict with configured flag, base url and per-stage models
    """
    settings = get_settings()

    return {
        "configured": settings.has_gateway(),
        "base_url": settings.ai_gateway_url,
        "stages": get_all_configs_dict(),
        "retry": {
            "max_attempts": settings.retry_max_attempts,
            "initial_delay_s": settings.retry_initial_delay,
            "max_delay_s": settings.retry_max_delay,
        },
    }


def validate_gateway_config() -> List[str]:
    """
    Validate gateway configuration and return warnings.

    Returns:
        List of warning messages
    """
    settings = get_settings()
    warnings = []

    if not settings.has_gateway():
        warnings.append("No AI gateway key configured - set OOTD_AI_GATEWAY_API_KEY")

    if not settings.ai_gateway_url.startswith("http"):
        warnings.append(f"AI gateway URL looks invalid: {settings.ai_gateway_url}")

    if settings.retry_max_attempts < 1:
        warnings.append("OOTD_RETRY_MAX_ATTEMPTS must be at least 1")

    if not settings.cors_allowed_origins:
        warnings.append("No CORS origins configured - preflight requests will fail")

    for warning in warnings:
        logger.warning(warning)

    return warnings
