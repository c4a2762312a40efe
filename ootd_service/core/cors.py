"""
CORS Module (v1.0.0)
Origin allow-list with fallback to the first configured origin.
"""
from typing import Dict, Optional

from ootd_service.config.settings import get_settings

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type, x-forwarded-for, x-service-key"
ALLOW_METHODS = "POST, GET, OPTIONS, PUT, DELETE"
MAX_AGE = "86400"


def resolve_origin(origin: Optional[str]) -> str:
    """Echo a recognised origin, otherwise answer with the first allowed one."""
    allowed = get_settings().cors_allowed_origins
    if origin and origin in allowed:
        return origin
    return allowed[0] if allowed else ""


def get_cors_headers(origin: Optional[str] = None) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": resolve_origin(origin),
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Max-Age": MAX_AGE,
        "Vary": "Origin",
    }
