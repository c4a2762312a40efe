"""
Request Logger (v2.0.0)
One structured JSON line per outfit-generation request.
"""
import os
import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

LOGS_DIR = Path(os.getenv("OOTD_LOGS_DIR", Path(__file__).parent.parent.parent / "logs"))
REQUEST_LOG_FILE = LOGS_DIR / "requests.log"

request_logger = logging.getLogger("ootd.requests")
request_logger.setLevel(logging.INFO)

# Prevent propagation to root logger
request_logger.propagate = False


def _ensure_handler() -> None:
    """Attach the file handler on first use."""
    if request_logger.handlers:
        return
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(REQUEST_LOG_FILE, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    request_logger.addHandler(file_handler)


def is_logging_enabled() -> bool:
    """Check if request logging is enabled."""
    return os.getenv("OOTD_LOGGING_ENABLED", "true").lower() == "true"


def log_request(
    request_id: str,
    user_id: Optional[str],
    cache_status: str,
    latency_ms: int,
    status: str,
    error_code: Optional[str] = None,
    candidates: int = 0,
    ai_calls: int = 0,
    tokens: int = 0,
    cost_usd: float = 0.0,
):
    """
    Log a structured request entry.

    Args:
        request_id: Unique id for this generation
        user_id: Caller
        cache_status: hit, miss, bypass or disabled
        latency_ms: Request latency in milliseconds
        status: success or fail
        error_code: Stable error code if failed
        candidates: Candidates produced by the generator
        ai_calls: Gateway calls made
        tokens: Token usage reported by the gateway
        cost_usd: Estimated cost in USD
    """
    if not is_logging_enabled():
        return

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "user_id": user_id,
        "cache_status": cache_status,
        "latency_ms": latency_ms,
        "status": status,
        "candidates": candidates,
        "ai_calls": ai_calls,
        "tokens": tokens,
        "cost_usd": round(cost_usd, 6),
    }

    if error_code:
        entry["error_code"] = error_code

    _ensure_handler()
    request_logger.info(json.dumps(entry))
