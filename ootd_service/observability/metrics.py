"""
Metrics Module (v2.0.0)
Track request counts, cache performance, gateway calls and costs.
"""
import threading
from typing import Dict, Any, Optional

# Thread-safe metrics storage
_lock = threading.Lock()


def _empty_metrics() -> Dict[str, Any]:
    return {
        "total_requests": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "cache_bypasses": 0,
        "ai_calls": 0,
        "ai_calls_by_stage": {},
        "total_tokens": 0,
        "total_cost_usd": 0.0,
        "errors": 0,
        "errors_by_code": {},
    }


_metrics = _empty_metrics()


def increment_request(cache_status: str, error_code: Optional[str] = None):
    """
    Record a finished generation request.

    Args:
        cache_status: hit, miss, bypass or disabled
        error_code: Stable error code if the request failed
    """
    with _lock:
        _metrics["total_requests"] += 1

        if cache_status == "hit":
            _metrics["cache_hits"] += 1
        elif cache_status == "miss":
            _metrics["cache_misses"] += 1
        elif cache_status == "bypass":
            _metrics["cache_bypasses"] += 1

        if error_code:
            _metrics["errors"] += 1
            by_code = _metrics["errors_by_code"]
            by_code[error_code] = by_code.get(error_code, 0) + 1


def record_ai_call(stage: str, tokens: int = 0, cost_usd: float = 0.0):
    """Record one gateway call."""
    with _lock:
        _metrics["ai_calls"] += 1
        by_stage = _metrics["ai_calls_by_stage"]
        by_stage[stage] = by_stage.get(stage, 0) + 1
        _metrics["total_tokens"] += tokens
        _metrics["total_cost_usd"] += cost_usd


def get_metrics() -> Dict[str, Any]:
    """Get current metrics snapshot."""
    with _lock:
        lookups = _metrics["cache_hits"] + _metrics["cache_misses"]

        return {
            "total_requests": _metrics["total_requests"],
            "cache_hits": _metrics["cache_hits"],
            "cache_misses": _metrics["cache_misses"],
            "cache_bypasses": _metrics["cache_bypasses"],
            "cache_hit_ratio": round(_metrics["cache_hits"] / lookups, 3) if lookups > 0 else 0.0,
            "ai_calls": _metrics["ai_calls"],
            "ai_calls_by_stage": dict(_metrics["ai_calls_by_stage"]),
            "total_tokens": _metrics["total_tokens"],
            "total_cost_usd": round(_metrics["total_cost_usd"], 4),
            "errors": _metrics["errors"],
            "errors_by_code": dict(_metrics["errors_by_code"]),
        }


def reset_metrics():
    """Reset all metrics (for testing)."""
    global _metrics
    with _lock:
        _metrics = _empty_metrics()


# Cost per 1K tokens (approximate)
COST_PER_1K_TOKENS = {
    "google/gemini-2.5-flash": 0.0006,
    "google/gemini-2.5-flash-image-preview": 0.03,
}
DEFAULT_COST_PER_1K_TOKENS = 0.001


def estimate_cost(model: str, tokens: int) -> float:
    """Estimate the USD cost of one gateway call."""
    rate = COST_PER_1K_TOKENS.get(model, DEFAULT_COST_PER_1K_TOKENS)
    return round((tokens / 1000) * rate, 6)
