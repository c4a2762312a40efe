"""
Error Taxonomy (v1.0.0)
Typed failures raised by the outfit pipeline and mapped to HTTP responses.

Every error carries an HTTP status and a stable machine-readable code. The
route layer renders them as {success: false, error: {message, code, details}}.
"""
from typing import Any, Optional


class OutfitServiceError(Exception):
    """Base class for all pipeline failures surfaced to the caller."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        error = {"message": self.message, "code": self.code}
        if self.details is not None:
            error["details"] = self.details
        return error


# ==================== REQUEST ERRORS ====================

class ValidationError(OutfitServiceError):
    """Malformed or out-of-range request body."""
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthError(OutfitServiceError):
    """Missing or unreadable bearer identity."""
    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(OutfitServiceError):
    """Authenticated caller acting on someone else's behalf."""
    status_code = 403
    code = "FORBIDDEN"


class RateLimitError(OutfitServiceError):
    """Local per-caller limiter rejected the request."""
    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, message: str, retry_after: int = 60, details: Optional[Any] = None):
        super().__init__(message, details)
        self.retry_after = retry_after


# ==================== UPSTREAM (AI GATEWAY) ERRORS ====================

class UpstreamThrottled(OutfitServiceError):
    """AI gateway answered 429."""
    status_code = 429
    code = "AI_RATE_LIMITED"


class UpstreamCreditsExhausted(OutfitServiceError):
    """AI gateway answered 402. Terminal, needs operator action."""
    status_code = 402
    code = "AI_CREDITS_EXHAUSTED"


class UpstreamError(OutfitServiceError):
    """Any other gateway failure; `upstream_status` is None for transport errors."""
    status_code = 500
    code = "AI_SERVICE_ERROR"

    def __init__(self, message: str, upstream_status: Optional[int] = None, details: Optional[Any] = None):
        super().__init__(message, details)
        self.upstream_status = upstream_status

    @property
    def retryable(self) -> bool:
        status = self.upstream_status
        return status is None or status == 408 or status >= 500


# ==================== PIPELINE ERRORS ====================

class InventoryInsufficientError(OutfitServiceError):
    status_code = 400
    code = "INSUFFICIENT_ITEMS"


class PipelineParseError(OutfitServiceError):
    """AI response was not usable JSON."""
    status_code = 500
    code = "AI_PARSE_ERROR"


class SelectionConstraintViolation(OutfitServiceError):
    """Winning candidate left out a pinned item."""
    status_code = 500
    code = "SELECTED_ITEMS_NOT_INCLUDED"


class PersistenceError(OutfitServiceError):
    status_code = 500
    code = "SAVE_FAILED"


class WardrobeUnavailableError(OutfitServiceError):
    status_code = 500
    code = "WARDROBE_UNAVAILABLE"


class CacheWriteError(OutfitServiceError):
    """Raised by the cache layer and always swallowed by the orchestrator."""
    code = "CACHE_WRITE_FAILED"
