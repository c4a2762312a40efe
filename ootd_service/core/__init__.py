# Core module
from ootd_service.core.errors import (
    OutfitServiceError,
    ValidationError,
    AuthError,
    ForbiddenError,
    RateLimitError,
    UpstreamThrottled,
    UpstreamCreditsExhausted,
    UpstreamError,
    InventoryInsufficientError,
    PipelineParseError,
    SelectionConstraintViolation,
    PersistenceError,
    WardrobeUnavailableError,
    CacheWriteError,
)
from ootd_service.core.auth import User, authenticate, ensure_same_user
from ootd_service.core.rate_limit import (
    RateLimiter,
    enforce_rate_limit,
    get_rate_limit_headers,
    get_rate_limit_identifier,
    get_rate_limiter,
)
from ootd_service.core.style_context import StyleContext, detect_context, get_context
from ootd_service.core.validation import GenerateOutfitRequest, parse_generate_request
