"""
Rate Limiting Module (v3.0.0)
Fixed-window per-caller limiter for the generation endpoint.

State lives in process memory only: counts reset on restart and are not
shared between instances.
"""
import time
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from fastapi import Request

from ootd_service.config.settings import get_settings
from ootd_service.core.errors import RateLimitError

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """
    Fixed-window counter keyed by caller identifier.

    The first call for an identifier (or the first after its window expired)
    opens a new window with count=1. Later calls inside the window are
    accepted until `max_requests` is reached.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str) -> bool:
        """
        Register a request and report whether it is allowed.

        Args:
            identifier: Bearer token or client IP

        Returns:
            True if accepted, False if the window is exhausted
        """
        now = self._clock()
        with self._lock:
            window = self._windows.get(identifier)

            if window is None or now >= window.reset_at:
                self._windows[identifier] = _Window(count=1, reset_at=now + self.window_seconds)
                return True

            if window.count >= self.max_requests:
                return False

            window.count += 1
            return True

    def count(self, identifier: str) -> int:
        """Requests counted in the identifier's live window."""
        with self._lock:
            window = self._windows.get(identifier)
            if window is None or self._clock() >= window.reset_at:
                return 0
            return window.count

    def remaining(self, identifier: str) -> int:
        return max(0, self.max_requests - self.count(identifier))

    def reset_in(self, identifier: str) -> int:
        """Seconds until the identifier's window resets (0 if none is open)."""
        with self._lock:
            window = self._windows.get(identifier)
            if window is None:
                return 0
            return max(0, int(round(window.reset_at - self._clock())))

    def reset(self) -> None:
        """Drop all windows (for testing)."""
        with self._lock:
            self._windows.clear()


def _build_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get the process-wide limiter (created from settings on first use)."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = _build_limiter()
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Rebuild the limiter from current settings (for testing)."""
    global _rate_limiter
    _rate_limiter = None


def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request.
    Handles X-Forwarded-For for reverse proxy setups.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take first IP in chain
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def get_rate_limit_identifier(request: Request) -> str:
    """Bearer token when present, otherwise the caller's IP."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        if token:
            return f"token:{token}"
    return f"ip:{get_client_ip(request)}"


def enforce_rate_limit(identifier: str) -> None:
    """
    Apply the limiter to one request.

    Raises:
        RateLimitError: If the caller's window is exhausted
    """
    limiter = get_rate_limiter()
    if not limiter.check(identifier):
        retry_after = limiter.reset_in(identifier) or int(limiter.window_seconds)
        logger.warning(f"Rate limit exceeded: identifier={identifier[:24]}...")
        raise RateLimitError(
            "Too many requests. Please wait a moment before generating another outfit.",
            retry_after=retry_after,
        )


def get_rate_limit_headers(identifier: str) -> Dict[str, str]:
    """
    Generate rate limit headers for response.

    Returns:
        Dict with X-RateLimit-* headers
    """
    limiter = get_rate_limiter()
    return {
        "X-RateLimit-Limit": str(limiter.max_requests),
        "X-RateLimit-Remaining": str(limiter.remaining(identifier)),
        "X-RateLimit-Reset": str(int(time.time()) + limiter.reset_in(identifier)),
    }
