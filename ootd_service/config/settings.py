"""
Settings Module (v1.2.0)
Centralized configuration from environment variables.
"""
import os
import logging
from dataclasses import dataclass, field
from typing import Optional, List

logger = logging.getLogger(__name__)


DEFAULT_CORS_ORIGINS = (
    "https://ootd.app",
    "https://www.ootd.app",
    "http://localhost:5173",
)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: tuple) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    """Application settings from environment variables."""

    # AI Gateway
    ai_gateway_api_key: Optional[str] = None
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1"

    # Rate Limiting
    rate_limit_max_requests: int = 5
    rate_limit_window_seconds: int = 60

    # Outfit Cache
    cache_enabled: bool = True
    cache_ttl_hours: int = 24
    cache_unused_max_age_days: int = 7

    # Upstream retry/backoff
    retry_max_attempts: int = 3
    retry_initial_delay: float = 1.0
    retry_multiplier: float = 2.0
    retry_max_delay: float = 10.0

    # HTTP surface
    cors_allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    jwt_secret: Optional[str] = None
    service_key: Optional[str] = None

    # Context sources
    pinterest_access_token: Optional[str] = None
    max_trend_snippets: int = 3
    recent_outfits_window: int = 5
    liked_history_limit: int = 5

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            # AI Gateway
            ai_gateway_api_key=os.getenv("OOTD_AI_GATEWAY_API_KEY"),
            ai_gateway_url=os.getenv("OOTD_AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1"),

            # Rate Limiting
            rate_limit_max_requests=int(os.getenv("OOTD_RATE_LIMIT_MAX_REQUESTS", "5")),
            rate_limit_window_seconds=int(os.getenv("OOTD_RATE_LIMIT_WINDOW_SECONDS", "60")),

            # Outfit Cache
            cache_enabled=_env_bool("OOTD_CACHE_ENABLED", "true"),
            cache_ttl_hours=int(os.getenv("OOTD_CACHE_TTL_HOURS", "24")),
            cache_unused_max_age_days=int(os.getenv("OOTD_CACHE_UNUSED_MAX_AGE_DAYS", "7")),

            # Upstream retry/backoff
            retry_max_attempts=int(os.getenv("OOTD_RETRY_MAX_ATTEMPTS", "3")),
            retry_initial_delay=float(os.getenv("OOTD_RETRY_INITIAL_DELAY", "1.0")),
            retry_multiplier=float(os.getenv("OOTD_RETRY_MULTIPLIER", "2.0")),
            retry_max_delay=float(os.getenv("OOTD_RETRY_MAX_DELAY", "10.0")),

            # HTTP surface
            cors_allowed_origins=_env_list("OOTD_CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS),
            jwt_secret=os.getenv("OOTD_JWT_SECRET") or None,
            service_key=os.getenv("OOTD_SERVICE_KEY") or None,

            # Context sources
            pinterest_access_token=os.getenv("PINTEREST_ACCESS_TOKEN") or None,
            max_trend_snippets=int(os.getenv("OOTD_MAX_TREND_SNIPPETS", "3")),
            recent_outfits_window=int(os.getenv("OOTD_RECENT_OUTFITS_WINDOW", "5")),
            liked_history_limit=int(os.getenv("OOTD_LIKED_HISTORY_LIMIT", "5")),
        )

    def has_gateway(self) -> bool:
        """Check if the AI gateway key is configured."""
        return bool(self.ai_gateway_api_key)

    def has_pinterest(self) -> bool:
        return bool(self.pinterest_access_token)

    def to_dict(self) -> dict:
        """Export settings as dict (without sensitive keys)."""
        return {
            "ai_gateway_url": self.ai_gateway_url,
            "ai_gateway_configured": self.has_gateway(),
            "rate_limit": f"{self.rate_limit_max_requests}/{self.rate_limit_window_seconds}s",
            "cache_enabled": self.cache_enabled,
            "cache_ttl_hours": self.cache_ttl_hours,
            "retry_max_attempts": self.retry_max_attempts,
            "cors_allowed_origins": self.cors_allowed_origins,
            "jwt_verification": bool(self.jwt_secret),
            "pinterest_configured": self.has_pinterest(),
        }


def get_settings() -> Settings:
    """Get application settings (cached singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info(f"Settings loaded: {_settings.to_dict()}")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings.from_env()
    logger.info(f"Settings reloaded: {_settings.to_dict()}")
    return _settings


# Singleton instance
_settings: Optional[Settings] = None
