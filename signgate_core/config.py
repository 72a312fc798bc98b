"""
Gateway Configuration
=====================
Configuration constants and environment variables.

A local ``.env`` file is loaded first; real environment variables win.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _list(value: Optional[str], default: str) -> List[str]:
    raw = value if value is not None else default
    return [item.strip() for item in raw.split(",") if item.strip()]


# Configuration from environment
SERVICE_NAME = os.getenv("SIGNGATE_SERVICE_NAME", "signgate")
FRESHNESS_WINDOW_SECONDS = float(os.getenv("SIGNGATE_FRESHNESS_WINDOW_SECONDS", "5"))
NONCE_LENGTH = int(os.getenv("SIGNGATE_NONCE_LENGTH", "16"))
REQUIRE_HTTPS = _bool(os.getenv("SIGNGATE_REQUIRE_HTTPS"))
REDIS_URL = os.getenv("SIGNGATE_REDIS_URL")
JWT_SECRET = os.getenv("SIGNGATE_JWT_SECRET")
SESSION_TTL_SECONDS = int(os.getenv("SIGNGATE_SESSION_TTL_SECONDS", "3600"))
LOG_LEVEL = os.getenv("SIGNGATE_LOG_LEVEL", "INFO")
LOG_JSON = _bool(os.getenv("SIGNGATE_LOG_JSON"), default=True)
EXPOSE_METRICS = _bool(os.getenv("SIGNGATE_EXPOSE_METRICS"), default=True)
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


@dataclass(frozen=True)
class GatewayConfig:
    """
    Settings for one gateway process.

    Attributes:
        service_name: Label used in logs and metrics
        freshness_window: Max allowed clock skew in seconds. Must stay
            well below the gap between a request and its deliberate replay
            in acceptance tests (10 seconds).
        nonce_length: Length of client-generated nonces
        require_https: Reject requests not made over HTTPS
        redis_url: Redis URL for the shared cache; in-memory when None
        jwt_secret: Key signing session tokens; sessions disabled when None
        session_ttl: Session token lifetime in seconds
        log_level: Root log level
        log_json: Render logs as JSON
        cors_origins: Origins allowed by the CORS middleware
        expose_metrics: Serve Prometheus text at GET /metrics
    """
    service_name: str = SERVICE_NAME
    freshness_window: float = FRESHNESS_WINDOW_SECONDS
    nonce_length: int = NONCE_LENGTH
    require_https: bool = REQUIRE_HTTPS
    redis_url: Optional[str] = REDIS_URL
    jwt_secret: Optional[str] = JWT_SECRET
    session_ttl: int = SESSION_TTL_SECONDS
    log_level: str = LOG_LEVEL
    log_json: bool = LOG_JSON
    cors_origins: List[str] = field(default_factory=lambda: _list(os.getenv("SIGNGATE_CORS_ORIGINS"), DEFAULT_CORS_ORIGINS))
    expose_metrics: bool = EXPOSE_METRICS

    def __post_init__(self):
        if self.freshness_window <= 0:
            raise ValueError("freshness_window must be positive")
        if self.nonce_length <= 0:
            raise ValueError("nonce_length must be positive")

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build a config from the current environment."""
        load_dotenv()
        return cls(
            service_name=os.getenv("SIGNGATE_SERVICE_NAME", "signgate"),
            freshness_window=float(os.getenv("SIGNGATE_FRESHNESS_WINDOW_SECONDS", "5")),
            nonce_length=int(os.getenv("SIGNGATE_NONCE_LENGTH", "16")),
            require_https=_bool(os.getenv("SIGNGATE_REQUIRE_HTTPS")),
            redis_url=os.getenv("SIGNGATE_REDIS_URL"),
            jwt_secret=os.getenv("SIGNGATE_JWT_SECRET"),
            session_ttl=int(os.getenv("SIGNGATE_SESSION_TTL_SECONDS", "3600")),
            log_level=os.getenv("SIGNGATE_LOG_LEVEL", "INFO"),
            log_json=_bool(os.getenv("SIGNGATE_LOG_JSON"), default=True),
            cors_origins=_list(os.getenv("SIGNGATE_CORS_ORIGINS"), DEFAULT_CORS_ORIGINS),
            expose_metrics=_bool(os.getenv("SIGNGATE_EXPOSE_METRICS"), default=True),
        )
