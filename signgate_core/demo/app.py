"""
Demo Application
================
Reference API exercising every gate: signed requests, login, public and
authenticated endpoints, validated bodies and query parameters, and an
owner-only deletion.
"""

import os
import secrets
import time
from typing import Callable, Optional

import structlog
from fastapi import FastAPI

from ..access.sessions import JWTSessionManager
from ..app import AppManager
from ..cache.base import KeyValueCache
from ..cache.memory import InMemoryCache
from ..cache.redis_cache import RedisCache
from ..config import GatewayConfig
from ..signing.credentials import CredentialStore, StaticCredentialStore
from .data import DemoDataManager
from .endpoints import build_endpoints

logger = structlog.get_logger(__name__)


def build_demo_manager(
    config: Optional[GatewayConfig] = None,
    credentials: Optional[CredentialStore] = None,
    cache: Optional[KeyValueCache] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    clock: Callable[[], float] = time.time,
) -> AppManager:
    """
    Assemble the demo AppManager.

    Args:
        config: Gateway settings, read from the environment when omitted
        credentials: API key store, defaults to API_KEY/APP_KEY
        cache: Cache, defaults to Redis when configured, else in-memory
        username: Demo login user, defaults to SIGNGATE_DEMO_USERNAME
        password: Demo login password, defaults to SIGNGATE_DEMO_PASSWORD
        clock: Time source for freshness checks and session expiry
    """
    config = config or GatewayConfig.from_env()
    credentials = credentials or StaticCredentialStore.from_env()
    if cache is None:
        cache = RedisCache.from_url(config.redis_url) if config.redis_url else InMemoryCache()

    jwt_secret = config.jwt_secret
    if not jwt_secret:
        logger.warning("jwt_secret_missing", fallback="random per-process secret")
        jwt_secret = secrets.token_urlsafe(32)
    sessions = JWTSessionManager(jwt_secret, ttl_seconds=config.session_ttl, clock=clock)

    data = DemoDataManager(
        cache,
        sessions,
        username=username if username is not None else os.getenv("SIGNGATE_DEMO_USERNAME"),
        password=password if password is not None else os.getenv("SIGNGATE_DEMO_PASSWORD"),
    )

    manager = AppManager(
        credentials=credentials,
        cache=cache,
        sessions=sessions,
        config=config,
        clock=clock,
    )
    manager.register_all(build_endpoints(cache, data))
    return manager


def create_demo_app(**kwargs) -> FastAPI:
    """Build the demo FastAPI app; keyword arguments go to build_demo_manager."""
    return build_demo_manager(**kwargs).create_app(cors=True)
