"""
Session Tokens
==============
Issuance and verification of bearer session tokens.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import jwt
import structlog

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_SESSION_TTL_SECONDS = 3600


class SessionManager(ABC):
    """Issues tokens for logged-in subjects and verifies them later."""

    @abstractmethod
    def issue(self, claims: Dict[str, Any]) -> str:
        """Create a token carrying the given claims."""

    @abstractmethod
    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the token's claims, or None if it is invalid or expired."""


class JWTSessionManager(SessionManager):
    """
    HS256 JWT sessions.

    Tokens carry the caller's claims plus ``iat`` and ``exp``.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        algorithm: str = JWT_ALGORITHM,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm
        self._clock = clock

    def issue(self, claims: Dict[str, Any]) -> str:
        now = int(self._clock())
        payload = dict(claims)
        payload["iat"] = now
        payload["exp"] = now + self.ttl_seconds
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        # Expiry is checked against the injected clock, not PyJWT's own
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as e:
            logger.info("session_token_invalid", error=str(e))
            return None
        if not isinstance(claims["exp"], (int, float)):
            logger.info("session_token_invalid", error="exp is not numeric")
            return None
        if claims["exp"] <= self._clock():
            logger.info("session_token_expired")
            return None
        return claims
