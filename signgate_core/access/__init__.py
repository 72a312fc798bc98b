"""
Access Control Module
=====================
Access tiers, session tokens and the access-level evaluator.
"""

from .levels import AccessLevel, MethodCharacteristic
from .sessions import DEFAULT_SESSION_TTL_SECONDS, JWTSessionManager, SessionManager
from .evaluator import PUBLIC_GRANT, AccessGrant, AccessLevelEvaluator

__all__ = [
    "AccessLevel",
    "MethodCharacteristic",
    "DEFAULT_SESSION_TTL_SECONDS",
    "JWTSessionManager",
    "SessionManager",
    "PUBLIC_GRANT",
    "AccessGrant",
    "AccessLevelEvaluator",
]
