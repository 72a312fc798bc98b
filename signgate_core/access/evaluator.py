"""
Access-Level Evaluator
======================
Classifies a request as PUBLIC or AUTHENTICATED from its bearer token.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..signing.headers import extract_bearer_token
from .levels import AccessLevel
from .sessions import SessionManager


@dataclass(frozen=True)
class AccessGrant:
    """Computed access level and, when authenticated, the session claims."""
    level: AccessLevel
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def subject(self) -> Optional[str]:
        return self.claims.get("sub")


PUBLIC_GRANT = AccessGrant(level=AccessLevel.PUBLIC)


class AccessLevelEvaluator:
    """
    Resolves the access level of a request.

    A request is AUTHENTICATED only when it carries a bearer token that
    the session manager accepts. Missing, malformed, invalid and expired
    tokens all yield PUBLIC. Without a session manager every request is
    PUBLIC.
    """

    def __init__(self, sessions: Optional[SessionManager] = None):
        self.sessions = sessions

    def evaluate(self, headers: Mapping[str, str]) -> AccessGrant:
        token = extract_bearer_token(headers)
        if token is None or self.sessions is None:
            return PUBLIC_GRANT

        claims = self.sessions.verify(token)
        if claims is None:
            return PUBLIC_GRANT
        return AccessGrant(level=AccessLevel.AUTHENTICATED, claims=claims)
