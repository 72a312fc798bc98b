"""
Signing Models
==============
Data models and enums for request signing and verification.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class AuthDecision(str, Enum):
    """Authenticator decision types."""
    ALLOW = "ALLOW"
    BLOCK = "BLOCK"


class BlockReason(str, Enum):
    """Internal reasons for rejecting a signed request.

    These are logged and counted but never shown to the caller.
    """
    MISSING_HEADERS = "missing_headers"
    INVALID_CREDENTIALS = "invalid_credentials"
    MALFORMED_BODY = "malformed_body"
    INVALID_SIGNATURE = "invalid_signature"
    STALE_REQUEST = "stale_request"
    REPLAY_DETECTED = "replay_detected"


@dataclass(frozen=True)
class SignedRequest:
    """A request carrying the protected signing headers."""
    method: str
    path: str
    body: Optional[bytes]
    timestamp: str
    nonce: str
    api_key_id: str
    signature: str

    @property
    def is_complete(self) -> bool:
        return all([self.timestamp, self.nonce, self.api_key_id, self.signature])


@dataclass(frozen=True)
class NonceRecord:
    """A consumed nonce, valid until ``expires_at`` (Unix seconds)."""
    api_key_id: str
    nonce: str
    expires_at: float

    @property
    def key(self) -> str:
        return f"nonce:{self.api_key_id}:{self.nonce}"


@dataclass
class AuthResult:
    """Result of authentication check."""
    decision: AuthDecision
    reason_code: Optional[BlockReason] = None
    api_key_id: Optional[str] = None
    nonce: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.decision == AuthDecision.ALLOW

    @classmethod
    def allow(cls, api_key_id: str, nonce: str) -> "AuthResult":
        return cls(AuthDecision.ALLOW, api_key_id=api_key_id, nonce=nonce)

    @classmethod
    def block(
        cls,
        reason: BlockReason,
        api_key_id: Optional[str] = None,
        nonce: Optional[str] = None,
    ) -> "AuthResult":
        return cls(AuthDecision.BLOCK, reason_code=reason, api_key_id=api_key_id, nonce=nonce)
