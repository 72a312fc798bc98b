"""
Authenticator
=============
Server-side verification of signed requests.

Checks run in a fixed order and the first failure wins:

1. All signing headers are present
2. API key resolves to a shared secret
3. Body parses as JSON
4. Signature matches the recomputed canonical message
5. Timestamp lies within the freshness window
6. Nonce has not been used (atomic test-and-set)

Every rejection looks identical to the caller; the BlockReason is for
logs and metrics only.
"""

import time
from typing import Callable
import structlog

from .canonical import build_canonical_message, parse_body, parse_http_date
from .credentials import CredentialStore
from .models import AuthResult, BlockReason, NonceRecord, SignedRequest
from .nonce_ledger import NonceLedger
from .signature import DEFAULT_FRESHNESS_WINDOW_SECONDS, check_timestamp_skew, verify_signature

logger = structlog.get_logger(__name__)


class Authenticator:
    """Verifies signature, freshness and single use of a request."""

    def __init__(
        self,
        credentials: CredentialStore,
        ledger: NonceLedger,
        freshness_window: float = DEFAULT_FRESHNESS_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            credentials: Lookup of api key -> shared secret
            ledger: Nonce ledger used for replay protection
            freshness_window: Max allowed |now - timestamp| in seconds
            clock: Time source, injectable for tests
        """
        if freshness_window <= 0:
            raise ValueError("freshness_window must be positive")
        self.credentials = credentials
        self.ledger = ledger
        self.freshness_window = freshness_window
        self._clock = clock

    def _reject(self, reason: BlockReason, signed: SignedRequest) -> AuthResult:
        logger.warning(
            "request_authentication_failed",
            reason=reason.value,
            api_key_id=signed.api_key_id or None,
            nonce=signed.nonce[:8] or None,
            method=signed.method,
            path=signed.path,
        )
        return AuthResult.block(reason, api_key_id=signed.api_key_id or None, nonce=signed.nonce or None)

    async def authenticate(self, signed: SignedRequest) -> AuthResult:
        """
        Run the verification checks against a received request.

        Args:
            signed: Fields collected from the received request

        Returns:
            AuthResult with decision ALLOW or BLOCK
        """
        if not signed.is_complete:
            return self._reject(BlockReason.MISSING_HEADERS, signed)

        secret = await self.credentials.get_secret(signed.api_key_id)
        if secret is None:
            return self._reject(BlockReason.INVALID_CREDENTIALS, signed)

        try:
            body = parse_body(signed.body)
        except ValueError:
            return self._reject(BlockReason.MALFORMED_BODY, signed)

        message = build_canonical_message(
            signed.method, signed.path, signed.nonce, signed.timestamp, body
        )
        if not verify_signature(secret, message, signed.signature):
            return self._reject(BlockReason.INVALID_SIGNATURE, signed)

        try:
            timestamp = parse_http_date(signed.timestamp)
        except ValueError:
            return self._reject(BlockReason.STALE_REQUEST, signed)
        if not check_timestamp_skew(timestamp, self.freshness_window, now=self._clock()):
            return self._reject(BlockReason.STALE_REQUEST, signed)

        record = NonceRecord(
            api_key_id=signed.api_key_id,
            nonce=signed.nonce,
            expires_at=timestamp + self.freshness_window,
        )
        if not await self.ledger.check_and_store(record):
            return self._reject(BlockReason.REPLAY_DETECTED, signed)

        logger.debug("request_authenticated", api_key_id=signed.api_key_id)
        return AuthResult.allow(signed.api_key_id, signed.nonce)
