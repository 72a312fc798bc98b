"""
Request Signing Module
======================
HMAC request signing, verification and replay protection.
"""

from .models import AuthDecision, AuthResult, BlockReason, NonceRecord, SignedRequest
from .canonical import (
    FIELD_DELIMITER,
    build_canonical_message,
    canonical_json,
    encode_body,
    format_http_date,
    parse_body,
    parse_http_date,
)
from .signature import (
    DEFAULT_FRESHNESS_WINDOW_SECONDS,
    DEFAULT_NONCE_LENGTH,
    SIGNATURE_ALGORITHM,
    check_timestamp_skew,
    generate_nonce,
    sign,
    verify_signature,
)
from .headers import (
    HEADER_API_KEY,
    HEADER_AUTHORIZATION,
    HEADER_DATE,
    HEADER_NONCE,
    HEADER_SIGNATURE,
    create_signed_headers,
    extract_bearer_token,
    parse_signed_headers,
)
from .credentials import CredentialStore, StaticCredentialStore
from .nonce_ledger import CacheNonceLedger, NonceLedger
from .authenticator import Authenticator

__all__ = [
    # Models
    "AuthDecision",
    "AuthResult",
    "BlockReason",
    "NonceRecord",
    "SignedRequest",
    # Canonical message
    "FIELD_DELIMITER",
    "build_canonical_message",
    "canonical_json",
    "encode_body",
    "format_http_date",
    "parse_body",
    "parse_http_date",
    # Signature
    "DEFAULT_FRESHNESS_WINDOW_SECONDS",
    "DEFAULT_NONCE_LENGTH",
    "SIGNATURE_ALGORITHM",
    "check_timestamp_skew",
    "generate_nonce",
    "sign",
    "verify_signature",
    # Headers
    "HEADER_API_KEY",
    "HEADER_AUTHORIZATION",
    "HEADER_DATE",
    "HEADER_NONCE",
    "HEADER_SIGNATURE",
    "create_signed_headers",
    "extract_bearer_token",
    "parse_signed_headers",
    # Credentials
    "CredentialStore",
    "StaticCredentialStore",
    # Nonce ledger
    "CacheNonceLedger",
    "NonceLedger",
    # Authenticator
    "Authenticator",
]
