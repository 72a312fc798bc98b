"""
Header Functions
=================
Functions for creating and parsing signed request headers.
"""

import time
from typing import Any, Dict, Mapping, Optional

from .canonical import build_canonical_message, format_http_date
from .models import SignedRequest
from .signature import DEFAULT_NONCE_LENGTH, generate_nonce, sign

HEADER_API_KEY = "X-API-Key"
HEADER_SIGNATURE = "X-Signature"
HEADER_NONCE = "X-Nonce"
HEADER_DATE = "Date"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"

JSON_CONTENT_TYPE = "application/json"
BEARER_PREFIX = "Bearer"


def create_signed_headers(
    secret: str,
    api_key_id: str,
    method: str,
    path: str,
    body: Optional[Any] = None,
    auth_token: Optional[str] = None,
    nonce: Optional[str] = None,
    now: Optional[float] = None,
    nonce_length: int = DEFAULT_NONCE_LENGTH,
) -> Dict[str, str]:
    """
    Create headers for a signed request.

    Pure derivation: the request is not sent.

    Args:
        secret: Shared app secret
        api_key_id: API key identifying the app
        method: HTTP method
        path: Request path, without query string
        body: JSON body (optional)
        auth_token: Session token sent as a bearer credential (optional)
        nonce: Explicit nonce, generated when omitted
        now: Explicit Unix time, defaults to time.time()
        nonce_length: Length of generated nonces

    Returns:
        Dictionary of headers to include in request
    """
    timestamp = format_http_date(time.time() if now is None else now)
    nonce = nonce or generate_nonce(nonce_length)
    message = build_canonical_message(method, path, nonce, timestamp, body)

    headers = {
        HEADER_API_KEY: api_key_id,
        HEADER_SIGNATURE: sign(secret, message),
        HEADER_NONCE: nonce,
        HEADER_DATE: timestamp,
        HEADER_CONTENT_TYPE: JSON_CONTENT_TYPE,
    }
    if auth_token:
        headers[HEADER_AUTHORIZATION] = f"{BEARER_PREFIX} {auth_token}"
    return headers


def parse_signed_headers(
    headers: Mapping[str, str],
    method: str,
    path: str,
    body: Optional[bytes],
) -> SignedRequest:
    """
    Collect the signable fields of a received request.

    Missing headers come back as empty strings; check
    ``SignedRequest.is_complete`` before verifying.

    Args:
        headers: Request headers (case-insensitive mapping)
        method: HTTP method as received
        path: URL path as received
        body: Raw body bytes

    Returns:
        SignedRequest
    """
    return SignedRequest(
        method=method,
        path=path,
        body=body,
        timestamp=headers.get(HEADER_DATE, ""),
        nonce=headers.get(HEADER_NONCE, ""),
        api_key_id=headers.get(HEADER_API_KEY, ""),
        signature=headers.get(HEADER_SIGNATURE, ""),
    )


def extract_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Return the token of an ``Authorization: Bearer <token>`` header."""
    value = headers.get(HEADER_AUTHORIZATION, "")
    parts = value.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_PREFIX or not parts[1]:
        return None
    return parts[1]
