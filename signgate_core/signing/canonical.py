"""
Canonical Message Builder
=========================
Deterministic serialization of the signable fields of a request.

The same function runs on both ends of the wire, so any two parties
holding the shared secret compute byte-identical messages for the same
logical request.
"""

import base64
import json
from email.utils import formatdate, parsedate_to_datetime
from typing import Any, Optional

# Must not occur in any field. Nonces are alphanumeric, HTTP dates and
# verbs contain no dots, and base64 has no dots either.
FIELD_DELIMITER = "."


def canonical_json(body: Any) -> str:
    """Serialize a JSON value with sorted keys and compact separators."""
    return json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def encode_body(body: Optional[Any]) -> str:
    """
    Base64 encoding of the canonical JSON body.

    Args:
        body: Parsed JSON body, or None when the request has no body

    Returns:
        Base64 text, or an empty string for an absent body
    """
    if body is None:
        return ""
    return base64.b64encode(canonical_json(body).encode("utf-8")).decode("ascii")


def parse_body(raw: Optional[bytes]) -> Optional[Any]:
    """
    Parse raw request bytes into a JSON value.

    Raises:
        ValueError: If the bytes are not valid UTF-8 JSON
    """
    if not raw or not raw.strip():
        return None
    return json.loads(raw.decode("utf-8"))


def build_canonical_message(
    method: str,
    path: str,
    nonce: str,
    timestamp: str,
    body: Optional[Any] = None,
) -> str:
    """
    Build the canonical message that gets signed.

    The message covers:
    - Request path (no scheme, host or query)
    - HTTP method
    - Nonce
    - HTTP-date timestamp
    - Base64 of the key-sorted JSON body

    Args:
        method: HTTP method (GET, PUT, ...)
        path: URL path, e.g. /cache/add
        nonce: Single-use request nonce
        timestamp: HTTP-date string, e.g. "Sun, 06 Nov 1994 08:49:37 GMT"
        body: Parsed JSON body or None

    Returns:
        Fields joined with FIELD_DELIMITER
    """
    return FIELD_DELIMITER.join([
        path,
        method.upper(),
        nonce,
        timestamp,
        encode_body(body),
    ])


def format_http_date(epoch_seconds: float) -> str:
    """Format Unix seconds as an IMF-fixdate string."""
    return formatdate(epoch_seconds, usegmt=True)


def parse_http_date(value: str) -> float:
    """
    Parse an HTTP-date header value into Unix seconds.

    Raises:
        ValueError: If the value is not a valid HTTP date
    """
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, IndexError) as e:
        raise ValueError(f"Invalid HTTP date: {value!r}") from e
    if parsed is None:
        raise ValueError(f"Invalid HTTP date: {value!r}")
    if parsed.tzinfo is None:
        raise ValueError(f"HTTP date without timezone: {value!r}")
    return parsed.timestamp()
