"""
Signature Functions
===================
HMAC signature computation and verification for request authentication.
"""

import hmac
import hashlib
import random
import string
import time
from typing import Optional

# Configuration
DEFAULT_FRESHNESS_WINDOW_SECONDS = 5
DEFAULT_NONCE_LENGTH = 16
SIGNATURE_ALGORITHM = "sha256"

NONCE_ALPHABET = string.ascii_letters + string.digits


def sign(secret: str, canonical_message: str) -> str:
    """
    Compute HMAC-SHA256 signature of a canonical message.

    Args:
        secret: Shared app secret
        canonical_message: Output of build_canonical_message

    Returns:
        Hex-encoded HMAC-SHA256 signature
    """
    return hmac.new(
        secret.encode("utf-8"),
        canonical_message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(secret: str, canonical_message: str, provided_signature: str) -> bool:
    """
    Verify a signature using constant-time comparison.

    Args:
        secret: Shared app secret
        canonical_message: Message recomputed from the received request
        provided_signature: Signature sent by the caller

    Returns:
        True if signature is valid
    """
    expected_signature = sign(secret, canonical_message)
    return hmac.compare_digest(
        expected_signature.encode("utf-8"),
        provided_signature.encode("utf-8"),
    )


def check_timestamp_skew(
    timestamp: float,
    max_skew: float = DEFAULT_FRESHNESS_WINDOW_SECONDS,
    now: Optional[float] = None,
) -> bool:
    """
    Check if timestamp is within acceptable skew.

    Args:
        timestamp: Unix timestamp from request
        max_skew: Maximum allowed skew in seconds
        now: Current time, defaults to time.time()

    Returns:
        True if timestamp is acceptable
    """
    current_time = time.time() if now is None else now
    return abs(current_time - timestamp) <= max_skew


def generate_nonce(length: int = DEFAULT_NONCE_LENGTH) -> str:
    """Generate an alphanumeric nonce for request signing.

    Uniqueness is probabilistic; the server still enforces single use.
    """
    if length <= 0:
        raise ValueError("Nonce length must be positive")
    return "".join(random.choice(NONCE_ALPHABET) for _ in range(length))
