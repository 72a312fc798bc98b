"""
Signgate Core Library
=====================
Signed-request authentication, replay protection and access control for
HTTP APIs.
"""

__version__ = "0.3.0"

# Signing
from signgate_core.signing import (
    Authenticator,
    AuthResult,
    BlockReason,
    CacheNonceLedger,
    CredentialStore,
    NonceLedger,
    SignedRequest,
    StaticCredentialStore,
    build_canonical_message,
    create_signed_headers,
    generate_nonce,
    sign,
    verify_signature,
)

# Cache
from signgate_core.cache import InMemoryCache, KeyValueCache, RedisCache

# Access control
from signgate_core.access import (
    AccessGrant,
    AccessLevel,
    AccessLevelEvaluator,
    JWTSessionManager,
    MethodCharacteristic,
    SessionManager,
)

# Registry
from signgate_core.registry import (
    EndpointDescriptor,
    EndpointRegistry,
    HandlerResponse,
    QueryParameter,
    RequestContext,
)

# Errors and envelope
from signgate_core.errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    RegistrationError,
    ValidationError,
)
from signgate_core.envelope import ResponseEnvelope

# Application
from signgate_core.app import AppManager
from signgate_core.client import SignedClient
from signgate_core.config import GatewayConfig
from signgate_core.logging_config import setup_logging
from signgate_core.metrics import SimpleMetrics

__all__ = [
    "__version__",
    # Signing
    "Authenticator",
    "AuthResult",
    "BlockReason",
    "CacheNonceLedger",
    "CredentialStore",
    "NonceLedger",
    "SignedRequest",
    "StaticCredentialStore",
    "build_canonical_message",
    "create_signed_headers",
    "generate_nonce",
    "sign",
    "verify_signature",
    # Cache
    "InMemoryCache",
    "KeyValueCache",
    "RedisCache",
    # Access control
    "AccessGrant",
    "AccessLevel",
    "AccessLevelEvaluator",
    "JWTSessionManager",
    "MethodCharacteristic",
    "SessionManager",
    # Registry
    "EndpointDescriptor",
    "EndpointRegistry",
    "HandlerResponse",
    "QueryParameter",
    "RequestContext",
    # Errors and envelope
    "ApiError",
    "AuthenticationError",
    "AuthorizationError",
    "ForbiddenError",
    "InternalError",
    "NotFoundError",
    "RegistrationError",
    "ValidationError",
    "ResponseEnvelope",
    # Application
    "AppManager",
    "SignedClient",
    "GatewayConfig",
    "setup_logging",
    "SimpleMetrics",
]
