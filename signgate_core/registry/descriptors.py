"""
Endpoint Descriptors
====================
Declarative endpoint configuration built once at startup.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from ..access.evaluator import PUBLIC_GRANT, AccessGrant
from ..access.levels import AccessLevel, MethodCharacteristic
from ..signing.models import AuthResult
from .validators import BodyValidator, PassthroughProcessor, QueryParameterProcessor, QueryParameterValidator

HTTP_VERBS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class QueryParameter:
    """A declared query parameter with its validator and processor."""
    name: str
    validator: QueryParameterValidator
    processor: QueryParameterProcessor = field(default_factory=PassthroughProcessor)
    required: bool = False


@dataclass
class HandlerResponse:
    """What a handler returns: payload plus HTTP status."""
    data: Any
    status: int = 200


@dataclass
class RequestContext:
    """
    Per-request state threaded through the pipeline.

    Attributes:
        method: HTTP method
        path: URL path
        headers: Request headers
        raw_query: Query string parameters as received
        body: Raw body bytes
        scheme: URL scheme seen by the server
        request_id: Correlation id for logs
        path_params: Values captured by ``:name`` route segments
        query_parameters: Validated and processed query parameters
        json_body: Parsed JSON body
        auth: Authenticator outcome, None for exempt endpoints
        access: Computed access level and session claims
    """
    method: str
    path: str
    headers: Mapping[str, str]
    raw_query: Mapping[str, str]
    body: bytes = b""
    scheme: str = "http"
    request_id: str = ""
    path_params: Dict[str, str] = field(default_factory=dict)
    query_parameters: Dict[str, Any] = field(default_factory=dict)
    json_body: Optional[Any] = None
    auth: Optional[AuthResult] = None
    access: AccessGrant = PUBLIC_GRANT

    @property
    def subject(self) -> Optional[str]:
        return self.access.subject


HandlerResult = Union[HandlerResponse, Dict[str, Any]]
Handler = Callable[[RequestContext], Union[HandlerResult, Awaitable[HandlerResult]]]
OwnershipEvaluator = Callable[[RequestContext], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class EndpointDescriptor:
    """
    Declarative description of one endpoint.

    Attributes:
        route_key: Slash separated route, ``:name`` segments capture values
        http_verb: GET, POST, PUT, PATCH or DELETE
        handler: Called with the RequestContext once every gate passed
        min_access_level: Lowest access level allowed to call the endpoint
        body_validator: Checks the JSON object body
        query_parameters: Declared query parameters, checked in order
        requires_body: Body must be a JSON object passing body_validator
        characteristics: Data characteristics; OWNED_DATA enables the
            ownership check
        ownership_evaluator: Predicate deciding if the caller owns the
            target resource
        authentication_exempt: Skip signature verification (e.g. endpoints
            that must work before credentials exist)
    """
    route_key: str
    http_verb: str
    handler: Handler
    min_access_level: AccessLevel = AccessLevel.PUBLIC
    body_validator: Optional[BodyValidator] = None
    query_parameters: Tuple[QueryParameter, ...] = ()
    requires_body: bool = False
    characteristics: FrozenSet[MethodCharacteristic] = frozenset({MethodCharacteristic.UNOWNED_DATA})
    ownership_evaluator: Optional[OwnershipEvaluator] = None
    authentication_exempt: bool = False

    def __post_init__(self):
        object.__setattr__(self, "route_key", normalize_route(self.route_key))
        object.__setattr__(self, "http_verb", self.http_verb.upper())
        object.__setattr__(self, "query_parameters", tuple(self.query_parameters))
        object.__setattr__(self, "characteristics", frozenset(self.characteristics))

    @property
    def key(self) -> Tuple[str, str]:
        return self.route_key, self.http_verb

    @property
    def is_ownership_sensitive(self) -> bool:
        return MethodCharacteristic.OWNED_DATA in self.characteristics


def normalize_route(route: str) -> str:
    return route.strip("/")
