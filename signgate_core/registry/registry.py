"""
Endpoint Registry
=================
Ordered table of endpoint descriptors keyed by (route, verb).
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import structlog

from ..errors import RegistrationError
from .descriptors import HTTP_VERBS, EndpointDescriptor, normalize_route

logger = structlog.get_logger(__name__)

PARAM_PREFIX = ":"


class RoutePattern:
    """A route key split into static and ``:name`` segments."""

    def __init__(self, route_key: str):
        self.route_key = route_key
        self.segments = route_key.split("/") if route_key else []
        self.param_count = sum(1 for s in self.segments if s.startswith(PARAM_PREFIX))
        for segment in self.segments:
            if segment == PARAM_PREFIX or segment == "":
                raise RegistrationError(f"Invalid route key '{route_key}'")

    def match(self, path: str) -> Optional[Dict[str, str]]:
        parts = path.split("/") if path else []
        if len(parts) != len(self.segments):
            return None
        params = {}
        for segment, part in zip(self.segments, parts):
            if segment.startswith(PARAM_PREFIX):
                if not part:
                    return None
                params[segment[1:]] = part
            elif segment != part:
                return None
        return params


class EndpointRegistry:
    """
    Holds every registered endpoint.

    Registration order does not matter: lookups try static routes before
    parameterized ones. Registering the same (route, verb) twice raises
    RegistrationError.
    """

    def __init__(self):
        self._descriptors: Dict[Tuple[str, str], EndpointDescriptor] = {}
        self._patterns: Dict[str, RoutePattern] = {}

    def register(self, descriptor: EndpointDescriptor) -> None:
        if descriptor.http_verb not in HTTP_VERBS:
            raise RegistrationError(
                f"Unsupported HTTP verb '{descriptor.http_verb}' for '{descriptor.route_key}'"
            )
        if descriptor.key in self._descriptors:
            raise RegistrationError(
                f"Endpoint already registered: {descriptor.http_verb} /{descriptor.route_key}"
            )
        if descriptor.requires_body and descriptor.http_verb == "GET":
            raise RegistrationError(f"GET /{descriptor.route_key} cannot require a body")

        pattern = self._patterns.get(descriptor.route_key) or RoutePattern(descriptor.route_key)
        self._patterns[descriptor.route_key] = pattern
        self._descriptors[descriptor.key] = descriptor
        logger.debug("endpoint_registered", verb=descriptor.http_verb, route=descriptor.route_key)

    def register_all(self, descriptors: Iterable[EndpointDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def get(self, route_key: str, http_verb: str) -> Optional[EndpointDescriptor]:
        return self._descriptors.get((normalize_route(route_key), http_verb.upper()))

    def resolve(self, http_verb: str, path: str) -> Optional[Tuple[EndpointDescriptor, Dict[str, str]]]:
        """
        Find the descriptor serving a request.

        Args:
            http_verb: Request method
            path: URL path

        Returns:
            (descriptor, path parameters), or None if nothing matches
        """
        verb = http_verb.upper()
        normalized = normalize_route(path)
        candidates: List[EndpointDescriptor] = [
            d for d in self._descriptors.values() if d.http_verb == verb
        ]
        candidates.sort(key=lambda d: self._patterns[d.route_key].param_count)
        for descriptor in candidates:
            params = self._patterns[descriptor.route_key].match(normalized)
            if params is not None:
                return descriptor, params
        return None

    def __iter__(self) -> Iterator[EndpointDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)
