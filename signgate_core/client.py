"""
Signed API Client
=================
Async httpx client that signs every request it builds.

Usage:
    async with SignedClient(api_key, app_key, base_url="https://api.example.com") as client:
        response = await client.request("/cache/add", "PUT", {"key": "myKey", "value": 980})
        assert response.status_code == 200
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from .envelope import ResponseEnvelope
from .signing.headers import create_signed_headers
from .signing.signature import DEFAULT_NONCE_LENGTH

logger = logging.getLogger(__name__)


class SignedClientError(Exception):
    """Base exception for transport failures of the signed client."""

    def __init__(self, message: str, url: str = "", details: Any = None):
        self.message = message
        self.url = url
        self.details = details
        super().__init__(f"{message} ({url})" if url else message)


class ServiceUnavailableError(SignedClientError):
    """Raised when the API is unreachable."""
    pass


class ServiceTimeoutError(ServiceUnavailableError):
    """Raised specifically on timeouts."""
    pass


class SignedClient:
    """
    Builds, signs and sends API requests.

    Non-2xx answers are returned as envelopes, not raised. Nothing is
    retried: a rejected request must be rebuilt (new nonce, new date).
    """

    def __init__(
        self,
        api_key: str,
        app_key: str,
        base_url: str = "",
        auth_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        nonce_length: int = DEFAULT_NONCE_LENGTH,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            api_key: API key identifying the app
            app_key: Shared app secret used to sign
            base_url: Prefix for relative URLs
            auth_token: Session token sent as a bearer credential
            timeout: Request timeout in seconds
            transport: Custom httpx transport (e.g. httpx.ASGITransport in tests)
            nonce_length: Length of generated nonces
            clock: Time source for the Date header
        """
        self.api_key = api_key
        self._app_key = app_key
        self.auth_token = auth_token
        self.nonce_length = nonce_length
        self._clock = clock
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "SignedClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    def create_request(
        self,
        url: str,
        method: str,
        json_body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Request:
        """
        Build a signed request without sending it.

        The returned request can be sent more than once; the server
        accepts it at most once.
        """
        content = json.dumps(json_body).encode("utf-8") if json_body is not None else b""
        request = self.client.build_request(method.upper(), url, content=content, headers=headers)
        request.headers.update(create_signed_headers(
            secret=self._app_key,
            api_key_id=self.api_key,
            method=request.method,
            path=request.url.path,
            body=json_body,
            auth_token=self.auth_token,
            now=self._clock(),
            nonce_length=self.nonce_length,
        ))
        return request

    async def send(self, request: httpx.Request) -> ResponseEnvelope:
        """Send a built request and parse the reply into an envelope."""
        try:
            response = await self.client.send(request)
        except httpx.TimeoutException as e:
            raise ServiceTimeoutError("Request timed out", url=str(request.url)) from e
        except (httpx.ConnectError, httpx.NetworkError) as e:
            raise ServiceUnavailableError(f"Failed to connect: {e}", url=str(request.url)) from e

        body = None
        if response.content:
            try:
                body = response.json()
            except ValueError as e:
                raise SignedClientError(
                    "Response is not JSON",
                    url=str(request.url),
                    details=response.text[:200],
                ) from e

        if response.status_code >= 500:
            logger.warning(f"Server error {response.status_code} from {request.url}")
        return ResponseEnvelope.from_http(response.status_code, body)

    async def request(
        self,
        url: str,
        method: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> ResponseEnvelope:
        return await self.send(self.create_request(url, method, json_body))
