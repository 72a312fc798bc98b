"""
Shared fixtures: a demo app with fixed credentials and a helper that
signs requests sent through Starlette's TestClient.
"""

import json
import time

import pytest
from starlette.testclient import TestClient

from signgate_core.cache.memory import InMemoryCache
from signgate_core.config import GatewayConfig
from signgate_core.demo.app import build_demo_manager
from signgate_core.signing.credentials import StaticCredentialStore
from signgate_core.signing.headers import create_signed_headers

API_KEY = "test-api-key"
APP_KEY = "test-app-key"
JWT_SECRET = "test-jwt-secret-0123456789abcdefghij"
USERNAME = "tester@example.com"
PASSWORD = "correct horse battery staple"

# Sun, 06 Nov 1994 08:49:37 GMT
FIXED_NOW = 784111777.0


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = FIXED_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_config(**overrides) -> GatewayConfig:
    settings = dict(
        service_name="signgate-test",
        freshness_window=5,
        require_https=False,
        redis_url=None,
        jwt_secret=JWT_SECRET,
        log_json=False,
        cors_origins=["http://localhost:3000"],
    )
    settings.update(overrides)
    return GatewayConfig(**settings)


def create_demo_client(clock=time.time, **config_overrides) -> TestClient:
    manager = build_demo_manager(
        config=make_config(**config_overrides),
        credentials=StaticCredentialStore({API_KEY: APP_KEY}),
        cache=InMemoryCache(clock=clock),
        username=USERNAME,
        password=PASSWORD,
        clock=clock,
    )
    return TestClient(manager.create_app(cors=True))


def signed_request(
    client: TestClient,
    method: str,
    path: str,
    body=None,
    token=None,
    now=None,
    nonce=None,
    params=None,
    api_key: str = API_KEY,
    app_key: str = APP_KEY,
):
    """Sign and send one request; the query string is not signed."""
    headers = create_signed_headers(
        secret=app_key,
        api_key_id=api_key,
        method=method,
        path=path,
        body=body,
        auth_token=token,
        nonce=nonce,
        now=now,
    )
    content = json.dumps(body) if body is not None else None
    return client.request(method, path, content=content, headers=headers, params=params)


def login(client: TestClient, now=None) -> str:
    response = signed_request(
        client, "POST", "/login", {"username": USERNAME, "password": PASSWORD}, now=now
    )
    assert response.status_code == 200
    return response.json()["authToken"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def demo_client():
    return create_demo_client()
