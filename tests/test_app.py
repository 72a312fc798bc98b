"""
Integration Tests for the Application Manager
=============================================
Gate ordering, error envelopes and FastAPI wiring.
"""

import pytest
from starlette.testclient import TestClient

from conftest import API_KEY, APP_KEY, JWT_SECRET, make_config, signed_request


def create_manager(**config_overrides):
    from signgate_core.access import JWTSessionManager
    from signgate_core.app import AppManager
    from signgate_core.cache import InMemoryCache
    from signgate_core.signing import StaticCredentialStore

    return AppManager(
        credentials=StaticCredentialStore({API_KEY: APP_KEY}),
        cache=InMemoryCache(),
        sessions=JWTSessionManager(JWT_SECRET),
        config=make_config(**config_overrides),
    )


def ping(ctx):
    return {"pong": True, "path_params": ctx.path_params}


class TestDispatch:
    """Tests for request dispatch through the gates."""

    def test_unknown_route(self):
        """Should answer 404 for unregistered routes."""
        manager = create_manager()
        client = TestClient(manager.create_app())

        response = signed_request(client, "GET", "/missing")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"id": "NotFound", "message": "Requested method not found."},
        }

    def test_success(self):
        """Should pass handler data through unchanged."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("items/:id", "GET", ping))
        client = TestClient(manager.create_app())

        response = signed_request(client, "GET", "/items/7")

        assert response.status_code == 200
        assert response.json() == {"pong": True, "path_params": {"id": "7"}}
        assert response.headers["X-Request-ID"]

    def test_unsigned_request(self):
        """Should reject requests without signing headers."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("items", "GET", ping))
        client = TestClient(manager.create_app())

        response = client.get("/items")

        assert response.status_code == 401
        assert response.json()["error"] == {"id": "invalidRequest", "message": "This request is not valid."}

    def test_every_auth_failure_looks_the_same(self):
        """Should not reveal which authentication check failed."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("items", "GET", ping))
        client = TestClient(manager.create_app())

        unknown_key = signed_request(client, "GET", "/items", api_key="nobody")
        bad_secret = signed_request(client, "GET", "/items", app_key="guess")
        stale = signed_request(client, "GET", "/items", now=1_000_000)

        assert unknown_key.json() == bad_secret.json() == stale.json()
        assert unknown_key.status_code == bad_secret.status_code == stale.status_code == 401

    def test_replayed_request(self):
        """Should reject a second request with the same nonce."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("items", "GET", ping))
        client = TestClient(manager.create_app())

        first = signed_request(client, "GET", "/items", nonce="onlyonce")
        second = signed_request(client, "GET", "/items", nonce="onlyonce")

        assert first.status_code == 200
        assert second.status_code == 401

    def test_query_string_is_not_signed(self):
        """Should verify the path without the query string."""
        from signgate_core.registry import EndpointDescriptor, QueryParameter, RegexValidator

        def echo(ctx):
            return {"q": ctx.query_parameters["q"]}

        manager = create_manager()
        manager.register(EndpointDescriptor(
            "search", "GET", echo, query_parameters=[QueryParameter("q", RegexValidator(r"\w+"), required=True)]
        ))
        client = TestClient(manager.create_app())

        response = signed_request(client, "GET", "/search", params={"q": "abc"})

        assert response.status_code == 200
        assert response.json() == {"q": "abc"}

    def test_authentication_exempt(self):
        """Should skip signature checks for exempt endpoints."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("health", "GET", ping, authentication_exempt=True))
        client = TestClient(manager.create_app())

        assert client.get("/health").status_code == 200

    def test_access_level_checked_before_ownership(self):
        """Should reject unauthenticated callers without consulting ownership."""
        from signgate_core.access import AccessLevel, MethodCharacteristic
        from signgate_core.registry import EndpointDescriptor

        calls = []

        def owns(ctx):
            calls.append(ctx)
            return True

        manager = create_manager()
        manager.register(EndpointDescriptor(
            "things",
            "DELETE",
            ping,
            min_access_level=AccessLevel.AUTHENTICATED,
            characteristics=[MethodCharacteristic.OWNED_DATA],
            ownership_evaluator=owns,
        ))
        client = TestClient(manager.create_app())

        response = signed_request(client, "DELETE", "/things")

        assert response.status_code == 401
        assert response.json()["error"]["id"] == "unauthorizedRequest"
        assert calls == []

    def test_ownership_rejection(self):
        """Should answer 403 when the caller does not own the resource."""
        from signgate_core.access import AccessLevel, MethodCharacteristic
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor(
            "things",
            "DELETE",
            ping,
            min_access_level=AccessLevel.AUTHENTICATED,
            characteristics=[MethodCharacteristic.OWNED_DATA],
            ownership_evaluator=lambda ctx: ctx.subject == "owner",
        ))
        client = TestClient(manager.create_app())
        token = manager.sessions.issue({"sub": "intruder"})

        response = signed_request(client, "DELETE", "/things", token=token)

        assert response.status_code == 403
        assert response.json()["error"] == {"id": "forbiddenRequest", "message": "This request is forbidden."}

    def test_handler_failure_hides_detail(self):
        """Should turn unexpected handler errors into a bare 500."""
        from signgate_core.registry import EndpointDescriptor

        def explode(ctx):
            raise RuntimeError("database password is hunter2")

        manager = create_manager()
        manager.register(EndpointDescriptor("boom", "GET", explode))
        client = TestClient(manager.create_app())

        response = signed_request(client, "GET", "/boom")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": {"id": "internalError", "message": "An internal error occurred."},
        }
        assert "hunter2" not in response.text

    def test_handler_api_error(self):
        """Should render ApiErrors raised by handlers."""
        from signgate_core.errors import NotFoundError
        from signgate_core.registry import EndpointDescriptor

        def missing(ctx):
            raise NotFoundError("No value found for key 'x'")

        manager = create_manager()
        manager.register(EndpointDescriptor("missing", "GET", missing))
        client = TestClient(manager.create_app())

        response = signed_request(client, "GET", "/missing")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "No value found for key 'x'"

    def test_handler_response_status(self):
        """Should honour HandlerResponse status codes."""
        from signgate_core.registry import EndpointDescriptor, HandlerResponse

        async def create(ctx):
            return HandlerResponse({"created": True}, status=201)

        manager = create_manager()
        manager.register(EndpointDescriptor("things", "POST", create))
        client = TestClient(manager.create_app())

        response = signed_request(client, "POST", "/things", {"a": 1})

        assert response.status_code == 201
        assert response.json() == {"created": True}

    def test_handler_returning_none(self):
        """Should answer an empty object when the handler returns nothing."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("nothing", "GET", lambda ctx: None))
        client = TestClient(manager.create_app())

        response = signed_request(client, "GET", "/nothing")

        assert response.status_code == 200
        assert response.json() == {}

    def test_handler_returning_unsupported_type(self):
        """Should answer 500 for results that are not objects."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("odd", "GET", lambda ctx: "text"))
        client = TestClient(manager.create_app())

        assert signed_request(client, "GET", "/odd").status_code == 500

    def test_https_required(self):
        """Should reject plain HTTP when HTTPS is required."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager(require_https=True)
        manager.register(EndpointDescriptor("items", "GET", ping))
        app = manager.create_app()

        plain = signed_request(TestClient(app), "GET", "/items")
        secure = signed_request(TestClient(app, base_url="https://testserver"), "GET", "/items")

        assert plain.status_code == 400
        assert plain.json()["error"]["id"] == "insecureRequest"
        assert secure.status_code == 200


class TestAppManager:
    """Tests for manager lifecycle and bookkeeping."""

    def test_registration_sealed_after_create_app(self):
        """Should refuse registrations once the app exists."""
        from signgate_core.errors import RegistrationError
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.create_app()

        with pytest.raises(RegistrationError):
            manager.register(EndpointDescriptor("late", "GET", ping))

    def test_metrics_recorded(self):
        """Should count requests and authentication rejections."""
        from signgate_core.metrics import MetricNames
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("items", "GET", ping))
        client = TestClient(manager.create_app())

        signed_request(client, "GET", "/items", nonce="n1")
        signed_request(client, "GET", "/items", nonce="n1")

        metrics = manager.metrics
        assert metrics.get_counter(MetricNames.REQUESTS_TOTAL, {"verb": "GET", "status": 200}) == 1
        assert metrics.get_counter(MetricNames.REQUESTS_TOTAL, {"verb": "GET", "status": 401}) == 1
        assert metrics.get_counter(MetricNames.AUTH_REJECTED, {"reason": "replay_detected"}) == 1
        assert metrics.get_histogram_stats(
            MetricNames.HANDLER_DURATION, {"route": "items", "verb": "GET"}
        )["count"] == 1

    def test_request_id_propagated(self):
        """Should echo a caller supplied X-Request-ID."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("health", "GET", ping, authentication_exempt=True))
        client = TestClient(manager.create_app())

        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_cors_preflight(self):
        """Should allow browsers to send the signing headers."""
        manager = create_manager()
        client = TestClient(manager.create_app(cors=True))

        response = client.options(
            "/cache/add",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "PUT",
                "Access-Control-Request-Headers": "X-Signature, X-Nonce",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_metrics_endpoint(self):
        """Should serve Prometheus text without signing headers."""
        from signgate_core.registry import EndpointDescriptor

        manager = create_manager()
        manager.register(EndpointDescriptor("items", "GET", ping))
        client = TestClient(manager.create_app())
        signed_request(client, "GET", "/items")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'http_requests_total{env="production",service="signgate-test",status="200",verb="GET"} 1' in response.text

    def test_metrics_endpoint_disabled(self):
        """Should leave /metrics to the registry when exposure is off."""
        manager = create_manager(expose_metrics=False)
        client = TestClient(manager.create_app())

        response = client.get("/metrics")

        assert response.status_code == 404
        assert response.json()["error"]["id"] == "NotFound"
