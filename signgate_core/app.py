"""
Application Manager
===================
Wires credentials, cache, sessions and registered endpoints into a
FastAPI application.

Usage:
    manager = AppManager(
        credentials=StaticCredentialStore({"my-api-key": "my-app-secret"}),
        cache=InMemoryCache(),
        sessions=JWTSessionManager(secret),
    )
    manager.register(EndpointDescriptor("cache/:key", "GET", get_value))
    app = manager.create_app()
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Callable, Iterable, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .access.evaluator import AccessLevelEvaluator
from .access.sessions import SessionManager
from .cache.base import KeyValueCache
from .cache.memory import InMemoryCache
from .config import GatewayConfig
from .cors import setup_cors
from .envelope import ResponseEnvelope
from .errors import ApiError, AuthenticationError, InternalError, NotFoundError, RegistrationError
from .logging_config import bind_request_context, clear_request_context
from .metrics import MetricLabels, MetricNames, SimpleMetrics, Timer
from .registry.descriptors import EndpointDescriptor, HandlerResponse, RequestContext
from .registry.pipeline import Pipeline, default_stages, maybe_await
from .registry.registry import EndpointRegistry
from .signing.authenticator import Authenticator
from .signing.credentials import CredentialStore
from .signing.nonce_ledger import CacheNonceLedger, NonceLedger

logger = structlog.get_logger(__name__)

ROUTE_NOT_FOUND_MESSAGE = "Requested method not found."
SERVED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]
PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class AppManager:
    """
    Owns the endpoint registry and runs every request through the gates.

    Endpoints must be registered before ``create_app``; the registry is
    read-only afterwards.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        cache: Optional[KeyValueCache] = None,
        sessions: Optional[SessionManager] = None,
        config: Optional[GatewayConfig] = None,
        ledger: Optional[NonceLedger] = None,
        evaluator: Optional[AccessLevelEvaluator] = None,
        metrics: Optional[SimpleMetrics] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            credentials: Lookup of api key -> shared secret
            cache: Application cache; also backs the nonce ledger
            sessions: Session token manager; without one nobody authenticates
            config: Gateway settings, read from the environment when omitted
            ledger: Nonce ledger, defaults to one over ``cache``
            evaluator: Access-level evaluator, defaults to one over ``sessions``
            metrics: Metrics collector
            clock: Time source for freshness checks
        """
        self.config = config or GatewayConfig.from_env()
        self.cache = cache or InMemoryCache()
        self.sessions = sessions
        self.ledger = ledger or CacheNonceLedger(self.cache, clock=clock)
        self.authenticator = Authenticator(
            credentials,
            self.ledger,
            freshness_window=self.config.freshness_window,
            clock=clock,
        )
        self.evaluator = evaluator or AccessLevelEvaluator(sessions)
        self.metrics = metrics or SimpleMetrics(MetricLabels(service=self.config.service_name))
        self.registry = EndpointRegistry()
        self.pipeline = Pipeline(default_stages(
            self.authenticator,
            self.evaluator,
            require_https=self.config.require_https,
        ))
        self._sealed = False

    def register(self, descriptor: EndpointDescriptor) -> None:
        if self._sealed:
            raise RegistrationError("Endpoints cannot be registered after the app is created")
        self.registry.register(descriptor)

    def register_all(self, descriptors: Iterable[EndpointDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    async def handle(self, ctx: RequestContext) -> ResponseEnvelope:
        """
        Run one request to a terminal envelope.

        Never raises: every failure becomes a failure envelope.
        """
        resolved = self.registry.resolve(ctx.method, ctx.path)
        if resolved is None:
            return ResponseEnvelope.failure(NotFoundError(ROUTE_NOT_FOUND_MESSAGE))
        descriptor, ctx.path_params = resolved

        try:
            result = await self.pipeline.run(ctx, descriptor)
        except ApiError as e:
            return ResponseEnvelope.failure(e)
        except Exception:
            logger.exception("pipeline_failed", route=descriptor.route_key)
            return ResponseEnvelope.failure(InternalError())

        if not result.proceed:
            if isinstance(result.error, AuthenticationError) and ctx.auth is not None:
                self.metrics.increment(
                    MetricNames.AUTH_REJECTED,
                    labels={"reason": ctx.auth.reason_code.value},
                )
            return ResponseEnvelope.failure(result.error)

        return await self._invoke(descriptor, ctx)

    async def _invoke(self, descriptor: EndpointDescriptor, ctx: RequestContext) -> ResponseEnvelope:
        labels = {"route": descriptor.route_key, "verb": descriptor.http_verb}
        try:
            with Timer(self.metrics, MetricNames.HANDLER_DURATION, labels):
                outcome = await maybe_await(descriptor.handler(ctx))
        except ApiError as e:
            return ResponseEnvelope.failure(e)
        except Exception:
            self.metrics.increment(MetricNames.HANDLER_FAILURES, labels=labels)
            logger.exception("handler_failed", route=descriptor.route_key, verb=descriptor.http_verb)
            return ResponseEnvelope.failure(InternalError())
        return self._to_envelope(outcome, descriptor)

    def _to_envelope(self, outcome: Any, descriptor: EndpointDescriptor) -> ResponseEnvelope:
        if outcome is None:
            return ResponseEnvelope.success({})
        if isinstance(outcome, HandlerResponse):
            data = {} if outcome.data is None else outcome.data
            return ResponseEnvelope.success(data, status_code=outcome.status)
        if isinstance(outcome, dict):
            return ResponseEnvelope.success(outcome)
        logger.error(
            "handler_returned_unsupported_result",
            route=descriptor.route_key,
            result_type=type(outcome).__name__,
        )
        return ResponseEnvelope.failure(InternalError())

    async def dispatch(self, request: Request) -> JSONResponse:
        """FastAPI endpoint serving every registered route."""
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        bind_request_context(request_id, request.method, request.url.path)
        try:
            ctx = RequestContext(
                method=request.method,
                path=request.url.path,
                headers=request.headers,
                raw_query=request.query_params,
                body=await request.body(),
                scheme=request.url.scheme,
                request_id=request_id,
            )
            envelope = await self.handle(ctx)
            self.metrics.increment(
                MetricNames.REQUESTS_TOTAL,
                labels={"verb": request.method, "status": envelope.status_code},
            )
            if not envelope.ok:
                self.metrics.increment(
                    MetricNames.REQUEST_REJECTED,
                    labels={"error_id": envelope.error.id},
                )
            logger.info("request_completed", status=envelope.status_code)
            response = envelope.to_response()
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()

    async def metrics_endpoint(self) -> PlainTextResponse:
        """Prometheus text export of the collected metrics."""
        return PlainTextResponse(self.metrics.export_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)

    def create_app(self, cors: bool = False) -> FastAPI:
        """
        Build the FastAPI application and freeze the registry.

        Args:
            cors: Install CORS middleware for ``config.cors_origins``
        """
        self._sealed = True

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            yield
            await self.cache.close()

        app = FastAPI(
            title=self.config.service_name,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=lifespan,
        )
        if self.config.expose_metrics:
            # Registered ahead of the catch-all route so it wins for GET /metrics
            app.add_api_route("/metrics", self.metrics_endpoint, methods=["GET"], include_in_schema=False)
        app.add_api_route(
            "/{full_path:path}",
            self.dispatch,
            methods=SERVED_METHODS,
            include_in_schema=False,
        )
        if cors:
            setup_cors(app, self.config.cors_origins)

        app.state.manager = self
        logger.info("app_created", endpoints=len(self.registry))
        return app
