"""
Gate Pipeline
=============
Ordered pass/fail stages run before a handler.

Each stage returns a StageResult; the first rejection ends the request.
Adding a gate means inserting one more stage into the list.
"""

import inspect
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence
import structlog

from ..access.evaluator import AccessLevelEvaluator
from ..errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ForbiddenError,
    InsecureRequestError,
    ValidationError,
)
from ..signing.authenticator import Authenticator
from ..signing.canonical import parse_body
from ..signing.headers import parse_signed_headers
from .descriptors import EndpointDescriptor, RequestContext

logger = structlog.get_logger(__name__)

INVALID_BODY_MESSAGE = "Invalid request. Invalid HTTP body."


@dataclass(frozen=True)
class StageResult:
    """Tagged outcome of a stage: proceed, or reject with an error."""
    error: Optional[ApiError] = None

    @property
    def proceed(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls) -> "StageResult":
        return PROCEED

    @classmethod
    def reject(cls, error: ApiError) -> "StageResult":
        return cls(error=error)


PROCEED = StageResult()


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Stage:
    """Base class for pipeline stages."""
    name = "stage"

    async def __call__(self, ctx: RequestContext, descriptor: EndpointDescriptor) -> StageResult:
        raise NotImplementedError


class HttpsStage(Stage):
    """Rejects plain-HTTP requests unless a proxy reports HTTPS."""
    name = "https"

    async def __call__(self, ctx, descriptor):
        forwarded = ctx.headers.get("X-Forwarded-Proto", "").split(",")[0].strip().lower()
        if ctx.scheme == "https" or forwarded == "https":
            return StageResult.ok()
        return StageResult.reject(InsecureRequestError())


class AuthenticationStage(Stage):
    name = "authentication"

    def __init__(self, authenticator: Authenticator):
        self.authenticator = authenticator

    async def __call__(self, ctx, descriptor):
        if descriptor.authentication_exempt:
            return StageResult.ok()
        signed = parse_signed_headers(ctx.headers, ctx.method, ctx.path, ctx.body)
        ctx.auth = await self.authenticator.authenticate(signed)
        if not ctx.auth.accepted:
            return StageResult.reject(AuthenticationError())
        return StageResult.ok()


class AccessLevelStage(Stage):
    name = "access_level"

    def __init__(self, evaluator: AccessLevelEvaluator):
        self.evaluator = evaluator

    async def __call__(self, ctx, descriptor):
        ctx.access = self.evaluator.evaluate(ctx.headers)
        if not ctx.access.level.satisfies(descriptor.min_access_level):
            logger.info(
                "access_level_insufficient",
                level=ctx.access.level.name,
                required=descriptor.min_access_level.name,
            )
            return StageResult.reject(AuthorizationError())
        return StageResult.ok()


class QueryValidationStage(Stage):
    """Validates and processes declared query parameters, in order."""
    name = "query_validation"

    async def __call__(self, ctx, descriptor):
        processed = {}
        for parameter in descriptor.query_parameters:
            raw = ctx.raw_query.get(parameter.name)
            if raw is None:
                if parameter.required:
                    return StageResult.reject(
                        ValidationError(f"Missing required parameter {parameter.name}")
                    )
                continue
            if not parameter.validator.is_valid(parameter.name, raw):
                return StageResult.reject(
                    ValidationError(f"Invalid value for parameter {parameter.name}")
                )
            name, value = parameter.processor.process(parameter.name, raw)
            processed[name] = value
        ctx.query_parameters = processed
        return StageResult.ok()


class BodyValidationStage(Stage):
    """Parses the JSON body and, when required, validates it."""
    name = "body_validation"

    async def __call__(self, ctx, descriptor):
        try:
            ctx.json_body = parse_body(ctx.body)
        except ValueError:
            ctx.json_body = None
            if descriptor.requires_body:
                return StageResult.reject(ValidationError(INVALID_BODY_MESSAGE))
            return StageResult.ok()

        if not descriptor.requires_body:
            return StageResult.ok()
        if not isinstance(ctx.json_body, dict):
            return StageResult.reject(ValidationError(INVALID_BODY_MESSAGE))
        validator = descriptor.body_validator
        if validator is not None:
            if not validator.is_valid(ctx.json_body):
                return StageResult.reject(ValidationError(INVALID_BODY_MESSAGE))
            ctx.json_body = validator.process(ctx.json_body)
        return StageResult.ok()


class OwnershipStage(Stage):
    """Runs the endpoint's ownership evaluator for owned-data endpoints."""
    name = "ownership"

    async def __call__(self, ctx, descriptor):
        evaluator = descriptor.ownership_evaluator
        if not descriptor.is_ownership_sensitive or evaluator is None:
            return StageResult.ok()
        owned = await maybe_await(evaluator(ctx))
        if not owned:
            logger.info("ownership_check_failed", subject=ctx.subject)
            return StageResult.reject(ForbiddenError())
        return StageResult.ok()


class Pipeline:
    """Runs stages in order until one rejects."""

    def __init__(self, stages: Sequence[Stage]):
        self.stages: List[Stage] = list(stages)

    async def run(self, ctx: RequestContext, descriptor: EndpointDescriptor) -> StageResult:
        for stage in self.stages:
            result = await stage(ctx, descriptor)
            if not result.proceed:
                logger.debug("pipeline_rejected", stage=stage.name, error_id=result.error.error_id)
                return result
        return StageResult.ok()


def default_stages(
    authenticator: Authenticator,
    evaluator: AccessLevelEvaluator,
    require_https: bool = False,
) -> List[Stage]:
    """Stages in their canonical order."""
    stages: List[Stage] = []
    if require_https:
        stages.append(HttpsStage())
    stages.extend([
        AuthenticationStage(authenticator),
        AccessLevelStage(evaluator),
        QueryValidationStage(),
        BodyValidationStage(),
        OwnershipStage(),
    ])
    return stages
