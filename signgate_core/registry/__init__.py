"""
Endpoint Registry Module
========================
Endpoint descriptors, input validators and the gate pipeline.
"""

from .descriptors import (
    EndpointDescriptor,
    HandlerResponse,
    QueryParameter,
    RequestContext,
)
from .validators import (
    BodyValidator,
    BooleanProcessor,
    BooleanValidator,
    ChoiceValidator,
    IntegerProcessor,
    IntegerValidator,
    ModelBodyValidator,
    PassthroughProcessor,
    QueryParameterProcessor,
    QueryParameterValidator,
    RegexValidator,
    RequiredFieldsValidator,
)
from .pipeline import (
    AccessLevelStage,
    AuthenticationStage,
    BodyValidationStage,
    HttpsStage,
    OwnershipStage,
    Pipeline,
    QueryValidationStage,
    Stage,
    StageResult,
    default_stages,
)
from .registry import EndpointRegistry

__all__ = [
    # Descriptors
    "EndpointDescriptor",
    "HandlerResponse",
    "QueryParameter",
    "RequestContext",
    # Validators
    "BodyValidator",
    "BooleanProcessor",
    "BooleanValidator",
    "ChoiceValidator",
    "IntegerProcessor",
    "IntegerValidator",
    "ModelBodyValidator",
    "PassthroughProcessor",
    "QueryParameterProcessor",
    "QueryParameterValidator",
    "RegexValidator",
    "RequiredFieldsValidator",
    # Pipeline
    "AccessLevelStage",
    "AuthenticationStage",
    "BodyValidationStage",
    "HttpsStage",
    "OwnershipStage",
    "Pipeline",
    "QueryValidationStage",
    "Stage",
    "StageResult",
    "default_stages",
    # Registry
    "EndpointRegistry",
]
