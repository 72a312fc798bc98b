"""
Input Validators
================
Query parameter validators/processors and JSON body validators.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional, Pattern, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError


class QueryParameterValidator(ABC):
    """Accepts or rejects the raw string value of a query parameter."""

    @abstractmethod
    def is_valid(self, name: str, value: str) -> bool:
        ...


class QueryParameterProcessor(ABC):
    """Turns the raw string value of a query parameter into a typed value."""

    @abstractmethod
    def process(self, name: str, value: str) -> Tuple[str, Any]:
        ...


class PassthroughProcessor(QueryParameterProcessor):
    def process(self, name: str, value: str) -> Tuple[str, Any]:
        return name, value


class RegexValidator(QueryParameterValidator):
    """Valid when the whole value matches the pattern."""

    def __init__(self, pattern: Union[str, Pattern[str]]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def is_valid(self, name: str, value: str) -> bool:
        return self.pattern.fullmatch(value) is not None


class ChoiceValidator(QueryParameterValidator):
    def __init__(self, choices: Iterable[str]):
        self.choices = frozenset(choices)

    def is_valid(self, name: str, value: str) -> bool:
        return value in self.choices


TRUE_VALUES = frozenset({"true", "1"})
FALSE_VALUES = frozenset({"false", "0"})


class BooleanValidator(QueryParameterValidator):
    """Accepts true/false/1/0, case-insensitive."""

    def is_valid(self, name: str, value: str) -> bool:
        return value.lower() in TRUE_VALUES | FALSE_VALUES


class BooleanProcessor(QueryParameterProcessor):
    def process(self, name: str, value: str) -> Tuple[str, Any]:
        return name, value.lower() in TRUE_VALUES


class IntegerValidator(QueryParameterValidator):
    def __init__(self, minimum: Optional[int] = None, maximum: Optional[int] = None):
        self.minimum = minimum
        self.maximum = maximum

    def is_valid(self, name: str, value: str) -> bool:
        try:
            number = int(value)
        except ValueError:
            return False
        if self.minimum is not None and number < self.minimum:
            return False
        if self.maximum is not None and number > self.maximum:
            return False
        return True


class IntegerProcessor(QueryParameterProcessor):
    def process(self, name: str, value: str) -> Tuple[str, Any]:
        return name, int(value)


class BodyValidator(ABC):
    """Accepts or rejects a parsed JSON object body."""

    @abstractmethod
    def is_valid(self, body: Dict[str, Any]) -> bool:
        ...

    def process(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Body handed to the handler once valid; unchanged by default."""
        return body


class RequiredFieldsValidator(BodyValidator):
    """
    Every listed field must be present and not null.

    Args:
        fields: Required field names
        pattern: Optional pattern every string value of a required field
            must fully match
    """

    def __init__(self, fields: Iterable[str], pattern: Optional[str] = None):
        self.fields = tuple(fields)
        self.pattern = re.compile(pattern) if pattern else None

    def is_valid(self, body: Dict[str, Any]) -> bool:
        for name in self.fields:
            value = body.get(name)
            if value is None:
                return False
            if self.pattern and isinstance(value, str) and not self.pattern.fullmatch(value):
                return False
        return True


class ModelBodyValidator(BodyValidator):
    """
    Valid when the body validates against a pydantic model.

    The handler receives the model's dump, so coerced values and only
    the declared fields reach it.
    """

    def __init__(self, model: Type[BaseModel]):
        self.model = model

    def is_valid(self, body: Dict[str, Any]) -> bool:
        try:
            self.model.model_validate(body)
        except PydanticValidationError:
            return False
        return True

    def process(self, body: Dict[str, Any]) -> Dict[str, Any]:
        # Handlers read coerced values, e.g. ttl "5" becomes 5.0
        return self.model.model_validate(body).model_dump(exclude_unset=True)
