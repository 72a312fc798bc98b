"""
Demo Endpoints
==============
Login, cache and quote endpoints of the demo application.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, PositiveFloat, StrictStr, field_validator

from ..access.levels import AccessLevel, MethodCharacteristic
from ..cache.base import KeyValueCache
from ..errors import NotFoundError
from ..registry.descriptors import EndpointDescriptor, HandlerResponse, QueryParameter, RequestContext
from ..registry.validators import (
    BooleanProcessor,
    BooleanValidator,
    ChoiceValidator,
    ModelBodyValidator,
    RegexValidator,
    RequiredFieldsValidator,
)
from .data import ANONYMOUS_OWNER, SORT_KEYS, DemoDataManager

QUOTE_TEXT_PATTERN = r"^[a-zA-Z0-9?.;,! ]+$"
SEARCH_TEXT_PATTERN = r"[a-zA-Z0-9 ]+"


class LoginBody(BaseModel):
    username: StrictStr = Field(min_length=1)
    password: StrictStr = Field(min_length=1)


class SetCacheValueBody(BaseModel):
    key: StrictStr = Field(min_length=1)
    value: Any
    ttl: Optional[PositiveFloat] = None

    @field_validator("value")
    @classmethod
    def value_not_null(cls, value):
        if value is None:
            raise ValueError("value must not be null")
        return value


class AddQuoteBody(BaseModel):
    content: StrictStr = Field(pattern=QUOTE_TEXT_PATTERN)
    author: StrictStr = Field(pattern=QUOTE_TEXT_PATTERN)
    date: StrictStr = Field(min_length=1)


def cache_key(key: str) -> str:
    return f"value:{key}"


class CacheEndpoints:
    """Read and write arbitrary JSON values in the application cache."""

    def __init__(self, cache: KeyValueCache):
        self.cache = cache

    async def get_value(self, ctx: RequestContext):
        key = ctx.path_params["key"]
        value = await self.cache.get(cache_key(key))
        if value is None:
            raise NotFoundError(f"No value found for key '{key}'")
        return {"success": True, "value": value}

    async def add_value(self, ctx: RequestContext):
        body = ctx.json_body
        await self.cache.set(cache_key(body["key"]), body["value"], ttl=body.get("ttl"))
        return {"success": True, "message": f"Set value for key '{body['key']}'"}

    def descriptors(self) -> List[EndpointDescriptor]:
        return [
            EndpointDescriptor("cache/:key", "GET", self.get_value),
            EndpointDescriptor(
                "cache/add",
                "PUT",
                self.add_value,
                body_validator=ModelBodyValidator(SetCacheValueBody),
                requires_body=True,
            ),
        ]


class QuoteEndpoints:
    """Quote lookup, creation, owner-only deletion and search."""

    def __init__(self, data: DemoDataManager):
        self.data = data

    async def get_quote(self, ctx: RequestContext):
        quote_id = ctx.path_params["id"]
        quote = await self.data.get_quote(quote_id)
        if quote is None:
            raise NotFoundError(f"Failed to find quote with id: {quote_id}")
        return {"success": True, "quote": quote}

    def add_quote(self, ctx: RequestContext):
        body = ctx.json_body
        quote = self.data.add_quote(
            body["content"],
            body["author"],
            body["date"],
            owner=ctx.subject or ANONYMOUS_OWNER,
        )
        return {"success": True, "quote": quote}

    async def delete_quote(self, ctx: RequestContext):
        quote_id = str(ctx.json_body["quoteId"])
        await self.data.delete_quote(quote_id)
        return {"success": True, "message": f"Successfully deleted quote with ID {quote_id}"}

    def search(self, ctx: RequestContext):
        params = ctx.query_parameters
        quotes = self.data.search_quotes(
            params["searchTerm"],
            author=params.get("author"),
            sort_key=params.get("sortKey"),
            ascending=params.get("ascendingSort", True),
        )
        return {"success": True, "quotes": quotes}

    async def owns(self, ctx: RequestContext) -> bool:
        """Only the recorded owner may delete a quote."""
        quote = await self.data.get_quote(str(ctx.json_body["quoteId"]))
        if quote is None:
            # Let the handler answer 404
            return True
        return ctx.subject is not None and quote["ownerUserId"] == ctx.subject

    def descriptors(self) -> List[EndpointDescriptor]:
        return [
            EndpointDescriptor(
                "quotes/:id",
                "GET",
                self.get_quote,
                min_access_level=AccessLevel.AUTHENTICATED,
            ),
            EndpointDescriptor(
                "quotes/add",
                "PUT",
                self.add_quote,
                body_validator=ModelBodyValidator(AddQuoteBody),
                requires_body=True,
            ),
            EndpointDescriptor(
                "quotes/delete",
                "DELETE",
                self.delete_quote,
                min_access_level=AccessLevel.AUTHENTICATED,
                body_validator=RequiredFieldsValidator(["quoteId"]),
                requires_body=True,
                characteristics=frozenset({MethodCharacteristic.OWNED_DATA}),
                ownership_evaluator=self.owns,
            ),
            EndpointDescriptor(
                "quotes/search",
                "GET",
                self.search,
                query_parameters=(
                    QueryParameter("searchTerm", RegexValidator(SEARCH_TEXT_PATTERN), required=True),
                    QueryParameter("author", RegexValidator(SEARCH_TEXT_PATTERN)),
                    QueryParameter("sortKey", ChoiceValidator(SORT_KEYS)),
                    QueryParameter("ascendingSort", BooleanValidator(), BooleanProcessor()),
                ),
            ),
        ]


def login_endpoint(data: DemoDataManager) -> EndpointDescriptor:
    def login(ctx: RequestContext):
        body = ctx.json_body
        token = data.login(body["username"], body["password"])
        if token is None:
            return HandlerResponse(
                {
                    "success": False,
                    "error": {"id": "Unauthorized", "message": "Invalid username or password."},
                },
                status=403,
            )
        return {"success": True, "authToken": token}

    return EndpointDescriptor(
        "login",
        "POST",
        login,
        body_validator=ModelBodyValidator(LoginBody),
        requires_body=True,
    )


def build_endpoints(cache: KeyValueCache, data: DemoDataManager) -> List[EndpointDescriptor]:
    return [
        login_endpoint(data),
        *CacheEndpoints(cache).descriptors(),
        *QuoteEndpoints(data).descriptors(),
    ]
