"""
Browser Access
==============
CORS policy for browser clients that sign requests themselves.
"""

from typing import List, Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from .signing.headers import (
    HEADER_API_KEY,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    HEADER_DATE,
    HEADER_NONCE,
    HEADER_SIGNATURE,
)

logger = structlog.get_logger(__name__)

SIGNING_HEADERS = [
    HEADER_API_KEY,
    HEADER_SIGNATURE,
    HEADER_NONCE,
    HEADER_DATE,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    "X-Request-ID",
]


def setup_cors(
    app: FastAPI,
    origins: List[str],
    allow_methods: Optional[List[str]] = None,
) -> None:
    """
    Allow the listed origins to call the API with signing headers.

    Preflight requests are answered by the middleware and never reach
    the gate pipeline.

    Args:
        app: FastAPI application instance
        origins: Allowed origins
        allow_methods: Allowed HTTP methods (default: standard REST methods)
    """
    if "*" in origins:
        logger.warning(
            "cors_wildcard_origin",
            origins=origins,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=allow_methods or ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=SIGNING_HEADERS,
    )
    logger.info("cors_enabled", origins=len(origins), headers=len(SIGNING_HEADERS))
