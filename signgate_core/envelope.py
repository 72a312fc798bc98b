"""
Response Envelope
=================
Uniform success/error shape for every response.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from fastapi.responses import JSONResponse

from .errors import ApiError


@dataclass(frozen=True)
class ErrorBody:
    """Machine-readable id plus human-readable message."""
    id: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "message": self.message}


@dataclass(frozen=True)
class ResponseEnvelope:
    """
    Status code plus exactly one of ``data`` or ``error``.

    Attributes:
        status_code: HTTP status
        data: Handler payload (success)
        error: Error id and message (failure)
    """
    status_code: int
    data: Optional[Any] = None
    error: Optional[ErrorBody] = None

    def __post_init__(self):
        if (self.data is None) == (self.error is None):
            raise ValueError("ResponseEnvelope needs exactly one of data or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any, status_code: int = 200) -> "ResponseEnvelope":
        return cls(status_code=status_code, data=data)

    @classmethod
    def failure(cls, error: ApiError) -> "ResponseEnvelope":
        return cls(
            status_code=error.status_code,
            error=ErrorBody(id=error.error_id, message=error.message),
        )

    @classmethod
    def from_http(cls, status_code: int, body: Any) -> "ResponseEnvelope":
        """Rebuild an envelope from a received JSON body."""
        if isinstance(body, dict) and body.get("success") is False and isinstance(body.get("error"), dict):
            error = body["error"]
            if "id" in error and "message" in error and len(body) == 2:
                return cls(status_code=status_code, error=ErrorBody(id=error["id"], message=error["message"]))
        return cls(status_code=status_code, data=body if body is not None else {})

    def to_body(self) -> Any:
        if self.error is not None:
            return {"success": False, "error": self.error.to_dict()}
        return self.data

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_body())
