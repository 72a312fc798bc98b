"""
API Errors
==========
Error taxonomy shared by every stage of the request pipeline.

Messages are fixed per class so callers cannot tell which internal
check failed; the detail goes to the logs instead.
"""

from typing import Optional


class ApiError(Exception):
    """Base class for errors rendered as a failure envelope."""
    status_code: int = 500
    error_id: str = "internalError"
    default_message: str = "An internal error occurred."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, error_id: Optional[str] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        if error_id is not None:
            self.error_id = error_id
        super().__init__(f"[{self.error_id}] {self.message} (Status: {self.status_code})")


class AuthenticationError(ApiError):
    """Bad credentials, signature, timestamp or a replayed nonce."""
    status_code = 401
    error_id = "invalidRequest"
    default_message = "This request is not valid."


class AuthorizationError(ApiError):
    """Caller's access level is below the endpoint's minimum."""
    status_code = 401
    error_id = "unauthorizedRequest"
    default_message = "This request is not authorized."


class ForbiddenError(ApiError):
    """Authenticated caller does not own the target resource."""
    status_code = 403
    error_id = "forbiddenRequest"
    default_message = "This request is forbidden."


class ValidationError(ApiError):
    """Malformed query parameters or body."""
    status_code = 400
    error_id = "invalidRequest"
    default_message = "Invalid request."


class InsecureRequestError(ApiError):
    """Plain-HTTP request where HTTPS is required."""
    status_code = 400
    error_id = "insecureRequest"
    default_message = "HTTPS is required."


class NotFoundError(ApiError):
    """Route or domain resource missing."""
    status_code = 404
    error_id = "NotFound"
    default_message = "The requested resource was not found."


class InternalError(ApiError):
    """Unexpected fault inside a handler."""
    status_code = 500
    error_id = "internalError"
    default_message = "An internal error occurred."


class RegistrationError(Exception):
    """Invalid endpoint configuration detected at startup."""
    pass

