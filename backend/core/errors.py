"""
Error kinds raised by the search and progress services.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException


class SearchAPIError(Exception):
    """Base class; anything not more specific is an internal error."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str, details: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        body = {"error_code": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class BadRequestError(SearchAPIError):
    """Missing or malformed request parameter."""

    status_code = 400
    error_code = "bad_request"


class NotFoundError(SearchAPIError):
    """Identifier does not resolve to a known entity."""

    status_code = 404
    error_code = "not_found"


class DependencyMissingError(SearchAPIError):
    """A required host collaborator is not available in this deployment."""

    status_code = 500
    error_code = "controller_not_found"


class InternalError(SearchAPIError):
    pass


def to_http_exception(error: Exception) -> HTTPException:
    """Convert any error reaching a request boundary into an HTTPException."""
    if isinstance(error, SearchAPIError):
        return HTTPException(status_code=error.status_code, detail=error.to_dict())

    return HTTPException(
        status_code=500,
        detail={
            "error_code": "internal_error",
            "message": "An error occurred while processing the request",
            "details": str(error),
        },
    )
