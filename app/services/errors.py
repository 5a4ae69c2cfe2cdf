"""
Service-level exceptions.

Raised by services and repositories; the application maps each one to an
HTTP status and a stable error code at the request boundary.
"""
from typing import List, Optional


class ServiceError(Exception):
    """Base class for errors that are reported to the client."""
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.fields = fields

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        if self.fields:
            payload["fields"] = self.fields
        return payload


class UnauthenticatedError(ServiceError):
    """Exception raised when the request carries no verified identity."""
    status_code = 401
    code = "UNAUTHENTICATED"


class ForbiddenError(ServiceError):
    """Exception raised when the caller does not own the resource."""
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(ServiceError):
    """Exception raised when the requested resource doesn't exist."""
    status_code = 404
    code = "NOT_FOUND"


class InvalidInputError(ServiceError):
    """Exception raised for missing or empty fields and disallowed uploads."""
    status_code = 400
    code = "INVALID_INPUT"


class PayloadTooLargeError(ServiceError):
    """Exception raised when an upload exceeds the size ceiling."""
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"


class StorageFailureError(ServiceError):
    """Exception raised when the database or the upload directory fails a write."""
    status_code = 500
    code = "STORAGE_FAILURE"
