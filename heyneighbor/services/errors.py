"""Error taxonomy shared by every service."""
from __future__ import annotations


class ServiceError(Exception):
    """Base class carrying a stable error code and the HTTP status routers should use."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class ValidationError(ServiceError):
    code = "invalid_request"
    status_code = 400


class NotFoundError(ServiceError):
    code = "not_found"
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409
