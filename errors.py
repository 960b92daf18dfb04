"""
Error taxonomy for the store API.

Every failure leaves the API as a flat JSON object:

    {"success": false, "message": "...", ...extra}

Storage failures additionally echo the underlying error so operators can see
what the driver reported.
"""
from typing import Any, Dict, Optional


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        body.update(self.extra)
        return body


class ValidationFailed(ApiError):
    status_code = 400


class NotFound(ApiError):
    status_code = 404


class AlreadyExists(ApiError):
    status_code = 409


class StillReferenced(ApiError):
    """Delete blocked because another collection still points at the document."""
    status_code = 400


class Unauthorized(ApiError):
    status_code = 401


class StorageFailure(ApiError):
    def __init__(self, message: str, error: BaseException, status_code: int = 500):
        super().__init__(message, status_code=status_code, error=str(error))
        self.error = error
