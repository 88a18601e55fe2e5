# cashai/errors.py
# Error taxonomy shared by the store, the Plaid adapter and the routes

from typing import Any, Dict, Optional


class CashAIError(Exception):
    """Base error rendered as a JSON ``{"error": ...}`` payload."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.message}
        payload.update({k: v for k, v in self.extra.items() if v is not None})
        return payload


class ValidationError(CashAIError):
    """A required request field is missing or malformed."""

    status_code = 400


class AuthError(CashAIError):
    """Missing or invalid session token."""

    status_code = 401


class NotFoundError(CashAIError):
    status_code = 404


class ConflictError(CashAIError):
    """Unique constraint would be violated (e.g. duplicate email)."""

    status_code = 409


class StorageError(CashAIError):
    """Database I/O or constraint failure, wrapping the original fault."""

    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None, **extra: Any):
        super().__init__(message, **extra)
        self.cause = cause


class UpstreamError(CashAIError):
    """Non-success response from Plaid."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        error_type: Optional[str] = None,
        status: Optional[int] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.error_type = error_type
        self.status = status
        self.request_id = request_id

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.error_code:
            payload["error_code"] = self.error_code
        if self.error_type:
            payload["error_type"] = self.error_type
        return payload
