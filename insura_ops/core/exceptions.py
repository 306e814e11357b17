"""Custom exception hierarchy."""

from typing import Any, Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class BackendError(AppError):
    """Raised when the data API rejects a request.

    Carries the PostgREST/Postgres error fields so the error normalizer can
    classify by ``code`` first and by ``message`` second.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.code = code
        self.details = details
        self.hint = hint
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"BackendError(code={self.code!r}, message={self.message!r}, status_code={self.status_code!r})"


class BackendConnectionError(BackendError):
    """Raised when the backend cannot be reached (DNS, refused, TLS, reset)."""
    pass


class BackendTimeoutError(BackendConnectionError):
    """Raised when a backend call times out."""
    pass


class AuthApiError(AppError):
    """Raised when the auth API rejects a request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.error_code = error_code


class ServiceKeyUnavailableError(AppError):
    """Raised when an elevated operation runs without a service-role client."""

    def __init__(self, message: str = "Service role key not available"):
        super().__init__(message)


class RowShapeError(AppError):
    """Raised when a backend row does not match the expected row model."""
    pass


class AccessDeniedError(AppError):
    """Raised when the acting user lacks the role or ownership an operation needs."""
    pass
