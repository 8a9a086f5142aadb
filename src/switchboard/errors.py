"""Application error taxonomy and the structured payloads shown to callers."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that carry a status-code-equivalent severity."""

    def __init__(self, message: str, status_code: int = 500, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "code": self.code,
        }


class ValidationError(AppError):
    def __init__(self, message: str):
        super().__init__(message, 400, "VALIDATION_ERROR")


class AuthenticationError(AppError):
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, 401, "AUTHENTICATION_ERROR")


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, 404, "NOT_FOUND")


class AlreadyExistsError(AppError):
    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, 409, "ALREADY_EXISTS")


class GatewayError(AppError):
    """The language-model call failed or returned a malformed payload."""

    def __init__(self, message: str):
        super().__init__(message, 502, "GATEWAY_ERROR")


class AdapterInfrastructureError(AppError):
    """A tool adapter's backing infrastructure failed.

    Adapters raise this internally and convert it into their documented
    failure result before returning, so callers normally never see it.
    """

    def __init__(self, message: str):
        super().__init__(message, 502, "ADAPTER_ERROR")


class ConfigError(AppError):
    def __init__(self, message: str):
        super().__init__(message, 500, "CONFIG_ERROR")


def error_payload(exc: BaseException) -> tuple[int, dict[str, Any]]:
    """Map any exception to a ``(status_code, body)`` pair for one-shot callers."""
    if isinstance(exc, AppError):
        return exc.status_code, exc.to_dict()
    return 500, {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred",
    }
