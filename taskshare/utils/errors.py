"""Utility helpers for standardized error responses."""
from typing import Any

from fastapi import status


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return payload


class DomainError(Exception):
    """Business rule violation raised from service code.

    Rendered by the application exception handler with ``status_code`` and the
    standard error payload.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return error_response(self.code, self.message, self.details)


class InvalidStatusTransition(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move task request from '{current}' to '{requested}'.",
            {"current_status": current, "requested_status": requested},
        )
        self.current = current
        self.requested = requested


class InsufficientFunds(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INSUFFICIENT_FUNDS"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            "Insufficient wallet balance.",
            {"required": required, "available": available},
        )
        self.required = required
        self.available = available
