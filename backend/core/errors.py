"""Classified API errors.

Every error a caller can observe is one of these ``HTTPException`` subclasses.
The ``code`` is stable and is returned next to the human-readable detail.
"""

from __future__ import annotations

from typing import ClassVar

from fastapi import HTTPException, status


class GatewayError(HTTPException):
    status_code_default: ClassVar[int] = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: ClassVar[str] = "internal"
    default_detail: ClassVar[str] = "Internal server error"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
            headers=headers,
        )


class UnauthorizedError(GatewayError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_detail = "Not authenticated"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(GatewayError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Forbidden"


class NotFoundError(GatewayError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class ConflictError(GatewayError):
    status_code_default = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Conflict"


class BadRequestError(GatewayError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "bad_request"
    default_detail = "Bad request"


class InvalidOrExpiredTokenError(GatewayError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "invalid_or_expired"
    default_detail = "Invalid or expired token"


class PayloadTooLargeError(GatewayError):
    status_code_default = status.HTTP_413_CONTENT_TOO_LARGE
    code = "payload_too_large"
    default_detail = "Payload too large"


__all__ = [
    "GatewayError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "BadRequestError",
    "InvalidOrExpiredTokenError",
    "PayloadTooLargeError",
]
