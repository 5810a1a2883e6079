"""Domain error taxonomy surfaced as HTTP errors.

Every class is an ``HTTPException`` so services can raise them directly and the
shared handlers in ``trellone.core.error_handling`` render them with a request id.
"""

from __future__ import annotations

from fastapi import HTTPException, status

TOKEN_EXPIRED = "TOKEN_EXPIRED"


class TrelloneError(HTTPException):
    """Base error carrying a stable message and optional machine-readable code."""

    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=self.status_code_default, detail=message, headers=headers)
        self.message = message
        self.error_code = error_code

    def extra_payload(self) -> dict[str, object]:
        if self.error_code is None:
            return {}
        return {"error_code": self.error_code}


class ValidationError(TrelloneError):
    """Request shape or content is invalid."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(
        self,
        message: str = "Validation error",
        *,
        errors: dict[str, str] | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code)
        self.errors = dict(errors or {})

    def extra_payload(self) -> dict[str, object]:
        payload = super().extra_payload()
        if self.errors:
            payload["errors"] = dict(self.errors)
        return payload


class NotFoundError(TrelloneError):
    """Referenced entity is absent or soft-deleted."""

    status_code_default = status.HTTP_404_NOT_FOUND


class ForbiddenError(TrelloneError):
    """Caller is authenticated but lacks the required permission or membership."""

    status_code_default = status.HTTP_403_FORBIDDEN


class UnauthorizedError(TrelloneError):
    """Missing, invalid, or expired access token."""

    status_code_default = status.HTTP_401_UNAUTHORIZED


class ConflictError(TrelloneError):
    """Request conflicts with current state (reorder set mismatch, duplicates)."""

    status_code_default = status.HTTP_409_CONFLICT
