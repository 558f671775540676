"""HR desk error types and their RFC 7807 problem responses.

Services raise these; the handlers registered on the app turn them, and
FastAPI's own request validation errors, into ``application/problem+json``
bodies with a per-field ``errors`` map.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

BASE_ERROR_URI = "https://hrdesk.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Carries the status, problem type slug and field errors of a failure."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404: nothing of that kind is stored under the given id."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409: a unique value such as an email or department name is taken."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class ForbiddenException(AppException):
    """403: the caller's role does not allow the action."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422: field-level rule failures, e.g. a bad IBAN or a skipped status."""

    def __init__(
        self,
        errors: dict[str, list[str]],
        detail: str = "One or more fields failed validation.",
    ) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail=detail,
            errors=errors,
        )


class BackendError(AppException):
    """502: a store call failed; the raw driver text is passed through."""

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        code: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> None:
        extra = {
            key: [value]
            for key, value in (("hint", hint), ("code", code), ("detail", detail))
            if value
        }
        super().__init__(
            status_code=502,
            error_type="backend-error",
            title="Backend Error",
            detail=message,
            errors=extra or None,
        )
        self.hint = hint
        self.code = code

    @classmethod
    def from_db_error(cls, exc: SQLAlchemyError) -> "BackendError":
        """Lift hint/code/detail off the DBAPI error where the driver provides them."""
        orig = exc.orig if isinstance(exc, DBAPIError) else None
        message = str(orig) if orig is not None else str(exc)
        return cls(
            message,
            hint=getattr(orig, "hint", None),
            code=getattr(orig, "sqlstate", None) or getattr(exc, "code", None),
            detail=getattr(orig, "detail", None),
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    """``("body", "bank", "iban")`` becomes ``"bank.iban"``."""
    if len(loc) > 1:
        return ".".join(str(part) for part in loc[1:])
    return str(loc[0]) if loc else "unknown"


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field_errors.setdefault(_field_name(tuple(err.get("loc", ()))), []).append(
            err.get("msg", "Invalid value")
        )
    problem = ValidationException(field_errors, detail="Request validation failed.")
    return await _handle_app_exception(request, problem)


# ── Registration ────────────────────────────────────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Route every HR desk error and request validation error to a problem body."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
