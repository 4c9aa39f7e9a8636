"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vacaytracker.common.constants import VacationStatus

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://vacaytracker.app/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

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
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class UnauthorizedException(AppException):
    """401 — missing, malformed or expired credentials."""

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
        )


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

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
    """422 — business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


# ── Vacation request errors ─────────────────────────────────────────

class InvalidDateRangeError(AppException):
    """400 — end date before start date."""

    def __init__(self, start_date: date, end_date: date) -> None:
        super().__init__(
            status_code=400,
            error_type="invalid-date-range",
            title="Invalid Date Range",
            detail="End date must be on or after start date.",
            errors={"end_date": [
                f"{end_date.isoformat()} is before {start_date.isoformat()}."
            ]},
        )


class DateInPastError(AppException):
    """400 — start date earlier than today."""

    def __init__(self, start_date: date, today: date) -> None:
        super().__init__(
            status_code=400,
            error_type="date-in-past",
            title="Date In Past",
            detail="Start date cannot be in the past.",
            errors={"start_date": [
                f"{start_date.isoformat()} is before {today.isoformat()}."
            ]},
        )


class OverlappingRequestError(AppException):
    """409 — range overlaps a pending or approved request of the same user."""

    def __init__(self) -> None:
        super().__init__(
            status_code=409,
            error_type="overlapping-request",
            title="Overlapping Request",
            detail="Request overlaps with an existing pending or approved vacation.",
        )


class InvalidStatusError(AppException):
    """409 — transition not allowed from the request's current status."""

    def __init__(self, current: VacationStatus, action: str) -> None:
        self.current = current
        super().__init__(
            status_code=409,
            error_type="invalid-status",
            title="Invalid Status",
            detail=f"Cannot {action} a request that is already {current.value}.",
            errors={"status": [current.value]},
        )


class InsufficientBalanceError(AppException):
    """422 — approval would drive the balance negative."""

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            status_code=422,
            error_type="insufficient-balance",
            title="Insufficient Balance",
            detail=(
                f"Insufficient vacation balance: requested {requested} days, "
                f"available {available} days."
            ),
            errors={"requested": [str(requested)], "available": [str(available)]},
        )


class CannotCancelApprovedError(ForbiddenException):
    """403 — approved requests cannot be cancelled."""

    def __init__(self) -> None:
        super().__init__("Cannot cancel an approved request.")
        self.error_type = "cannot-cancel-approved"


class CannotCancelRejectedError(ForbiddenException):
    """403 — rejected requests cannot be cancelled."""

    def __init__(self) -> None:
        super().__init__("Cannot cancel a rejected request.")
        self.error_type = "cannot-cancel-rejected"


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
    logger.info(
        "%s %s rejected: %s",
        request.method,
        request.url.path,
        exc.error_type,
        extra={"status": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
