"""Common module — shared utilities for VacayTracker."""

from vacaytracker.common.audit import AuditTrail, create_audit_entry
from vacaytracker.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    InvalidTransition,
    NotificationType,
    UserRole,
    VacationAction,
    VacationStatus,
    next_status,
)
from vacaytracker.common.exceptions import (
    AppException,
    CannotCancelApprovedError,
    CannotCancelRejectedError,
    ConflictError,
    DateInPastError,
    ForbiddenException,
    InsufficientBalanceError,
    InvalidDateRangeError,
    InvalidStatusError,
    NotFoundException,
    OverlappingRequestError,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from vacaytracker.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "InvalidTransition",
    "NotificationType",
    "UserRole",
    "VacationAction",
    "VacationStatus",
    "next_status",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "CannotCancelApprovedError",
    "CannotCancelRejectedError",
    "ConflictError",
    "DateInPastError",
    "ForbiddenException",
    "InsufficientBalanceError",
    "InvalidDateRangeError",
    "InvalidStatusError",
    "NotFoundException",
    "OverlappingRequestError",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
