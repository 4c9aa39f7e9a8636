"""Enums and constants for VacayTracker, including the request state machine."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    admin = "admin"


# ── Vacation lifecycle ──────────────────────────────────────────────

class VacationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not VacationStatus.pending

    @property
    def is_reviewed(self) -> bool:
        """Statuses that carry reviewer metadata."""
        return self in (VacationStatus.approved, VacationStatus.rejected)


class VacationAction(str, enum.Enum):
    approve = "approve"
    reject = "reject"
    cancel = "cancel"


class InvalidTransition(ValueError):
    """Raised by :func:`next_status` when *action* is not allowed from *current*."""

    def __init__(self, current: VacationStatus, action: VacationAction) -> None:
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action.value} a request that is {current.value}.")


# Only pending has outgoing edges; every other status is terminal.
_TRANSITIONS: dict[VacationStatus, dict[VacationAction, VacationStatus]] = {
    VacationStatus.pending: {
        VacationAction.approve: VacationStatus.approved,
        VacationAction.reject: VacationStatus.rejected,
        VacationAction.cancel: VacationStatus.cancelled,
    },
    VacationStatus.approved: {},
    VacationStatus.rejected: {},
    VacationStatus.cancelled: {},
}


def next_status(current: VacationStatus, action: VacationAction) -> VacationStatus:
    """Return the status reached by applying *action* to *current*."""
    try:
        return _TRANSITIONS[current][action]
    except KeyError:
        raise InvalidTransition(current, action) from None


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    vacation_requested = "vacation_requested"
    vacation_approved = "vacation_approved"
    vacation_rejected = "vacation_rejected"
    vacation_cancelled = "vacation_cancelled"


# ── Misc constants ──────────────────────────────────────────────────

SETTINGS_ROW_ID = "settings"
DEFAULT_EXCLUDED_DAYS = [0, 6]    # Sunday, Saturday (0=Sunday .. 6=Saturday)
DEFAULT_RESET_MONTH = 1
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
