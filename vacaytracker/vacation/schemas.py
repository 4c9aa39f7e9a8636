"""Vacation Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out                → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vacaytracker.common.constants import VacationStatus
from vacaytracker.config import settings
from vacaytracker.users.schemas import UserBrief


# ═════════════════════════════════════════════════════════════════════
# Vacation Request — Create
# ═════════════════════════════════════════════════════════════════════


class VacationRequestCreate(BaseModel):
    """Payload for submitting a vacation request."""

    start_date: date = Field(..., description="First day off (inclusive)")
    end_date: date = Field(..., description="Last day off (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def limit_span(self) -> "VacationRequestCreate":
        # Order is checked by the service so it maps to invalid-date-range.
        if self.start_date <= self.end_date:
            span = (self.end_date - self.start_date).days
            if span > settings.MAX_REQUEST_SPAN_DAYS:
                raise ValueError(
                    f"Vacation request cannot span more than "
                    f"{settings.MAX_REQUEST_SPAN_DAYS} days."
                )
        return self


# ═════════════════════════════════════════════════════════════════════
# Vacation Request — Response
# ═════════════════════════════════════════════════════════════════════


class VacationRequestOut(BaseModel):
    """Full vacation request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = None
    status: VacationStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    # Enriched by service, not read from the ORM relationship
    requester: Optional[UserBrief] = None


# ═════════════════════════════════════════════════════════════════════
# Review
# ═════════════════════════════════════════════════════════════════════


class VacationRejectRequest(BaseModel):
    """Payload for rejecting a request."""

    reason: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Team calendar / stats
# ═════════════════════════════════════════════════════════════════════


class TeamVacationEntry(BaseModel):
    """Approved absence shown on the team calendar."""

    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    start_date: date
    end_date: date
    total_days: int


class TeamCalendarOut(BaseModel):
    month: int
    year: int
    entries: list[TeamVacationEntry]
    total_entries: int = 0


class MonthlyStatsOut(BaseModel):
    """Request counts by status for requests starting in the month."""

    month: int
    year: int
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
    approved_days: int = 0
