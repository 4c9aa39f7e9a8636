"""Settings Pydantic v2 schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vacaytracker.common.constants import DEFAULT_EXCLUDED_DAYS


class WeekendPolicy(BaseModel):
    """Which weekdays are not charged against the vacation balance.

    ``excluded_days`` uses a Sunday-based index: 0 = Sunday .. 6 = Saturday.
    """

    exclude_weekends: bool = True
    excluded_days: list[int] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_DAYS)
    )

    @field_validator("excluded_days")
    @classmethod
    def days_in_week(cls, v: list[int]) -> list[int]:
        bad = [d for d in v if d < 0 or d > 6]
        if bad:
            raise ValueError(f"excluded_days must be between 0 and 6, got {bad}.")
        return sorted(set(v))


class AppSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    weekend_policy: WeekendPolicy
    default_vacation_days: int
    vacation_reset_month: int
    updated_at: Optional[datetime] = None


class AppSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    weekend_policy: Optional[WeekendPolicy] = None
    default_vacation_days: Optional[int] = Field(None, ge=0, le=365)
    vacation_reset_month: Optional[int] = Field(None, ge=1, le=12)


class PublicSettingsOut(BaseModel):
    """Settings any signed-in user may read."""

    model_config = ConfigDict(from_attributes=True)

    default_vacation_days: int
    vacation_reset_month: int
