"""User Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vacaytracker.common.constants import UserRole


class UserBrief(BaseModel):
    """Minimal user info embedded in vacation responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str
    role: UserRole
    vacation_balance: int
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.employee
    vacation_balance: Optional[int] = Field(
        None, ge=0, description="Defaults to the configured annual allowance"
    )

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'.")
        return v


class UserUpdate(BaseModel):
    """Partial update; the balance is changed through its own endpoint."""

    email: Optional[str] = Field(None, min_length=3, max_length=255)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'.")
        return v


class BalanceUpdate(BaseModel):
    vacation_balance: int = Field(..., ge=0)


class BalanceResetRequest(BaseModel):
    """Omit ``vacation_balance`` to reset to the configured default."""

    vacation_balance: Optional[int] = Field(None, ge=0)


class BalanceResetOut(BaseModel):
    users_updated: int
    vacation_balance: int
