"""Vacation ORM model: VacationRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vacaytracker.common.constants import VacationStatus
from vacaytracker.database import Base
from vacaytracker.users.models import User


class VacationRequest(Base):
    __tablename__ = "vacation_requests"
    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_vacation_requests_range"),
        sa.CheckConstraint("total_days >= 0", name="ck_vacation_requests_total_days"),
        sa.Index("ix_vacation_requests_user_status", "user_id", "status"),
        sa.Index("ix_vacation_requests_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    # Fixed at creation from the weekend policy in force at that moment
    total_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[VacationStatus] = mapped_column(
        sa.Enum(VacationStatus, name="vacation_status"),
        nullable=False,
        default=VacationStatus.pending,
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )

    # Relationships (explicit eager loading only; async sessions cannot lazy-load)
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="raise")
    reviewer: Mapped[Optional[User]] = relationship(
        foreign_keys=[reviewed_by], lazy="raise"
    )
