"""User ORM model — identity subset plus the vacation balance."""

from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from vacaytracker.common.constants import UserRole
from vacaytracker.database import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        sa.CheckConstraint("vacation_balance >= 0", name="ck_users_balance_non_negative"),
        sa.Index("ix_users_role", "role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.employee,
    )
    # Mutated only through vacaytracker.users.ledger
    vacation_balance: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin
