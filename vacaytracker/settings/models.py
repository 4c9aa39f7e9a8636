"""Application settings ORM model (single row)."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from vacaytracker.common.audit import JSONType
from vacaytracker.common.constants import SETTINGS_ROW_ID
from vacaytracker.database import Base


class AppSettings(Base):
    __tablename__ = "app_settings"
    __table_args__ = (
        sa.CheckConstraint(
            "vacation_reset_month BETWEEN 1 AND 12",
            name="ck_app_settings_reset_month",
        ),
    )

    id: Mapped[str] = mapped_column(
        sa.String(20), primary_key=True, default=SETTINGS_ROW_ID
    )
    # {"exclude_weekends": bool, "excluded_days": [0..6]}, 0 = Sunday
    weekend_policy: Mapped[dict] = mapped_column(JSONType, nullable=False)
    default_vacation_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    vacation_reset_month: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=1
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )
