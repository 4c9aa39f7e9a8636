"""Overlap checks between a candidate date range and a user's live requests."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.common.constants import VacationStatus
from vacaytracker.vacation.models import VacationRequest

# Statuses that still block the calendar
BLOCKING_STATUSES = (VacationStatus.pending, VacationStatus.approved)


def ranges_overlap(s1: date, e1: date, s2: date, e2: date) -> bool:
    """True when the inclusive ranges share at least one day."""
    return s1 <= e2 and s2 <= e1


async def has_overlap(
    db: AsyncSession,
    user_id: uuid.UUID,
    start: date,
    end: date,
    *,
    excluding_request_id: Optional[uuid.UUID] = None,
    lock: bool = False,
) -> bool:
    """Does *user_id* hold a pending or approved request touching ``[start, end]``?

    Rejected and cancelled requests never block.  With ``lock=True`` the
    matching rows are read ``FOR UPDATE`` (ignored by SQLite).
    """
    conditions = [
        VacationRequest.user_id == user_id,
        VacationRequest.status.in_(BLOCKING_STATUSES),
        VacationRequest.start_date <= end,
        VacationRequest.end_date >= start,
    ]
    if excluding_request_id is not None:
        conditions.append(VacationRequest.id != excluding_request_id)

    if lock:
        # Aggregates cannot carry FOR UPDATE; lock the candidate ids instead.
        query = select(VacationRequest.id).where(*conditions).with_for_update()
        return (await db.execute(query)).first() is not None

    query = select(func.count()).select_from(VacationRequest).where(*conditions)
    return (await db.execute(query)).scalar_one() > 0
