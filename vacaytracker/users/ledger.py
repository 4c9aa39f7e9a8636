"""Balance ledger: the only code path that writes ``users.vacation_balance``.

Every function runs inside the caller's transaction (``tx``) and never
commits.  Writes are single conditional UPDATE statements so that two
transactions racing on the same user can never both succeed in driving the
balance below zero, with or without row locks.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.common.constants import UserRole
from vacaytracker.common.exceptions import (
    InsufficientBalanceError,
    NotFoundException,
    ValidationException,
)
from vacaytracker.users.models import User

logger = logging.getLogger(__name__)


async def _current_balance(tx: AsyncSession, user_id: uuid.UUID) -> int | None:
    result = await tx.execute(
        select(User.vacation_balance).where(User.id == user_id)
    )
    return result.scalar_one_or_none()


async def _refresh_user(tx: AsyncSession, user_id: uuid.UUID) -> None:
    # Bring any identity-map copy in line with the row we just wrote.
    await tx.execute(
        select(User)
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )


async def deduct(tx: AsyncSession, user_id: uuid.UUID, days: int) -> int:
    """Subtract *days* from the user's balance and return the new balance.

    Raises:
        NotFoundException: user does not exist.
        InsufficientBalanceError: balance is lower than *days*; nothing is
            written.
    """
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")

    result = await tx.execute(
        update(User)
        .where(User.id == user_id, User.vacation_balance >= days)
        .values(vacation_balance=User.vacation_balance - days)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        available = await _current_balance(tx, user_id)
        if available is None:
            raise NotFoundException("User", user_id)
        logger.info(
            "Balance deduction refused",
            extra={"user_id": str(user_id), "balance": available},
        )
        raise InsufficientBalanceError(requested=days, available=available)

    await _refresh_user(tx, user_id)
    new_balance = await _current_balance(tx, user_id)
    logger.info(
        "Deducted %d days",
        days,
        extra={"user_id": str(user_id), "balance": new_balance},
    )
    return new_balance


async def set_balance(tx: AsyncSession, user_id: uuid.UUID, value: int) -> int:
    """Overwrite one user's balance; returns the previous value."""
    if value < 0:
        raise ValidationException(
            {"vacation_balance": ["Balance cannot be negative."]}
        )

    previous = await _current_balance(tx, user_id)
    if previous is None:
        raise NotFoundException("User", user_id)

    await tx.execute(
        update(User)
        .where(User.id == user_id)
        .values(vacation_balance=value)
        .execution_options(synchronize_session=False)
    )
    await _refresh_user(tx, user_id)
    logger.info(
        "Balance set from %d to %d",
        previous,
        value,
        extra={"user_id": str(user_id), "balance": value},
    )
    return previous


async def reset_all(tx: AsyncSession, value: int) -> int:
    """Set every employee's balance to *value*; returns the number of rows touched.

    Admin balances are left alone.
    """
    if value < 0:
        raise ValidationException(
            {"vacation_balance": ["Balance cannot be negative."]}
        )

    result = await tx.execute(
        update(User)
        .where(User.role == UserRole.employee)
        .values(vacation_balance=value)
        .execution_options(synchronize_session="evaluate")
    )
    logger.info("Reset %d balances to %d", result.rowcount, value)
    return result.rowcount
