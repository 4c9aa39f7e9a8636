"""User administration service — accounts and balance maintenance."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.common.audit import create_audit_entry
from vacaytracker.common.constants import DEFAULT_PAGE_SIZE, UserRole
from vacaytracker.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
)
from vacaytracker.common.pagination import PaginatedResponse, paginate
from vacaytracker.database import unit_of_work
from vacaytracker.settings.service import SettingsService
from vacaytracker.users import ledger
from vacaytracker.users.models import User
from vacaytracker.users.schemas import (
    BalanceResetOut,
    UserCreate,
    UserOut,
    UserUpdate,
)

logger = logging.getLogger(__name__)


class UserService:
    """Admin-facing user operations."""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = (
            await db.execute(select(User).where(User.id == user_id))
        ).scalar_one_or_none()
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        *,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> PaginatedResponse[UserOut]:
        query = select(User).order_by(User.name, User.id)
        if role is not None:
            query = query.where(User.role == role)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(User.name.ilike(pattern), User.email.ilike(pattern))
            )

        rows, meta = await paginate(db, query, page=page, page_size=page_size)
        return PaginatedResponse[UserOut](
            data=[UserOut.model_validate(u) for u in rows],
            meta=meta,
        )

    @staticmethod
    async def create_user(
        db: AsyncSession,
        data: UserCreate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> UserOut:
        async with unit_of_work(db) as tx:
            existing = (
                await tx.execute(select(User.id).where(User.email == data.email))
            ).scalar_one_or_none()
            if existing is not None:
                raise ConflictError("email", data.email)

            balance = data.vacation_balance
            if balance is None:
                balance = await SettingsService.get_default_vacation_days(tx)

            user = User(
                email=data.email,
                name=data.name,
                role=data.role,
                vacation_balance=balance,
            )
            tx.add(user)
            await tx.flush()
            await tx.refresh(user)

            await create_audit_entry(
                tx,
                action="create",
                entity_type="user",
                entity_id=user.id,
                actor_id=actor_id,
                new_values={
                    "email": user.email,
                    "role": user.role.value,
                    "vacation_balance": user.vacation_balance,
                },
            )
            result = UserOut.model_validate(user)

        logger.info("User created", extra={"user_id": str(result.id)})
        return result

    @staticmethod
    async def _count_admins(db: AsyncSession) -> int:
        return (
            await db.execute(
                select(func.count()).select_from(User).where(User.role == UserRole.admin)
            )
        ).scalar_one()

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: UserUpdate,
        actor_id: uuid.UUID,
    ) -> UserOut:
        """Partial update of email, name and role.

        An admin cannot change their own role, and the last admin cannot be
        demoted.
        """
        async with unit_of_work(db) as tx:
            user = await UserService.get_user(tx, user_id)
            old_values = {
                "email": user.email,
                "name": user.name,
                "role": user.role.value,
            }

            if data.email is not None and data.email != user.email:
                taken = (
                    await tx.execute(
                        select(User.id).where(User.email == data.email, User.id != user_id)
                    )
                ).scalar_one_or_none()
                if taken is not None:
                    raise ConflictError("email", data.email)
                user.email = data.email

            if data.role is not None and data.role != user.role:
                if user_id == actor_id:
                    raise ForbiddenException("You cannot change your own role.")
                if user.role == UserRole.admin and await UserService._count_admins(tx) <= 1:
                    raise ForbiddenException("Cannot demote the last admin.")
                user.role = data.role

            if data.name is not None:
                user.name = data.name

            await tx.flush()
            await tx.refresh(user)

            await create_audit_entry(
                tx,
                action="update",
                entity_type="user",
                entity_id=user.id,
                actor_id=actor_id,
                old_values=old_values,
                new_values={
                    "email": user.email,
                    "name": user.name,
                    "role": user.role.value,
                },
            )
            result = UserOut.model_validate(user)

        logger.info(
            "User updated",
            extra={"user_id": str(user_id), "actor_id": str(actor_id)},
        )
        return result

    @staticmethod
    async def delete_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        """Remove an account together with its requests and notifications."""
        if user_id == actor_id:
            raise ForbiddenException("You cannot delete your own account.")

        async with unit_of_work(db) as tx:
            user = await UserService.get_user(tx, user_id)
            if user.role == UserRole.admin and await UserService._count_admins(tx) <= 1:
                raise ForbiddenException("Cannot delete the last admin.")

            await create_audit_entry(
                tx,
                action="delete",
                entity_type="user",
                entity_id=user.id,
                actor_id=actor_id,
                old_values={
                    "email": user.email,
                    "role": user.role.value,
                    "vacation_balance": user.vacation_balance,
                },
            )
            await tx.delete(user)
            await tx.flush()

        logger.info(
            "User deleted",
            extra={"user_id": str(user_id), "actor_id": str(actor_id)},
        )

    @staticmethod
    async def update_balance(
        db: AsyncSession,
        user_id: uuid.UUID,
        value: int,
        actor_id: Optional[uuid.UUID] = None,
    ) -> UserOut:
        """Admin override of one user's balance."""
        async with unit_of_work(db) as tx:
            previous = await ledger.set_balance(tx, user_id, value)
            await create_audit_entry(
                tx,
                action="set_balance",
                entity_type="user",
                entity_id=user_id,
                actor_id=actor_id,
                old_values={"vacation_balance": previous},
                new_values={"vacation_balance": value},
            )
            user = await UserService.get_user(tx, user_id)
            result = UserOut.model_validate(user)
        return result

    @staticmethod
    async def reset_all_balances(
        db: AsyncSession,
        value: Optional[int] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> BalanceResetOut:
        """Yearly reset; *value* defaults to the configured allowance."""
        async with unit_of_work(db) as tx:
            if value is None:
                value = await SettingsService.get_default_vacation_days(tx)
            count = await ledger.reset_all(tx, value)
            await create_audit_entry(
                tx,
                action="reset_balances",
                entity_type="user",
                actor_id=actor_id,
                new_values={"vacation_balance": value, "users_updated": count},
            )
        return BalanceResetOut(users_updated=count, vacation_balance=value)
