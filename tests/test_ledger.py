"""Balance ledger and overlap queries against the database."""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from vacaytracker.common.constants import VacationStatus
from vacaytracker.common.exceptions import (
    InsufficientBalanceError,
    NotFoundException,
    ValidationException,
)
from vacaytracker.database import unit_of_work
from vacaytracker.users import ledger
from vacaytracker.users.models import User
from vacaytracker.vacation.overlap import has_overlap
from tests.factories import seed_admin, seed_request, seed_user


async def _balance(db, user_id) -> int:
    return (
        await db.execute(select(User.vacation_balance).where(User.id == user_id))
    ).scalar_one()


# ═════════════════════════════════════════════════════════════════════
# Ledger
# ═════════════════════════════════════════════════════════════════════


class TestDeduct:

    async def test_deduct_returns_new_balance(self, db):
        user = await seed_user(db, balance=10)
        async with unit_of_work(db) as tx:
            assert await ledger.deduct(tx, user.id, 4) == 6
        assert await _balance(db, user.id) == 6

    async def test_deduct_to_exactly_zero(self, db):
        user = await seed_user(db, balance=3)
        async with unit_of_work(db) as tx:
            assert await ledger.deduct(tx, user.id, 3) == 0

    async def test_insufficient_balance_reports_amounts(self, db):
        user = await seed_user(db, balance=2)
        with pytest.raises(InsufficientBalanceError) as exc_info:
            async with unit_of_work(db) as tx:
                await ledger.deduct(tx, user.id, 5)
        assert exc_info.value.requested == 5
        assert exc_info.value.available == 2
        assert await _balance(db, user.id) == 2

    async def test_unknown_user(self, db):
        with pytest.raises(NotFoundException):
            async with unit_of_work(db) as tx:
                await ledger.deduct(tx, uuid.uuid4(), 1)

    async def test_negative_days_is_a_caller_error(self, db):
        user = await seed_user(db)
        with pytest.raises(ValueError):
            await ledger.deduct(db, user.id, -1)

    async def test_rollback_discards_deduction(self, db):
        user = await seed_user(db, balance=10)
        with pytest.raises(RuntimeError):
            async with unit_of_work(db) as tx:
                await ledger.deduct(tx, user.id, 4)
                raise RuntimeError("boom")
        assert await _balance(db, user.id) == 10

    async def test_identity_map_copy_is_refreshed(self, db):
        user = await seed_user(db, balance=10)
        async with unit_of_work(db) as tx:
            await ledger.deduct(tx, user.id, 4)
        assert user.vacation_balance == 6


class TestSetAndReset:

    async def test_set_balance_returns_previous(self, db):
        user = await seed_user(db, balance=7)
        async with unit_of_work(db) as tx:
            assert await ledger.set_balance(tx, user.id, 20) == 7
        assert await _balance(db, user.id) == 20

    async def test_set_balance_rejects_negative(self, db):
        user = await seed_user(db, balance=7)
        with pytest.raises(ValidationException) as exc_info:
            await ledger.set_balance(db, user.id, -1)
        assert "vacation_balance" in exc_info.value.errors

    async def test_set_balance_unknown_user(self, db):
        with pytest.raises(NotFoundException):
            await ledger.set_balance(db, uuid.uuid4(), 5)

    async def test_reset_all_counts_rows(self, db):
        a = await seed_user(db, balance=1)
        b = await seed_user(db, balance=40)
        async with unit_of_work(db) as tx:
            assert await ledger.reset_all(tx, 25) == 2
        assert await _balance(db, a.id) == 25
        assert await _balance(db, b.id) == 25

    async def test_reset_all_skips_admins(self, db):
        admin = await seed_admin(db)
        employee = await seed_user(db, balance=3)
        async with unit_of_work(db) as tx:
            assert await ledger.reset_all(tx, 10) == 1
        assert await _balance(db, employee.id) == 10
        assert await _balance(db, admin.id) == 25
        assert admin.vacation_balance == 25

    async def test_reset_all_rejects_negative(self, db):
        await seed_user(db)
        with pytest.raises(ValidationException):
            await ledger.reset_all(db, -5)


# ═════════════════════════════════════════════════════════════════════
# Overlap
# ═════════════════════════════════════════════════════════════════════


class TestHasOverlap:

    async def test_approved_request_blocks(self, db):
        """Approved 07-01..07-05 blocks a new 07-04..07-10."""
        user = await seed_user(db)
        await seed_request(
            db, user, start=date(2025, 7, 1), end=date(2025, 7, 5),
            status=VacationStatus.approved,
        )
        assert await has_overlap(db, user.id, date(2025, 7, 4), date(2025, 7, 10))

    async def test_pending_request_blocks(self, db):
        user = await seed_user(db)
        await seed_request(db, user, start=date(2025, 7, 1), end=date(2025, 7, 5))
        assert await has_overlap(
            db, user.id, date(2025, 7, 5), date(2025, 7, 5), lock=True,
        )

    @pytest.mark.parametrize(
        "status", [VacationStatus.rejected, VacationStatus.cancelled],
    )
    async def test_closed_requests_never_block(self, db, status):
        user = await seed_user(db)
        await seed_request(
            db, user, start=date(2025, 7, 1), end=date(2025, 7, 5), status=status,
        )
        assert not await has_overlap(db, user.id, date(2025, 7, 1), date(2025, 7, 5))

    async def test_containment(self, db):
        user = await seed_user(db)
        await seed_request(db, user, start=date(2025, 7, 10), end=date(2025, 7, 12))
        assert await has_overlap(db, user.id, date(2025, 7, 1), date(2025, 7, 31))

    async def test_adjacent_ranges_are_free(self, db):
        user = await seed_user(db)
        await seed_request(db, user, start=date(2025, 7, 1), end=date(2025, 7, 5))
        assert not await has_overlap(db, user.id, date(2025, 7, 6), date(2025, 7, 9))

    async def test_other_users_do_not_block(self, db):
        alice = await seed_user(db, name="Alice")
        bob = await seed_user(db, name="Bob")
        await seed_request(db, alice, start=date(2025, 7, 1), end=date(2025, 7, 5))
        assert not await has_overlap(db, bob.id, date(2025, 7, 1), date(2025, 7, 5))

    async def test_excluding_request_id(self, db):
        user = await seed_user(db)
        req = await seed_request(db, user, start=date(2025, 7, 1), end=date(2025, 7, 5))
        assert not await has_overlap(
            db, user.id, date(2025, 7, 1), date(2025, 7, 5),
            excluding_request_id=req.id,
        )
