"""HTTP API tests — routing, auth, RFC 7807 error mapping."""

from __future__ import annotations

import uuid
from datetime import date, timedelta

from sqlalchemy import select

from vacaytracker.common.constants import UserRole, VacationStatus
from vacaytracker.users.models import User
from tests.factories import (
    auth_headers,
    create_access_token,
    seed_admin,
    seed_request,
    seed_user,
)


def _next_monday() -> date:
    today = date.today()
    return today + timedelta(days=7 - today.weekday())


class TestSystem:

    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestAuth:

    async def test_missing_token(self, client):
        resp = await client.get("/api/v1/vacation/requests")
        assert resp.status_code == 401
        body = resp.json()
        assert body["type"].endswith("/unauthorized")
        assert resp.headers["content-type"].startswith("application/problem+json")

    async def test_expired_token(self, client, db):
        user = await seed_user(db)
        token = create_access_token(user.id, expired=True)
        resp = await client.get(
            "/api/v1/vacation/requests",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 401

    async def test_token_for_unknown_user(self, client):
        token = create_access_token(uuid.uuid4())
        resp = await client.get(
            "/api/v1/vacation/requests",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 401

    async def test_admin_routes_need_admin_role(self, client, db):
        user = await seed_user(db)
        resp = await client.get("/api/v1/admin/vacation/pending", headers=auth_headers(user))
        assert resp.status_code == 403

    async def test_role_claim_cannot_escalate(self, client, db):
        user = await seed_user(db)
        token = create_access_token(user.id, role=UserRole.admin)
        resp = await client.get(
            "/api/v1/admin/users",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 403


class TestVacationEndpoints:

    async def test_create_list_and_get(self, client, db):
        user = await seed_user(db, balance=10)
        start = _next_monday()
        resp = await client.post(
            "/api/v1/vacation/requests",
            json={
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=4)).isoformat(),
                "reason": "Holiday",
            },
            headers=auth_headers(user),
        )
        assert resp.status_code == 201, resp.text
        created = resp.json()
        assert created["status"] == "pending"
        assert created["total_days"] == 5

        resp = await client.get("/api/v1/vacation/requests", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["meta"]["total"] == 1

        resp = await client.get(
            f"/api/v1/vacation/requests/{created['id']}", headers=auth_headers(user),
        )
        assert resp.status_code == 200
        assert resp.json()["requester"]["id"] == str(user.id)

    async def test_reversed_range_is_400(self, client, db):
        user = await seed_user(db)
        start = _next_monday()
        resp = await client.post(
            "/api/v1/vacation/requests",
            json={
                "start_date": (start + timedelta(days=3)).isoformat(),
                "end_date": start.isoformat(),
            },
            headers=auth_headers(user),
        )
        assert resp.status_code == 400
        assert resp.json()["type"].endswith("/invalid-date-range")

    async def test_past_start_is_400(self, client, db):
        user = await seed_user(db)
        past = date.today() - timedelta(days=2)
        resp = await client.post(
            "/api/v1/vacation/requests",
            json={"start_date": past.isoformat(), "end_date": past.isoformat()},
            headers=auth_headers(user),
        )
        assert resp.status_code == 400
        assert resp.json()["type"].endswith("/date-in-past")

    async def test_overlap_is_409(self, client, db):
        user = await seed_user(db)
        start = _next_monday()
        await seed_request(
            db, user, start=start, end=start + timedelta(days=4),
            status=VacationStatus.approved,
        )
        resp = await client.post(
            "/api/v1/vacation/requests",
            json={
                "start_date": (start + timedelta(days=3)).isoformat(),
                "end_date": (start + timedelta(days=9)).isoformat(),
            },
            headers=auth_headers(user),
        )
        assert resp.status_code == 409
        assert resp.json()["type"].endswith("/overlapping-request")

    async def test_span_limit_is_422(self, client, db):
        user = await seed_user(db)
        start = _next_monday()
        resp = await client.post(
            "/api/v1/vacation/requests",
            json={
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=400)).isoformat(),
            },
            headers=auth_headers(user),
        )
        assert resp.status_code == 422

    async def test_cancel_own_request(self, client, db):
        user = await seed_user(db)
        start = _next_monday()
        req = await seed_request(db, user, start=start, end=start)
        resp = await client.post(
            f"/api/v1/vacation/requests/{req.id}/cancel", headers=auth_headers(user),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

    async def test_cancel_approved_is_403(self, client, db):
        user = await seed_user(db)
        start = _next_monday()
        req = await seed_request(
            db, user, start=start, end=start, status=VacationStatus.approved,
        )
        resp = await client.post(
            f"/api/v1/vacation/requests/{req.id}/cancel", headers=auth_headers(user),
        )
        assert resp.status_code == 403
        assert resp.json()["type"].endswith("/cannot-cancel-approved")

    async def test_team_calendar(self, client, db):
        user = await seed_user(db, name="Alice")
        await seed_request(
            db, user, start=date(2025, 7, 1), end=date(2025, 7, 3),
            status=VacationStatus.approved,
        )
        resp = await client.get(
            "/api/v1/vacation/team",
            params={"month": 7, "year": 2025},
            headers=auth_headers(user),
        )
        assert resp.status_code == 200
        assert resp.json()["entries"][0]["user_name"] == "Alice"

        resp = await client.get(
            "/api/v1/vacation/team",
            params={"month": 13, "year": 2025},
            headers=auth_headers(user),
        )
        assert resp.status_code == 422


class TestAdminEndpoints:

    async def test_approve_flow(self, client, db):
        admin = await seed_admin(db)
        user = await seed_user(db, balance=5)
        start = _next_monday()
        req = await seed_request(
            db, user, start=start, end=start + timedelta(days=2), total_days=3,
        )

        resp = await client.get("/api/v1/admin/vacation/pending", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == [str(req.id)]

        resp = await client.put(
            f"/api/v1/admin/vacation/{req.id}/approve", headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["reviewed_by"] == str(admin.id)

        resp = await client.put(
            f"/api/v1/admin/vacation/{req.id}/approve", headers=auth_headers(admin),
        )
        assert resp.status_code == 409
        assert resp.json()["type"].endswith("/invalid-status")

        balance = (
            await db.execute(select(User.vacation_balance).where(User.id == user.id))
        ).scalar_one()
        assert balance == 2

    async def test_insufficient_balance_is_422(self, client, db):
        admin = await seed_admin(db)
        user = await seed_user(db, balance=1)
        start = _next_monday()
        req = await seed_request(
            db, user, start=start, end=start + timedelta(days=2), total_days=3,
        )
        resp = await client.put(
            f"/api/v1/admin/vacation/{req.id}/approve", headers=auth_headers(admin),
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["type"].endswith("/insufficient-balance")
        assert body["errors"] == {"requested": ["3"], "available": ["1"]}

    async def test_reject_with_reason(self, client, db):
        admin = await seed_admin(db)
        user = await seed_user(db)
        start = _next_monday()
        req = await seed_request(db, user, start=start, end=start)
        resp = await client.put(
            f"/api/v1/admin/vacation/{req.id}/reject",
            json={"reason": "Release week"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["rejection_reason"] == "Release week"

    async def test_unknown_request_is_404(self, client, db):
        admin = await seed_admin(db)
        resp = await client.put(
            f"/api/v1/admin/vacation/{uuid.uuid4()}/approve", headers=auth_headers(admin),
        )
        assert resp.status_code == 404

    async def test_stats(self, client, db):
        admin = await seed_admin(db)
        user = await seed_user(db)
        await seed_request(
            db, user, start=date(2025, 6, 2), end=date(2025, 6, 3),
            total_days=2, status=VacationStatus.approved,
        )
        resp = await client.get(
            "/api/v1/admin/vacation/stats",
            params={"month": 6, "year": 2025},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["approved_days"] == 2

    async def test_user_admin_endpoints(self, client, db):
        admin = await seed_admin(db)
        resp = await client.post(
            "/api/v1/admin/users",
            json={"email": "carol@example.com", "name": "Carol"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        carol_id = resp.json()["id"]
        assert resp.json()["vacation_balance"] == 25

        resp = await client.post(
            "/api/v1/admin/users",
            json={"email": "carol@example.com", "name": "Carol Again"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 409

        resp = await client.put(
            f"/api/v1/admin/users/{carol_id}/balance",
            json={"vacation_balance": 12},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["vacation_balance"] == 12

        resp = await client.put(
            f"/api/v1/admin/users/{carol_id}/balance",
            json={"vacation_balance": -1},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 422

        resp = await client.post(
            "/api/v1/admin/users/reset-balances",
            json={"vacation_balance": 18},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json() == {"users_updated": 1, "vacation_balance": 18}

        resp = await client.get(
            "/api/v1/admin/users", params={"search": "carol"}, headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["data"][0]["vacation_balance"] == 18

    async def test_settings_endpoints(self, client, db):
        admin = await seed_admin(db)
        resp = await client.get("/api/v1/admin/settings", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["weekend_policy"] == {
            "exclude_weekends": True,
            "excluded_days": [0, 6],
        }

        resp = await client.put(
            "/api/v1/admin/settings",
            json={"weekend_policy": {"exclude_weekends": True, "excluded_days": [5, 6]}},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["weekend_policy"]["excluded_days"] == [5, 6]

    async def test_notifications_inbox(self, client, db):
        admin = await seed_admin(db)
        user = await seed_user(db)
        start = _next_monday()
        resp = await client.post(
            "/api/v1/vacation/requests",
            json={"start_date": start.isoformat(), "end_date": start.isoformat()},
            headers=auth_headers(user),
        )
        assert resp.status_code == 201

        resp = await client.get("/api/v1/notifications", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert [n["type"] for n in resp.json()] == ["vacation_requested"]

    async def test_get_update_delete_user(self, client, db):
        admin = await seed_admin(db)
        user = await seed_user(db, name="Dave")

        resp = await client.get(f"/api/v1/admin/users/{user.id}", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["name"] == "Dave"

        resp = await client.put(
            f"/api/v1/admin/users/{user.id}",
            json={"name": "David"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "David"

        resp = await client.put(
            f"/api/v1/admin/users/{admin.id}",
            json={"role": "employee"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 403

        resp = await client.delete(f"/api/v1/admin/users/{admin.id}", headers=auth_headers(admin))
        assert resp.status_code == 403

        resp = await client.delete(f"/api/v1/admin/users/{user.id}", headers=auth_headers(admin))
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/admin/users/{user.id}", headers=auth_headers(admin))
        assert resp.status_code == 404

    async def test_public_settings_for_employees(self, client, db):
        user = await seed_user(db)
        resp = await client.get("/api/v1/settings/public", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json() == {"default_vacation_days": 25, "vacation_reset_month": 1}

        resp = await client.get("/api/v1/admin/settings", headers=auth_headers(user))
        assert resp.status_code == 403

        resp = await client.get("/api/v1/settings/public")
        assert resp.status_code == 401
