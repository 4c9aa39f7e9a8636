"""001 – Initial schema: users, settings, vacation requests, notifications, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-16 09:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["employee", "admin"]),
    ("vacation_status", ["pending", "approved", "rejected", "cancelled"]),
    (
        "notification_type",
        [
            "vacation_requested",
            "vacation_approved",
            "vacation_rejected",
            "vacation_cancelled",
        ],
    ),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id                UUID PRIMARY KEY,
            email             VARCHAR(255) NOT NULL UNIQUE,
            name              VARCHAR(200) NOT NULL,
            role              user_role NOT NULL DEFAULT 'employee',
            vacation_balance  INTEGER NOT NULL,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_users_balance_non_negative CHECK (vacation_balance >= 0)
        )
    """)
    op.execute("CREATE INDEX ix_users_role ON users(role)")

    # ── 2. app_settings (single row, id = 'settings') ─────────────────────
    op.execute("""
        CREATE TABLE app_settings (
            id                     VARCHAR(20) PRIMARY KEY,
            weekend_policy         JSONB NOT NULL,
            default_vacation_days  INTEGER NOT NULL,
            vacation_reset_month   INTEGER NOT NULL DEFAULT 1,
            updated_at             TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_app_settings_reset_month
                CHECK (vacation_reset_month BETWEEN 1 AND 12)
        )
    """)
    op.execute("""
        INSERT INTO app_settings (id, weekend_policy, default_vacation_days, vacation_reset_month)
        VALUES (
            'settings',
            '{"exclude_weekends": true, "excluded_days": [0, 6]}',
            25,
            1
        )
    """)

    # ── 3. vacation_requests ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE vacation_requests (
            id                UUID PRIMARY KEY,
            user_id           UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            start_date        DATE NOT NULL,
            end_date          DATE NOT NULL,
            total_days        INTEGER NOT NULL,
            reason            TEXT,
            status            vacation_status NOT NULL DEFAULT 'pending',
            reviewed_by       UUID REFERENCES users(id) ON DELETE SET NULL,
            reviewed_at       TIMESTAMPTZ,
            rejection_reason  TEXT,
            cancelled_at      TIMESTAMPTZ,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_vacation_requests_range CHECK (end_date >= start_date),
            CONSTRAINT ck_vacation_requests_total_days CHECK (total_days >= 0)
        )
    """)
    op.execute(
        "CREATE INDEX ix_vacation_requests_user_status "
        "ON vacation_requests(user_id, status)"
    )
    op.execute("CREATE INDEX ix_vacation_requests_status ON vacation_requests(status)")

    # ── 4. notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id            UUID PRIMARY KEY,
            recipient_id  UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type          notification_type NOT NULL,
            title         VARCHAR(200) NOT NULL,
            message       TEXT NOT NULL,
            entity_id     UUID,
            is_read       BOOLEAN NOT NULL DEFAULT FALSE,
            created_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_notifications_recipient_read "
        "ON notifications(recipient_id, is_read)"
    )

    # ── 5. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY,
            actor_id     UUID REFERENCES users(id) ON DELETE SET NULL,
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID,
            old_values   JSONB,
            new_values   JSONB,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_action ON audit_trail(action)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "notifications",
        "vacation_requests",
        "app_settings",
        "users",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
