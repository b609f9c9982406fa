"""initial schema: students, advisors, internships, internship_alerts

Revision ID: 001
Revises:
Create Date: 2026-10-18

Students, advisors, and both internship tables are owned by the registration
module; they are created here so the alert sweep has something to join.

internship_alerts carries a partial unique index on
(internship_id, internship_type, alert_type) WHERE sent_at IS NULL so only one
undispatched alert can exist per internship and alert type.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _internship_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("advisor_id", sa.String(36), nullable=False),
        sa.Column("supervisor", sa.Text(), nullable=True),
        sa.Column("workload", sa.Text(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.ForeignKeyConstraint(["advisor_id"], ["advisors.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{name}_student_id", name, ["student_id"])
    op.create_index(f"ix_{name}_advisor_id", name, ["advisor_id"])
    op.create_index(f"ix_{name}_end_date", name, ["end_date"])


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("registration_number", sa.Text(), nullable=False),
        sa.Column("course", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("registration_number"),
    )
    op.create_table(
        "advisors",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("department", sa.Text(), nullable=False),
        sa.Column("siape", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("siape"),
    )
    _internship_table("mandatory_internships")
    _internship_table("non_mandatory_internships")

    op.create_table(
        "internship_alerts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("internship_id", sa.String(36), nullable=False),
        sa.Column("internship_type", sa.Text(), nullable=False),
        sa.Column("alert_type", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("days_until_expiration", sa.Integer(), nullable=True),
        sa.Column(
            "target_users",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("status", sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("whatsapp_message_id", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("dismissed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_internship_alerts_pending",
        "internship_alerts",
        ["internship_id", "internship_type", "alert_type"],
        unique=True,
        postgresql_where=sa.text("sent_at IS NULL"),
    )
    op.create_index(
        "ix_internship_alerts_active",
        "internship_alerts",
        ["is_active", "dismissed_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_internship_alerts_active", table_name="internship_alerts")
    op.drop_index("uq_internship_alerts_pending", table_name="internship_alerts")
    op.drop_table("internship_alerts", if_exists=True)
    op.drop_table("non_mandatory_internships", if_exists=True)
    op.drop_table("mandatory_internships", if_exists=True)
    op.drop_table("advisors", if_exists=True)
    op.drop_table("students", if_exists=True)
