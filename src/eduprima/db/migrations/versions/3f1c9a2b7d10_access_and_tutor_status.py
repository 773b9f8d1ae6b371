"""Roles, accounts, tutor details and tutor status

Learn: tutor_status.tutor_id is UNIQUE — it is the ON CONFLICT target of
the status upsert, so it must exist before the API takes writes.

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("role_code", sa.String(50), nullable=False, unique=True),
        sa.Column("role_name", sa.String(100), nullable=False),
        sa.Column("role_description", sa.Text(), nullable=True),
    )
    op.create_table(
        "users_universal",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("user_code", sa.String(50), nullable=False, server_default=""),
        sa.Column("user_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("account_type", sa.String(50), nullable=False, server_default=""),
        sa.Column("primary_role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "tutor_details",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users_universal.id"),
            nullable=False, unique=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "tutor_status",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tutor_id", sa.Uuid(), sa.ForeignKey("tutor_details.id"),
            nullable=False, unique=True,
        ),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("status_changed_by", sa.String(64), nullable=False),
        sa.Column("last_status_change", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("tutor_status")
    op.drop_table("tutor_details")
    op.drop_table("users_universal")
    op.drop_table("roles")
