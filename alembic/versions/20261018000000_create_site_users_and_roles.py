"""Create site_users and roles tables.

Revision ID: 20261018000000
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261018000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "site_users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("account_non_expired", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("credentials_non_expired", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("account_non_locked", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
    )
    # Not unique: duplicate usernames are governed by ENFORCE_UNIQUE_USERNAMES.
    op.create_index(op.f("ix_site_users_username"), "site_users", ["username"], unique=False)
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=255), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["user_id"], ["site_users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_roles_user_id"), "roles", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_roles_user_id"), table_name="roles")
    op.drop_table("roles")
    op.drop_index(op.f("ix_site_users_username"), table_name="site_users")
    op.drop_table("site_users")
