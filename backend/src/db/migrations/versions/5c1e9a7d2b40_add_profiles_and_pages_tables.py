"""
Add profiles and pages tables with owner row-level security.

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-01-12 09:14:51.502117
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from core.config import get_settings
from db.rls import drop_row_security_statements, row_security_statements

# revision identifiers, used by Alembic.
revision: str = "5c1e9a7d2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column(
            "profile_picture",
            sa.Text(),
            server_default="https://placehold.co/300x300",
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("clock_timestamp()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("clock_timestamp()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "pages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), server_default="Untitled", nullable=False),
        sa.Column("icon", sa.Text(), nullable=True),
        sa.Column(
            "content",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default="[]",
            nullable=False,
        ),
        sa.Column("is_favorite", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("clock_timestamp()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("clock_timestamp()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_pages_owner_id_created_at", "pages", ["owner_id", "created_at"], unique=False,
    )

    for statement in row_security_statements(get_settings().db_role):
        op.execute(statement)


def downgrade() -> None:
    """Downgrade schema."""
    for statement in drop_row_security_statements():
        op.execute(statement)
    op.drop_index("ix_pages_owner_id_created_at", table_name="pages")
    op.drop_table("pages")
    op.drop_table("profiles")
