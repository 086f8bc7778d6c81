"""Create themes table.

Revision ID: 003
Revises: 002
Create Date: 2025-06-09

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the themes table."""
    op.create_table(
        "themes",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("primary_color", sa.String(32), nullable=False),
        sa.Column("secondary_color", sa.String(32), nullable=False),
        sa.Column("background_color", sa.String(32), nullable=False),
        sa.Column("text_color", sa.String(32), nullable=False),
        sa.Column("font_family", sa.String(100), nullable=False),
        sa.Column(
            "button_style",
            sa.String(20),
            nullable=False,
            server_default="rounded",
            comment="One of: rounded, square, pill",
        ),
        sa.Column(
            "is_default",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_themes")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_themes_user_id_users"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_themes_user_id"), "themes", ["user_id"])
    op.create_index(
        "uq_themes_user_id_default",
        "themes",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_default"),
        sqlite_where=sa.text("is_default"),
    )


def downgrade() -> None:
    """Drop the themes table."""
    op.drop_index("uq_themes_user_id_default", table_name="themes")
    op.drop_index(op.f("ix_themes_user_id"), table_name="themes")
    op.drop_table("themes")
