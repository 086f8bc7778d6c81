"""Create click_events table.

Revision ID: 004
Revises: 003
Create Date: 2025-06-16

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the click_events table (append-only click log)."""
    op.create_table(
        "click_events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("link_id", sa.UUID(), nullable=False),
        sa.Column(
            "clicked_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
            comment="Set by the datastore at insert time",
        ),
        sa.Column("ip_address", sa.String(45), nullable=True, comment="Client IP address"),
        sa.Column("user_agent", sa.Text(), nullable=True, comment="HTTP User-Agent header"),
        sa.Column("referrer", sa.Text(), nullable=True, comment="HTTP Referer header"),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("city", sa.String(255), nullable=True),
        sa.Column(
            "device_type",
            sa.String(50),
            nullable=True,
            comment="mobile, tablet or desktop when derived; caller value otherwise",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_click_events")),
        sa.ForeignKeyConstraint(
            ["link_id"],
            ["links.id"],
            name=op.f("fk_click_events_link_id_links"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_click_events_link_id"), "click_events", ["link_id"])
    op.create_index(op.f("ix_click_events_clicked_at"), "click_events", ["clicked_at"])
    op.create_index(
        "ix_click_events_link_id_clicked_at",
        "click_events",
        ["link_id", "clicked_at"],
    )


def downgrade() -> None:
    """Drop the click_events table."""
    op.drop_index("ix_click_events_link_id_clicked_at", table_name="click_events")
    op.drop_index(op.f("ix_click_events_clicked_at"), table_name="click_events")
    op.drop_index(op.f("ix_click_events_link_id"), table_name="click_events")
    op.drop_table("click_events")
