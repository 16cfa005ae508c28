"""Create registrations

Revision ID: 3f9c2a7d1e45
Revises:
Create Date: 2026-02-03 18:42:10.114201

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d1e45"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

payment_status_enum = sa.Enum("pending", "paid", name="payment_status")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("contact_detail", sa.VARCHAR(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("tier", sa.VARCHAR(), nullable=True),
        sa.Column("amount_paid", sa.Integer(), nullable=True),
        sa.Column("currency", sa.VARCHAR(), nullable=True),
        sa.Column("checkout_session_id", sa.VARCHAR(), nullable=True),
        sa.Column(
            "payment_status",
            payment_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "checked_in", sa.BOOLEAN(), nullable=False, server_default=sa.false()
        ),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("checkout_session_id"),
        # A checked-in registration always carries its check-in time
        sa.CheckConstraint(
            "checked_in = (checked_in_at IS NOT NULL)",
            name="registrations_checked_in_consistent",
        ),
    )
    op.create_index(
        op.f("ix_registrations_email"), "registrations", ["email"], unique=True
    )
    op.create_index(
        op.f("ix_registrations_created_at"),
        "registrations",
        ["created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_registrations_created_at"), table_name="registrations")
    op.drop_index(op.f("ix_registrations_email"), table_name="registrations")
    op.drop_table("registrations")
    payment_status_enum.drop(op.get_bind(), checkfirst=True)
