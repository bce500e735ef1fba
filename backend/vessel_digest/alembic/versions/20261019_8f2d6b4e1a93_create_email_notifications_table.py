"""create email_notifications table

Revision ID: 8f2d6b4e1a93
Revises: 3c9e1a7b2d40
Create Date: 2026-10-19 09:30:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8f2d6b4e1a93"
down_revision = "3c9e1a7b2d40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "email_notifications",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=False),
        sa.Column("vessel_id", sa.String(length=36), nullable=False),
        sa.Column("digest_type", sa.String(length=50), nullable=False),
        sa.Column("subject_type", sa.String(length=100), nullable=False),
        sa.Column("subject_id", sa.String(length=255), nullable=False),
        sa.Column("subject_snapshot", sa.JSON(), nullable=True),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("state", sa.String(length=20), nullable=False),
        sa.Column("group_id", sa.String(length=255), nullable=True),
        sa.Column("grouped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["vessel_id"], ["vessels.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_email_notifications_selection",
        "email_notifications",
        ["recipient_id", "vessel_id", "state", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_email_notifications_group_id",
        "email_notifications",
        ["group_id"],
        unique=False,
    )
    op.create_index(
        "ix_email_notifications_subject",
        "email_notifications",
        ["subject_type", "subject_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_email_notifications_subject", table_name="email_notifications")
    op.drop_index("ix_email_notifications_group_id", table_name="email_notifications")
    op.drop_index("ix_email_notifications_selection", table_name="email_notifications")
    op.drop_table("email_notifications")
