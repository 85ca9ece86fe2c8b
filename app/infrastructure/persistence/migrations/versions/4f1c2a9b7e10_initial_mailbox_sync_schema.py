"""initial_mailbox_sync_schema

Revision ID: 4f1c2a9b7e10
Revises:
Create Date: 2026-10-19 09:12:41.508233

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f1c2a9b7e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_JOB_PREDICATE = sa.text("status IN ('PENDING', 'RUNNING')")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "email_account",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("provider", sa.String(length=16), nullable=False),
        sa.Column("email_address", sa.String(), nullable=False),
        sa.Column("access_token", sa.String(), nullable=True),
        sa.Column("refresh_token", sa.String(), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_status", sa.String(length=16), nullable=False),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_error", sa.String(), nullable=True),
        sa.Column("token_last_refreshed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("token_refresh_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("token_refresh_failures", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_account_user_id", "email_account", ["user_id"])
    op.create_index("ix_email_account_email_address", "email_account", ["email_address"])
    op.create_index("ix_email_account_sync_status", "email_account", ["sync_status"])

    op.create_table(
        "email_metadata",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("message_id", sa.String(), nullable=False),
        sa.Column("thread_id", sa.String(), nullable=True),
        sa.Column("sender_email", sa.String(), nullable=False),
        sa.Column("sender_name", sa.String(), nullable=True),
        sa.Column("recipient_email", sa.String(), nullable=True),
        sa.Column("subject", sa.String(), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("from_me", sa.Boolean(), nullable=False),
        sa.Column("in_reply_to", sa.String(), nullable=True),
        sa.Column(
            "synced_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["account_id"], ["email_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("message_id"),
    )
    op.create_index("ix_email_metadata_account_id", "email_metadata", ["account_id"])
    op.create_index("ix_email_metadata_sender_email", "email_metadata", ["sender_email"])
    op.create_index("ix_email_metadata_thread_id", "email_metadata", ["thread_id"])
    op.create_index("ix_email_metadata_received_at", "email_metadata", ["received_at"])

    op.create_table(
        "sync_job",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("job_type", sa.String(length=32), nullable=False),
        sa.Column("total_accounts", sa.Integer(), nullable=False),
        sa.Column("processed_accounts", sa.Integer(), nullable=False),
        sa.Column("total_emails_synced", sa.Integer(), nullable=False),
        sa.Column("total_emails_skipped", sa.Integer(), nullable=False),
        sa.Column("total_emails_processed", sa.Integer(), nullable=False),
        sa.Column("estimated_total_emails", sa.Integer(), nullable=False),
        sa.Column("current_account", sa.String(), nullable=True),
        sa.Column("current_page", sa.Integer(), nullable=False),
        sa.Column("status_message", sa.String(), nullable=True),
        sa.Column("emails_per_second", sa.Float(), nullable=False),
        sa.Column("estimated_seconds_remaining", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sync_job_user_id", "sync_job", ["user_id"])
    op.create_index("ix_sync_job_status", "sync_job", ["status"])
    op.create_index("ix_sync_job_user_started", "sync_job", ["user_id", "started_at"])
    # At most one PENDING/RUNNING job per user.
    op.create_index(
        "uq_sync_job_active_user",
        "sync_job",
        ["user_id"],
        unique=True,
        postgresql_where=ACTIVE_JOB_PREDICATE,
        sqlite_where=ACTIVE_JOB_PREDICATE,
    )

    op.create_table(
        "notification",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("related_job_id", sa.String(), nullable=True),
        sa.Column("action_url", sa.String(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["related_job_id"], ["sync_job.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notification_user_id", "notification", ["user_id"])
    op.create_index("ix_notification_is_read", "notification", ["is_read"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_notification_is_read", table_name="notification")
    op.drop_index("ix_notification_user_id", table_name="notification")
    op.drop_table("notification")
    op.drop_index("uq_sync_job_active_user", table_name="sync_job")
    op.drop_index("ix_sync_job_user_started", table_name="sync_job")
    op.drop_index("ix_sync_job_status", table_name="sync_job")
    op.drop_index("ix_sync_job_user_id", table_name="sync_job")
    op.drop_table("sync_job")
    op.drop_index("ix_email_metadata_received_at", table_name="email_metadata")
    op.drop_index("ix_email_metadata_thread_id", table_name="email_metadata")
    op.drop_index("ix_email_metadata_sender_email", table_name="email_metadata")
    op.drop_index("ix_email_metadata_account_id", table_name="email_metadata")
    op.drop_table("email_metadata")
    op.drop_index("ix_email_account_sync_status", table_name="email_account")
    op.drop_index("ix_email_account_email_address", table_name="email_account")
    op.drop_index("ix_email_account_user_id", table_name="email_account")
    op.drop_table("email_account")
