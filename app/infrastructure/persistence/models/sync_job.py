"""SyncJob ORM model. Ledger row for one sync run across a user's accounts."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.enums import SyncJobStatus, SyncJobType
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import UserOwnedModel

# Partial unique index: at most one PENDING/RUNNING job per user.
_ACTIVE_JOB_PREDICATE = text("status IN ('PENDING', 'RUNNING')")


class SyncJob(UserOwnedModel, Base):
    """Sync job state, counters and live progress. Table: sync_job."""

    __tablename__ = "sync_job"
    __table_args__ = (
        Index(
            "uq_sync_job_active_user",
            "user_id",
            unique=True,
            postgresql_where=_ACTIVE_JOB_PREDICATE,
            sqlite_where=_ACTIVE_JOB_PREDICATE,
        ),
        Index("ix_sync_job_user_started", "user_id", "started_at"),
    )

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SyncJobStatus.PENDING.value, index=True
    )
    job_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=SyncJobType.FULL_SYNC.value
    )
    total_accounts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processed_accounts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_emails_synced: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_emails_skipped: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_emails_processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    estimated_total_emails: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_account: Mapped[str | None] = mapped_column(String, nullable=True)
    current_page: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status_message: Mapped[str | None] = mapped_column(String, nullable=True)
    emails_per_second: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    estimated_seconds_remaining: Mapped[int | None] = mapped_column(Integer, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(String, nullable=True)
