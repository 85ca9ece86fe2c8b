"""Notification ORM model. Written once when a sync job finishes or fails."""

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    UserOwnedMixin,
)


class Notification(CuidMixin, UserOwnedMixin, CreatedAtMixin, Base):
    """User-facing notification. Table: notification."""

    __tablename__ = "notification"

    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(String, nullable=False)
    related_job_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("sync_job.id", ondelete="SET NULL"), nullable=True
    )
    action_url: Mapped[str | None] = mapped_column(String, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
