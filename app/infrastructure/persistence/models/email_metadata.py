"""EmailMetadata ORM model. One row per provider message, deduplicated by message_id."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CuidMixin


class EmailMetadata(CuidMixin, Base):
    """Header-level metadata of a synced message. Table: email_metadata.

    message_id is the provider-issued id and is unique across the whole store.
    """

    __tablename__ = "email_metadata"
    __table_args__ = (
        Index("ix_email_metadata_sender_email", "sender_email"),
        Index("ix_email_metadata_thread_id", "thread_id"),
        Index("ix_email_metadata_received_at", "received_at"),
    )

    account_id: Mapped[str] = mapped_column(
        String, ForeignKey("email_account.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    thread_id: Mapped[str | None] = mapped_column(String, nullable=True)
    sender_email: Mapped[str] = mapped_column(String, nullable=False, default="")
    sender_name: Mapped[str | None] = mapped_column(String, nullable=True)
    recipient_email: Mapped[str | None] = mapped_column(String, nullable=True)
    subject: Mapped[str | None] = mapped_column(String, nullable=True)
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    from_me: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    in_reply_to: Mapped[str | None] = mapped_column(String, nullable=True)
    synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
