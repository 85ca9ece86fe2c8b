"""EmailAccount ORM model. OAuth credentials and sync state of one connected mailbox."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.enums import AccountSyncStatus
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import UserOwnedModel
from app.infrastructure.persistence.models.types import EncryptedString


class EmailAccount(UserOwnedModel, Base):
    """Email account credentials and sync state. Table: email_account."""

    __tablename__ = "email_account"

    provider: Mapped[str] = mapped_column(String(16), nullable=False)
    email_address: Mapped[str] = mapped_column(String, nullable=False, index=True)
    access_token: Mapped[str | None] = mapped_column(EncryptedString, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(EncryptedString, nullable=True)
    token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    sync_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=AccountSyncStatus.PENDING.value, index=True
    )
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sync_error: Mapped[str | None] = mapped_column(String, nullable=True)
    token_last_refreshed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    token_refresh_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    token_refresh_failures: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
