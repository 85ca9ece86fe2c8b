"""Email metadata repository: dedup lookups and inserts keyed by provider message id."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.email_metadata import EmailMetadataCreate
from app.infrastructure.persistence.models.email_metadata import EmailMetadata
from app.infrastructure.persistence.repositories.base import BaseRepository


def _to_model(item: EmailMetadataCreate) -> EmailMetadata:
    return EmailMetadata(
        account_id=item.account_id,
        message_id=item.message_id,
        thread_id=item.thread_id,
        sender_email=item.sender_email,
        sender_name=item.sender_name,
        recipient_email=item.recipient_email,
        subject=item.subject,
        received_at=item.received_at,
        is_read=item.is_read,
        from_me=item.from_me,
        in_reply_to=item.in_reply_to,
    )


class EmailMetadataRepository(BaseRepository[EmailMetadata]):
    """Message metadata repository. Implements IEmailMetadataRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, EmailMetadata)

    async def exists_by_message_id(self, message_id: str) -> bool:
        """Return True if a row with this provider message id is stored."""
        result = await self.db.execute(
            select(EmailMetadata.id).where(EmailMetadata.message_id == message_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def find_existing_message_ids(self, message_ids: Iterable[str]) -> set[str]:
        """Return the subset of message_ids already stored, in a single IN query."""
        ids = list(dict.fromkeys(message_ids))
        if not ids:
            return set()
        result = await self.db.execute(
            select(EmailMetadata.message_id).where(EmailMetadata.message_id.in_(ids))
        )
        return set(result.scalars().all())

    async def save(self, metadata: EmailMetadataCreate) -> bool:
        """Insert one row; returns False (no write) when the message id is already stored."""
        if await self.exists_by_message_id(metadata.message_id):
            return False
        await self.create(_to_model(metadata))
        return True

    async def save_many(self, items: list[EmailMetadataCreate]) -> int:
        """Insert rows for message ids not stored yet (also dedups within items)."""
        unique: dict[str, EmailMetadataCreate] = {}
        for item in items:
            unique.setdefault(item.message_id, item)
        existing = await self.find_existing_message_ids(unique)
        new_rows = [
            _to_model(item) for mid, item in unique.items() if mid not in existing
        ]
        if not new_rows:
            return 0
        self.db.add_all(new_rows)
        await self.db.flush()
        return len(new_rows)

    async def count_by_account(self, account_id: str) -> int:
        """Return how many messages are stored for an account."""
        result = await self.db.execute(
            select(func.count()).select_from(EmailMetadata).where(
                EmailMetadata.account_id == account_id
            )
        )
        return int(result.scalar_one())
