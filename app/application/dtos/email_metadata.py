"""DTOs for synced message metadata (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, kw_only=True)
class EmailMetadataCreate:
    """Parsed message metadata ready to persist (one row per provider message id)."""

    account_id: str
    message_id: str
    thread_id: str | None
    sender_email: str
    sender_name: str | None
    recipient_email: str | None
    subject: str | None
    received_at: datetime
    is_read: bool
    from_me: bool
    in_reply_to: str | None = None
