"""Provider-agnostic mail structures returned by provider clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.enums import FolderKind


@dataclass(frozen=True)
class MessageSummary:
    """Header-level view of one provider message.

    sender and recipient are raw header values ("Name <addr>" or "addr");
    date is the provider's date string (RFC 2822 for Gmail, ISO-8601 for Outlook).
    """

    id: str
    thread_id: str | None
    sender: str
    recipient: str
    subject: str
    date: str
    is_unread: bool
    in_reply_to: str | None = None


@dataclass(frozen=True)
class PageResult:
    """One page of a mailbox listing.

    next_page_cursor is opaque and None when the listing is exhausted.
    """

    messages: list[MessageSummary] = field(default_factory=list)
    next_page_cursor: str | None = None
    total_estimate: int = 0


@dataclass(frozen=True)
class ListFilter:
    """Listing restriction: inbox only and/or a received-date window.

    before is exclusive, after is inclusive.
    """

    inbox_only: bool = False
    before: datetime | None = None
    after: datetime | None = None


@dataclass(frozen=True)
class MailFolder:
    """A Gmail label or an Outlook mail folder."""

    id: str
    name: str
    kind: FolderKind = FolderKind.USER
    total_count: int = 0
    unread_count: int = 0
