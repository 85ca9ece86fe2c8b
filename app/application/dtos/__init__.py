"""Application DTOs (no ORM dependency)."""

from app.application.dtos.email_account import MailboxAccount
from app.application.dtos.email_metadata import EmailMetadataCreate
from app.application.dtos.mail import ListFilter, MailFolder, MessageSummary, PageResult
from app.application.dtos.notification import NotificationResult
from app.application.dtos.sync_job import SyncJobResult, SyncProgressUpdate

__all__ = [
    "EmailMetadataCreate",
    "ListFilter",
    "MailFolder",
    "MailboxAccount",
    "MessageSummary",
    "NotificationResult",
    "PageResult",
    "SyncJobResult",
    "SyncProgressUpdate",
]
