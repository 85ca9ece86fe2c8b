"""Pydantic request/response schemas for the API."""

from app.schemas.email_account import (
    EmailAccountResponse,
    FolderCreateRequest,
    FolderResponse,
    MoveMessagesRequest,
    MoveMessagesResponse,
)
from app.schemas.health import HealthResponse, ReadinessResponse
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from app.schemas.sync_job import NoSyncJobResponse, SyncJobResponse

__all__ = [
    "EmailAccountResponse",
    "FolderCreateRequest",
    "FolderResponse",
    "HealthResponse",
    "MarkAllReadResponse",
    "MoveMessagesRequest",
    "MoveMessagesResponse",
    "NoSyncJobResponse",
    "NotificationResponse",
    "ReadinessResponse",
    "SyncJobResponse",
    "UnreadCountResponse",
]
