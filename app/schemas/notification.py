"""Notification API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.domain.enums import NotificationType


class NotificationResponse(BaseModel):
    """One user notification."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: NotificationType
    title: str
    message: str
    related_job_id: str | None = None
    action_url: str | None = None
    is_read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    """Response for GET /notifications/unread/count."""

    count: int


class MarkAllReadResponse(BaseModel):
    """Response for POST /notifications/read-all."""

    updated: int
