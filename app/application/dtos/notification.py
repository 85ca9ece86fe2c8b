"""DTOs for user notifications (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from app.domain.enums import NotificationType


@dataclass(frozen=True, kw_only=True)
class NotificationResult:
    """Notification as stored."""

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    related_job_id: str | None
    action_url: str | None
    is_read: bool
    created_at: datetime
