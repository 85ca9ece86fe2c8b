"""Application services: sync engine and notifications."""

from app.application.services.notification_service import NotificationService
from app.application.services.sync_engine import SyncEngine

__all__ = ["NotificationService", "SyncEngine"]
