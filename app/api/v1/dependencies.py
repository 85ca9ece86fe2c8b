"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the caller's user id, DB-bound repositories,
and the long-lived sync engine and provider client factory built at startup
(see app.core.lifespan).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.services import IMailProviderClientFactory
from app.application.services.sync_engine import SyncEngine
from app.core.config import get_settings
from app.infrastructure.persistence.database import get_db, get_db_transactional
from app.infrastructure.persistence.repositories import (
    EmailAccountRepository,
    NotificationRepository,
)

MAX_USER_ID_LENGTH = 128


def get_user_id(request: Request) -> str:
    """Resolve the calling user from the configured header (set by the auth gateway)."""
    name = get_settings().user_id_header
    value = (request.headers.get(name) or "").strip()
    if not value:
        raise HTTPException(status_code=401, detail=f"Missing required header: {name}")
    if len(value) > MAX_USER_ID_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid user id")
    return value


def get_sync_engine(request: Request) -> SyncEngine:
    engine = getattr(request.app.state, "sync_engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Sync engine not initialized")
    return engine


def get_client_factory(request: Request) -> IMailProviderClientFactory:
    factory = getattr(request.app.state, "client_factory", None)
    if factory is None:
        raise HTTPException(status_code=503, detail="Provider clients not initialized")
    return factory


async def get_email_account_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EmailAccountRepository:
    """Email account repository for reads."""
    return EmailAccountRepository(db)


async def get_notification_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> NotificationRepository:
    """Notification repository for reads."""
    return NotificationRepository(db)


async def get_notification_repo_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> NotificationRepository:
    """Notification repository in a committed transaction."""
    return NotificationRepository(db)
