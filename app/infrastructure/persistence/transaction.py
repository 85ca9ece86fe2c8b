"""Short-lived transactions for background work (outside the request cycle)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces.repositories import SyncRepositories
from app.infrastructure.persistence.repositories import (
    EmailAccountRepository,
    EmailMetadataRepository,
    NotificationRepository,
    SyncJobRepository,
)


def build_repositories(db: AsyncSession) -> SyncRepositories:
    """Bind every repository the sync engine needs to one session."""
    return SyncRepositories(
        accounts=EmailAccountRepository(db),
        metadata=EmailMetadataRepository(db),
        jobs=SyncJobRepository(db),
        notifications=NotificationRepository(db),
    )


class SqlTransactionScope:
    """ITransactionScope backed by an async_sessionmaker.

    Each call opens a fresh session and transaction; commit on exit,
    rollback on exception.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator[SyncRepositories]:
        async with self._session_factory() as session:
            async with session.begin():
                yield build_repositories(session)
