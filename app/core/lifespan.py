"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (HTTP client, session factory,
provider clients, sync engine, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.services.notification_service import NotificationService
from app.application.services.sync_engine import SyncEngine
from app.core.config import Settings, get_settings
from app.infrastructure.external.email.factory import MailProviderClientFactory
from app.infrastructure.persistence.database import dispose_engine, get_session_factory
from app.infrastructure.persistence.transaction import SqlTransactionScope
from app.shared.telemetry.logging import setup_logging
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Interrupted by restart"


def build_sync_engine(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[SyncEngine, MailProviderClientFactory]:
    """Compose the sync engine and provider client factory over one session factory."""
    scope = SqlTransactionScope(session_factory)
    client_factory = MailProviderClientFactory(scope, settings, http_client=http_client)
    engine = SyncEngine(
        scope,
        client_factory,
        NotificationService(scope),
        max_pages_per_account=settings.sync_max_pages_per_account,
        page_delay_seconds=settings.sync_page_delay_seconds,
    )
    return engine, client_factory


async def recover_interrupted_jobs(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Fail jobs a previous process left PENDING/RUNNING; their tasks no longer exist."""
    scope = SqlTransactionScope(session_factory)
    async with scope() as repos:
        count = await repos.jobs.fail_active_jobs(INTERRUPTED_MESSAGE, utc_now())
    if count:
        logger.warning("Marked %d interrupted sync jobs as FAILED", count)
    return count


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, shared HTTP client, sync engine, interrupted job
    recovery. Shutdown order: in-flight job tasks, shared HTTP client close,
    SQL engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    # Shared HTTP client for token refresh and Graph calls (connection reuse).
    app.state.provider_http_client = httpx.AsyncClient(
        timeout=settings.provider_http_timeout_seconds
    )
    session_factory = get_session_factory()
    engine, client_factory = build_sync_engine(
        session_factory, settings, app.state.provider_http_client
    )
    app.state.sync_engine = engine
    app.state.client_factory = client_factory
    await recover_interrupted_jobs(session_factory)
    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    # ---- Shutdown ----
    await engine.shutdown()
    app.state.sync_engine = None
    app.state.client_factory = None

    if getattr(app.state, "provider_http_client", None) is not None:
        await app.state.provider_http_client.aclose()
        app.state.provider_http_client = None
        logger.info("Provider HTTP client closed")

    await dispose_engine()
    logger.info("Database engine disposed")
