"""Pytest configuration and fixtures for mailbox-sync.

Settings are read from the environment, so test defaults are set before any
app.* import. Repository, engine and API tests run against a throwaway SQLite
file (aiosqlite) created from the ORM metadata.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-token-encryption")
os.environ.setdefault("ENCRYPTION_SALT", "test-encryption-salt")

from collections.abc import AsyncIterator, Callable
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.application.dtos.email_account import MailboxAccount
from app.application.services.notification_service import NotificationService
from app.application.services.sync_engine import SyncEngine
from app.domain.enums import ProviderKind
from app.infrastructure.persistence import models  # noqa: F401  (registers tables)
from app.infrastructure.persistence.database import Base, get_db, get_db_transactional
from app.infrastructure.persistence.repositories import EmailAccountRepository
from app.infrastructure.persistence.transaction import SqlTransactionScope
from app.main import app
from app.shared.utils.datetime import utc_now
from tests.fakes import FakeClientFactory

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
async def session_factory(tmp_path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory over a fresh SQLite database with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
def scope(session_factory) -> SqlTransactionScope:
    return SqlTransactionScope(session_factory)


@pytest.fixture
async def db_session(session_factory) -> AsyncIterator[AsyncSession]:
    """Session for repository tests; commit explicitly where a test needs it."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def create_account(scope) -> Callable:
    """Insert an account and return it as MailboxAccount."""

    async def _create(
        email_address: str = "me@example.com",
        *,
        user_id: str = USER_ID,
        provider: ProviderKind = ProviderKind.GMAIL,
        access_token: str | None = "access-token",
        refresh_token: str | None = "refresh-token",
        expires_in: timedelta | None = timedelta(hours=1),
    ) -> MailboxAccount:
        async with scope() as repos:
            assert isinstance(repos.accounts, EmailAccountRepository)
            return await repos.accounts.create_account(
                user_id=user_id,
                provider=provider,
                email_address=email_address,
                access_token=access_token,
                refresh_token=refresh_token,
                token_expires_at=utc_now() + expires_in if expires_in is not None else None,
            )

    return _create


async def _no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def make_engine(scope) -> Callable[..., SyncEngine]:
    """Build a SyncEngine over the test database with a scripted client and no page delay."""

    def _make(client, **kwargs) -> SyncEngine:
        kwargs.setdefault("sleep", _no_sleep)
        return SyncEngine(scope, FakeClientFactory(client), NotificationService(scope), **kwargs)

    return _make


@pytest.fixture
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI) bound to the test database."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    async def _get_db_transactional():
        async with session_factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_db_transactional] = _get_db_transactional
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    app.state.sync_engine = None
    app.state.client_factory = None


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"X-User-Id": USER_ID}
