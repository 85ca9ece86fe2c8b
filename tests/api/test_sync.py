"""Sync API tests: start, poll and cancel through HTTP."""

import asyncio

import pytest
from httpx import AsyncClient

from app.main import app
from tests.conftest import OTHER_USER_ID
from tests.fakes import FakeMailClient, make_summaries, paged


@pytest.fixture
def install_engine(make_engine):
    """Put a SyncEngine over the scripted client on app.state; returns the engine."""

    def _install(client):
        engine = make_engine(client)
        app.state.sync_engine = engine
        return engine

    return _install


async def test_sync_requires_user_header(client: AsyncClient, install_engine) -> None:
    install_engine(FakeMailClient({}))
    response = await client.post("/api/v1/sync")
    assert response.status_code == 401
    assert response.json() == {
        "error": "HTTP_ERROR",
        "message": "Missing required header: X-User-Id",
    }


async def test_sync_unavailable_without_engine(client: AsyncClient, user_headers) -> None:
    response = await client.get("/api/v1/sync/status", headers=user_headers)
    assert response.status_code == 503


async def test_status_without_jobs(client: AsyncClient, user_headers, install_engine) -> None:
    install_engine(FakeMailClient({}))
    response = await client.get("/api/v1/sync/status", headers=user_headers)
    assert response.status_code == 200
    assert response.json() == {"status": "NO_JOBS", "message": "No sync jobs found"}


async def test_start_sync_then_poll(
    client: AsyncClient, user_headers, install_engine, create_account
) -> None:
    await create_account("a@example.com")
    engine = install_engine(FakeMailClient({"a@example.com": paged(make_summaries("m", 12))}))

    response = await client.post("/api/v1/sync", headers=user_headers)

    assert response.status_code == 202
    started = response.json()
    assert started["status"] == "PENDING"
    assert started["job_type"] == "FULL_SYNC"
    assert started["total_accounts"] == 1
    assert started["progress_percent"] == 0
    await engine.wait_for(started["id"])

    status = await client.get("/api/v1/sync/status", headers=user_headers)
    body = status.json()
    assert body["id"] == started["id"]
    assert body["status"] == "COMPLETED"
    assert body["total_emails_synced"] == 12
    assert body["progress_percent"] == 100
    assert body["status_message"] == "Sync completed successfully"

    job = await client.get(f"/api/v1/sync/jobs/{started['id']}", headers=user_headers)
    assert job.status_code == 200
    assert job.json()["total_emails_processed"] == 12


async def test_incremental_job_type(
    client: AsyncClient, user_headers, install_engine
) -> None:
    engine = install_engine(FakeMailClient({}))
    response = await client.post(
        "/api/v1/sync", params={"job_type": "INCREMENTAL_SYNC"}, headers=user_headers
    )
    assert response.status_code == 202
    assert response.json()["job_type"] == "INCREMENTAL_SYNC"
    await engine.wait_for(response.json()["id"])


async def test_unknown_job_type_is_rejected(
    client: AsyncClient, user_headers, install_engine
) -> None:
    install_engine(FakeMailClient({}))
    response = await client.post(
        "/api/v1/sync", params={"job_type": "EVERYTHING"}, headers=user_headers
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_second_start_conflicts_and_cancel(
    client: AsyncClient, user_headers, install_engine, create_account
) -> None:
    await create_account("a@example.com")
    fake = FakeMailClient({"a@example.com": paged(make_summaries("m", 5))})
    reached, release = asyncio.Event(), asyncio.Event()

    async def hold(account, cursor) -> None:
        reached.set()
        await release.wait()

    fake.before_page = hold
    engine = install_engine(fake)

    started = (await client.post("/api/v1/sync", headers=user_headers)).json()
    await reached.wait()

    conflict = await client.post("/api/v1/sync", headers=user_headers)
    assert conflict.status_code == 409
    assert conflict.json()["error"] == "SYNC_JOB_ALREADY_RUNNING"

    running = (await client.get("/api/v1/sync/status", headers=user_headers)).json()
    assert running["status"] == "RUNNING"
    assert running["current_account"] == "a@example.com"

    cancelled = await client.post(
        f"/api/v1/sync/jobs/{started['id']}/cancel", headers=user_headers
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert cancelled.json()["status_message"] == "Cancelled by user"

    release.set()
    await engine.wait_for(started["id"])
    final = (await client.get(f"/api/v1/sync/jobs/{started['id']}", headers=user_headers)).json()
    assert final["status"] == "CANCELLED"
    assert final["total_emails_synced"] == 0


async def test_cancel_finished_job_returns_it_unchanged(
    client: AsyncClient, user_headers, install_engine
) -> None:
    engine = install_engine(FakeMailClient({}))
    started = (await client.post("/api/v1/sync", headers=user_headers)).json()
    await engine.wait_for(started["id"])

    response = await client.post(
        f"/api/v1/sync/jobs/{started['id']}/cancel", headers=user_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"


async def test_other_users_job_is_not_found(
    client: AsyncClient, user_headers, install_engine
) -> None:
    engine = install_engine(FakeMailClient({}))
    started = (await client.post("/api/v1/sync", headers=user_headers)).json()
    await engine.wait_for(started["id"])
    other = {"X-User-Id": OTHER_USER_ID}

    response = await client.get(f"/api/v1/sync/jobs/{started['id']}", headers=other)
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"

    cancel = await client.post(f"/api/v1/sync/jobs/{started['id']}/cancel", headers=other)
    assert cancel.status_code == 404

    status = await client.get("/api/v1/sync/status", headers=other)
    assert status.json()["status"] == "NO_JOBS"
