"""Repository integration tests against a throwaway SQLite database."""

from datetime import UTC, datetime

import pytest

from app.application.dtos.email_metadata import EmailMetadataCreate
from app.application.dtos.sync_job import SyncProgressUpdate
from app.domain.enums import NotificationType, SyncJobStatus, SyncJobType
from app.domain.exceptions import (
    InvalidJobTransitionException,
    ResourceNotFoundException,
    SyncJobAlreadyRunningException,
)
from app.infrastructure.persistence.repositories import SyncJobRepository
from app.shared.utils.datetime import utc_now
from tests.conftest import OTHER_USER_ID, USER_ID


def _metadata(account_id: str, message_id: str) -> EmailMetadataCreate:
    return EmailMetadataCreate(
        account_id=account_id,
        message_id=message_id,
        thread_id=None,
        sender_email="alice@example.com",
        sender_name="Alice",
        recipient_email="me@example.com",
        subject="Hello",
        received_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
        is_read=False,
        from_me=False,
    )


def _progress(synced: int, skipped: int, page: int) -> SyncProgressUpdate:
    return SyncProgressUpdate(
        synced_delta=synced,
        skipped_delta=skipped,
        processed_delta=synced + skipped,
        current_page=page,
        emails_per_second=12.5,
        estimated_seconds_remaining=40,
        status_message=f"page {page}",
    )


async def _create_job(scope, user_id: str = USER_ID):
    async with scope() as repos:
        return await repos.jobs.create_job(user_id, SyncJobType.FULL_SYNC, 2, "Starting sync...")


async def _start(scope, job_id: str) -> None:
    async with scope() as repos:
        assert await repos.jobs.transition(job_id, [SyncJobStatus.PENDING], SyncJobStatus.RUNNING)


async def test_create_job_starts_pending_with_zero_counters(scope) -> None:
    job = await _create_job(scope)
    assert job.id
    assert job.status == SyncJobStatus.PENDING
    assert job.job_type == SyncJobType.FULL_SYNC
    assert job.total_accounts == 2
    assert job.processed_accounts == 0
    assert job.total_emails_synced == 0
    assert job.status_message == "Starting sync..."
    assert job.started_at.tzinfo is not None
    assert job.completed_at is None


async def test_second_active_job_for_user_is_rejected(scope) -> None:
    await _create_job(scope)
    with pytest.raises(SyncJobAlreadyRunningException):
        await _create_job(scope)
    # Other users are unaffected.
    other = await _create_job(scope, OTHER_USER_ID)
    assert other.user_id == OTHER_USER_ID


async def test_active_job_index_rejects_race_past_precheck(scope, monkeypatch) -> None:
    await _create_job(scope)

    async def no_active_job(self, user_id, statuses) -> bool:
        return False

    monkeypatch.setattr(SyncJobRepository, "exists_by_user_id_and_status", no_active_job)
    with pytest.raises(SyncJobAlreadyRunningException):
        await _create_job(scope)


async def test_new_job_allowed_after_terminal_state(scope) -> None:
    job = await _create_job(scope)
    await _start(scope, job.id)
    async with scope() as repos:
        await repos.jobs.transition(job.id, [SyncJobStatus.RUNNING], SyncJobStatus.COMPLETED)
    second = await _create_job(scope)
    assert second.id != job.id


async def test_transition_only_from_listed_statuses(scope) -> None:
    job = await _create_job(scope)
    async with scope() as repos:
        assert not await repos.jobs.transition(
            job.id, [SyncJobStatus.RUNNING], SyncJobStatus.CANCELLED
        )
        assert await repos.jobs.get_status(job.id) == SyncJobStatus.PENDING


async def test_transition_out_of_terminal_state_is_invalid(scope) -> None:
    job = await _create_job(scope)
    async with scope() as repos:
        with pytest.raises(InvalidJobTransitionException):
            await repos.jobs.transition(job.id, [SyncJobStatus.FAILED], SyncJobStatus.RUNNING)


async def test_progress_is_appended_while_running(scope) -> None:
    job = await _create_job(scope)
    await _start(scope, job.id)
    async with scope() as repos:
        assert await repos.jobs.update_progress(job.id, _progress(70, 30, 1))
        assert await repos.jobs.update_progress(job.id, _progress(50, 0, 2))
        stored = await repos.jobs.get_job(job.id)
    assert stored.total_emails_synced == 120
    assert stored.total_emails_skipped == 30
    assert stored.total_emails_processed == 150
    assert stored.current_page == 2
    assert stored.emails_per_second == 12.5
    assert stored.estimated_seconds_remaining == 40
    assert stored.status_message == "page 2"


async def test_progress_is_ignored_once_cancelled(scope) -> None:
    job = await _create_job(scope)
    await _start(scope, job.id)
    async with scope() as repos:
        assert await repos.jobs.transition(
            job.id,
            [SyncJobStatus.RUNNING],
            SyncJobStatus.CANCELLED,
            completed_at=utc_now(),
            status_message="Cancelled by user",
        )
    async with scope() as repos:
        assert not await repos.jobs.update_progress(job.id, _progress(10, 0, 1))
        assert not await repos.jobs.update_fields(
            job.id, SyncJobStatus.RUNNING, status_message="Syncing"
        )
        stored = await repos.jobs.get_job(job.id)
    assert stored.status == SyncJobStatus.CANCELLED
    assert stored.total_emails_synced == 0
    assert stored.status_message == "Cancelled by user"
    assert stored.completed_at is not None


async def test_find_latest_for_user(scope) -> None:
    first = await _create_job(scope)
    await _start(scope, first.id)
    async with scope() as repos:
        await repos.jobs.transition(first.id, [SyncJobStatus.RUNNING], SyncJobStatus.FAILED)
    second = await _create_job(scope)
    async with scope() as repos:
        latest = await repos.jobs.find_latest_for_user(USER_ID)
        failed = await repos.jobs.find_latest_for_user(USER_ID, [SyncJobStatus.FAILED])
        none = await repos.jobs.find_latest_for_user(OTHER_USER_ID)
    assert latest.id == second.id
    assert failed.id == first.id
    assert none is None


async def test_fail_active_jobs(scope) -> None:
    pending = await _create_job(scope)
    running = await _create_job(scope, OTHER_USER_ID)
    await _start(scope, running.id)
    async with scope() as repos:
        count = await repos.jobs.fail_active_jobs("Interrupted by restart", utc_now())
        stored = await repos.jobs.get_job(running.id)
        other = await repos.jobs.get_job(pending.id)
    assert count == 2
    assert stored.status == SyncJobStatus.FAILED
    assert stored.error_message == "Interrupted by restart"
    assert other.status == SyncJobStatus.FAILED


async def test_save_many_skips_known_and_repeated_message_ids(scope, create_account) -> None:
    account = await create_account()
    async with scope() as repos:
        assert await repos.metadata.save(_metadata(account.id, "m-1"))
        assert not await repos.metadata.save(_metadata(account.id, "m-1"))
    async with scope() as repos:
        inserted = await repos.metadata.save_many(
            [
                _metadata(account.id, "m-1"),
                _metadata(account.id, "m-2"),
                _metadata(account.id, "m-2"),
                _metadata(account.id, "m-3"),
            ]
        )
        existing = await repos.metadata.find_existing_message_ids(["m-1", "m-3", "m-9"])
        count = await repos.metadata.count_by_account(account.id)
    assert inserted == 2
    assert existing == {"m-1", "m-3"}
    assert count == 3


async def test_find_existing_message_ids_empty_input(scope) -> None:
    async with scope() as repos:
        assert await repos.metadata.find_existing_message_ids([]) == set()


async def test_accounts_are_scoped_to_user(scope, create_account) -> None:
    first = await create_account("first@example.com")
    await create_account("second@example.com")
    foreign = await create_account("other@example.com", user_id=OTHER_USER_ID)
    async with scope() as repos:
        accounts = await repos.accounts.find_by_user_id(USER_ID)
        count = await repos.accounts.count_by_user_id(USER_ID)
        owned = await repos.accounts.get_by_id_and_user(first.id, USER_ID)
        not_owned = await repos.accounts.get_by_id_and_user(foreign.id, USER_ID)
    assert sorted(a.email_address for a in accounts) == ["first@example.com", "second@example.com"]
    assert count == 2
    assert owned.id == first.id
    assert not_owned is None


async def test_saving_deleted_account_raises(scope, create_account) -> None:
    account = await create_account()
    account.id = "missing"
    async with scope() as repos:
        with pytest.raises(ResourceNotFoundException):
            await repos.accounts.save(account)


async def test_notifications_read_and_delete(scope) -> None:
    async with scope() as repos:
        first = await repos.notifications.save(
            USER_ID, NotificationType.SYNC_COMPLETE, "Sync Complete", "done", "job-1", "/analytics"
        )
        await repos.notifications.save(
            USER_ID, NotificationType.SYNC_FAILED, "Sync Failed", "Sync failed: boom", "job-2"
        )
        await repos.notifications.save(
            OTHER_USER_ID, NotificationType.SYNC_COMPLETE, "Sync Complete", "done"
        )
    async with scope() as repos:
        assert await repos.notifications.count_unread(USER_ID) == 2
        assert await repos.notifications.mark_read(first.id, USER_ID)
        assert not await repos.notifications.mark_read(first.id, OTHER_USER_ID)
        unread = await repos.notifications.list_for_user(USER_ID, unread_only=True)
        assert [n.type for n in unread] == [NotificationType.SYNC_FAILED]
        assert await repos.notifications.mark_all_read(USER_ID) == 1
        assert await repos.notifications.count_unread(USER_ID) == 0
        assert await repos.notifications.delete(first.id, USER_ID)
        assert not await repos.notifications.delete(first.id, USER_ID)
        remaining = await repos.notifications.list_for_user(USER_ID)
    assert len(remaining) == 1
    assert remaining[0].related_job_id == "job-2"
