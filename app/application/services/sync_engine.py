"""Background mailbox sync engine.

One asyncio task per sync job walks the user's accounts in order and each
account's pages in provider order. The job row is the only shared state: the
loop re-reads its status before every account and every page, and every
progress write is conditional on the job still being RUNNING, so a cancel
request is observed at most one page later and is never overwritten.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from app.application.dtos.email_account import MailboxAccount
from app.application.dtos.email_metadata import EmailMetadataCreate
from app.application.dtos.mail import ListFilter, MessageSummary
from app.application.dtos.sync_job import SyncJobResult, SyncProgressUpdate
from app.application.interfaces.repositories import ITransactionScope
from app.application.interfaces.services import (
    IMailProviderClientFactory,
    INotificationService,
)
from app.domain.entities.sync_job import estimate_seconds_remaining, throughput
from app.domain.enums import ACTIVE_JOB_STATUSES, SyncJobStatus, SyncJobType
from app.domain.exceptions import ResourceNotFoundException
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now
from app.shared.utils.email_headers import parse_address, parse_message_date

logger = get_logger(__name__)

STARTING_MESSAGE = "Starting sync..."
FETCHING_ACCOUNTS_MESSAGE = "Fetching accounts..."
COMPLETED_MESSAGE = "Sync completed successfully"
CANCELLED_MESSAGE = "Cancelled by user"


@dataclass
class _JobRun:
    """Mutable state of one job's processing loop."""

    job: SyncJobResult
    estimated_total: int = 0
    total_processed: int = 0
    cancelled: bool = False


class SyncEngine:
    """Starts, runs, cancels and reports sync jobs."""

    def __init__(
        self,
        scope: ITransactionScope,
        client_factory: IMailProviderClientFactory,
        notifier: INotificationService,
        *,
        max_pages_per_account: int = 50,
        page_delay_seconds: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scope = scope
        self._client_factory = client_factory
        self._notifier = notifier
        self._max_pages = max_pages_per_account
        self._page_delay = page_delay_seconds
        self._sleep = sleep
        self._clock = clock
        self._start_locks: dict[str, asyncio.Lock] = {}
        self._start_lock_users: Counter[str] = Counter()
        self._tasks: dict[str, asyncio.Task[None]] = {}

    # ---- caller-facing operations ----

    async def start_job(
        self, user_id: str, job_type: SyncJobType = SyncJobType.FULL_SYNC
    ) -> SyncJobResult:
        """Create a PENDING job and schedule its processing; returns immediately.

        Raises:
            SyncJobAlreadyRunningException: If the user already has an active job.
        """
        async with self._start_guard(user_id):
            async with self._scope() as repos:
                total_accounts = await repos.accounts.count_by_user_id(user_id)
                job = await repos.jobs.create_job(
                    user_id, job_type, total_accounts, STARTING_MESSAGE
                )
        task = asyncio.create_task(self._process_job(job.id), name=f"sync-job-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(job.id, None))
        logger.info(
            "Started %s job %s for user %s (%d accounts)",
            job_type.value,
            job.id,
            user_id,
            total_accounts,
        )
        return job

    @asynccontextmanager
    async def _start_guard(self, user_id: str) -> AsyncIterator[None]:
        """Serialize starts per user; the lock is dropped once no caller holds or awaits it."""
        lock = self._start_locks.setdefault(user_id, asyncio.Lock())
        self._start_lock_users[user_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._start_lock_users[user_id] -= 1
            if not self._start_lock_users[user_id]:
                del self._start_lock_users[user_id]
                del self._start_locks[user_id]

    async def cancel_job(self, job_id: str) -> bool:
        """Cancel a RUNNING job; any other status is left untouched.

        Returns:
            True if the job was cancelled by this call.
        """
        async with self._scope() as repos:
            cancelled = await repos.jobs.transition(
                job_id,
                [SyncJobStatus.RUNNING],
                SyncJobStatus.CANCELLED,
                completed_at=utc_now(),
                status_message=CANCELLED_MESSAGE,
                current_account=None,
            )
        if cancelled:
            logger.info("Sync job %s cancelled by user", job_id)
        return cancelled

    async def get_job(self, job_id: str) -> SyncJobResult | None:
        async with self._scope() as repos:
            return await repos.jobs.get_job(job_id)

    async def get_job_for_user(self, job_id: str, user_id: str) -> SyncJobResult:
        """Return the user's job.

        Raises:
            ResourceNotFoundException: If missing or owned by another user.
        """
        job = await self.get_job(job_id)
        if job is None or job.user_id != user_id:
            raise ResourceNotFoundException("sync_job", job_id)
        return job

    async def get_status_for_user(self, user_id: str) -> SyncJobResult | None:
        """Return the user's active job, else their most recent one, else None."""
        async with self._scope() as repos:
            active = await repos.jobs.find_latest_for_user(user_id, ACTIVE_JOB_STATUSES)
            if active is not None:
                return active
            return await repos.jobs.find_latest_for_user(user_id)

    async def wait_for(self, job_id: str) -> None:
        """Wait until the job's processing task (if still in flight) has finished."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})

    async def shutdown(self) -> None:
        """Cancel in-flight job tasks (jobs left RUNNING are failed at next startup)."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d in-flight sync jobs", len(tasks))
        self._tasks.clear()

    # ---- job processing ----

    async def _is_cancelled(self, job_id: str) -> bool:
        async with self._scope() as repos:
            status = await repos.jobs.get_status(job_id)
        return status == SyncJobStatus.CANCELLED

    async def _process_job(self, job_id: str) -> None:
        try:
            async with self._scope() as repos:
                started = await repos.jobs.transition(
                    job_id,
                    [SyncJobStatus.PENDING],
                    SyncJobStatus.RUNNING,
                    status_message=FETCHING_ACCOUNTS_MESSAGE,
                )
                job = await repos.jobs.get_job(job_id)
            if not started or job is None:
                logger.warning("Sync job %s was not pending; not processing", job_id)
                return
            async with self._scope() as repos:
                accounts = await repos.accounts.find_by_user_id(job.user_id)
                await repos.jobs.update_fields(
                    job_id, SyncJobStatus.RUNNING, total_accounts=len(accounts)
                )

            run = _JobRun(job=job)
            for index, account in enumerate(accounts, start=1):
                if await self._is_cancelled(job_id):
                    logger.info("Sync job %s cancelled before account %s", job_id, account.id)
                    return
                async with self._scope() as repos:
                    await repos.jobs.update_fields(
                        job_id,
                        SyncJobStatus.RUNNING,
                        current_account=account.email_address,
                        current_page=0,
                        status_message=f"Syncing {account.email_address}...",
                    )
                try:
                    await self._sync_account(run, account)
                except Exception:
                    logger.exception(
                        "Failed to sync account %s for job %s", account.id, job_id
                    )
                if run.cancelled:
                    logger.info("Sync job %s cancelled during account %s", job_id, account.id)
                    return
                async with self._scope() as repos:
                    await repos.jobs.update_fields(
                        job_id, SyncJobStatus.RUNNING, processed_accounts=index
                    )

            await self._complete_job(job_id)
        except Exception as e:
            logger.exception("Sync job %s failed", job_id)
            await self._fail_job(job_id, str(e))

    async def _complete_job(self, job_id: str) -> None:
        async with self._scope() as repos:
            completed = await repos.jobs.transition(
                job_id,
                [SyncJobStatus.RUNNING],
                SyncJobStatus.COMPLETED,
                completed_at=utc_now(),
                current_account=None,
                estimated_seconds_remaining=None,
                status_message=COMPLETED_MESSAGE,
            )
            job = await repos.jobs.get_job(job_id)
        if not completed or job is None:
            logger.info("Sync job %s was no longer running at completion", job_id)
            return
        logger.info(
            "Sync job %s completed: %d synced, %d skipped across %d accounts",
            job_id,
            job.total_emails_synced,
            job.total_emails_skipped,
            job.processed_accounts,
        )
        await self._notifier.notify_sync_complete(job)

    async def _fail_job(self, job_id: str, error: str) -> None:
        try:
            async with self._scope() as repos:
                failed = await repos.jobs.transition(
                    job_id,
                    ACTIVE_JOB_STATUSES,
                    SyncJobStatus.FAILED,
                    completed_at=utc_now(),
                    current_account=None,
                    error_message=error,
                    status_message=f"Sync failed: {error}",
                )
                job = await repos.jobs.get_job(job_id)
            if failed and job is not None:
                await self._notifier.notify_sync_failed(job, error)
        except Exception:
            logger.exception("Could not record failure of sync job %s", job_id)

    async def _sync_account(self, run: _JobRun, account: MailboxAccount) -> None:
        """Page through one account, persisting unseen messages after every page."""
        job_id = run.job.id
        client = self._client_factory.for_account(account)
        list_filter = ListFilter()
        if run.job.job_type == SyncJobType.INCREMENTAL_SYNC and account.last_sync_at:
            list_filter = ListFilter(after=account.last_sync_at)

        cursor: str | None = None
        account_processed = 0
        account_started = self._clock()
        for page_number in range(1, self._max_pages + 1):
            if await self._is_cancelled(job_id):
                run.cancelled = True
                return
            page = await client.list_page(account, cursor, list_filter)
            if page_number == 1 and page.total_estimate > 0:
                run.estimated_total += page.total_estimate
                async with self._scope() as repos:
                    await repos.jobs.update_fields(
                        job_id,
                        SyncJobStatus.RUNNING,
                        estimated_total_emails=run.estimated_total,
                    )
            if not page.messages:
                break

            async with self._scope() as repos:
                existing = await repos.metadata.find_existing_message_ids(
                    m.id for m in page.messages
                )
                new_items = [
                    self._to_metadata(account, m)
                    for m in page.messages
                    if m.id not in existing
                ]
                synced = await repos.metadata.save_many(new_items)
            processed = len(page.messages)
            skipped = processed - synced
            account_processed += processed
            run.total_processed += processed

            rate = throughput(account_processed, self._clock() - account_started)
            eta = None
            if run.estimated_total > 0:
                eta = estimate_seconds_remaining(run.estimated_total, run.total_processed, rate)
            async with self._scope() as repos:
                still_running = await repos.jobs.update_progress(
                    job_id,
                    SyncProgressUpdate(
                        synced_delta=synced,
                        skipped_delta=skipped,
                        processed_delta=processed,
                        current_page=page_number,
                        emails_per_second=rate,
                        estimated_seconds_remaining=eta,
                        status_message=(
                            f"Syncing {account.email_address} (page {page_number}) "
                            f"- {rate:.1f}/s"
                        ),
                    ),
                )
            if not still_running:
                run.cancelled = True
                return
            logger.debug(
                "Job %s account %s page %d: %d synced, %d skipped",
                job_id,
                account.id,
                page_number,
                synced,
                skipped,
            )

            cursor = page.next_page_cursor
            if not cursor:
                break
            if page_number == self._max_pages:
                logger.warning(
                    "Page ceiling (%d) reached for account %s in job %s",
                    self._max_pages,
                    account.id,
                    job_id,
                )
                break
            await self._sleep(self._page_delay)

    @staticmethod
    def _to_metadata(account: MailboxAccount, message: MessageSummary) -> EmailMetadataCreate:
        sender_email, sender_name = parse_address(message.sender)
        recipient_email, _ = parse_address(message.recipient)
        sender_email = sender_email.lower()
        return EmailMetadataCreate(
            account_id=account.id,
            message_id=message.id,
            thread_id=message.thread_id,
            sender_email=sender_email,
            sender_name=sender_name or None,
            recipient_email=recipient_email.lower() or None,
            subject=message.subject or None,
            received_at=parse_message_date(message.date),
            is_read=not message.is_unread,
            from_me=sender_email == account.email_address.lower(),
            in_reply_to=message.in_reply_to,
        )
