"""Scripted provider clients and message builders shared by tests."""

from collections.abc import Awaitable, Callable
from datetime import timedelta

from app.application.dtos.email_account import MailboxAccount
from app.application.dtos.mail import ListFilter, MessageSummary, PageResult
from app.infrastructure.external.email.oauth_drivers import OAuthTokens
from app.shared.utils.datetime import utc_now


def make_summaries(prefix: str, count: int, *, start: int = 0) -> list[MessageSummary]:
    """Provider summaries with ids prefix-<n>."""
    return [
        MessageSummary(
            id=f"{prefix}-{i}",
            thread_id=f"thread-{prefix}-{i}",
            sender=f"Sender {i} <Sender{i}@Example.com>",
            recipient="me@example.com",
            subject=f"Subject {i}",
            date="Mon, 15 Jan 2024 10:30:00 +0000",
            is_unread=i % 2 == 0,
        )
        for i in range(start, start + count)
    ]


def paged(*pages: list[MessageSummary], total_estimate: int = 0) -> list[PageResult]:
    """Chain message lists into PageResults linked by index cursors."""
    return [
        PageResult(
            messages=messages,
            next_page_cursor=str(i + 1) if i + 1 < len(pages) else None,
            total_estimate=total_estimate,
        )
        for i, messages in enumerate(pages)
    ]


class FakeMailClient:
    """Scripted IMailProviderClient: pages per account email, or an exception to raise.

    The page cursor is the index of the next page as a string.
    """

    def __init__(self, scripts: dict[str, list[PageResult] | Exception]) -> None:
        self.scripts = scripts
        self.calls: list[tuple[str, str | None, ListFilter | None]] = []
        self.before_page: Callable[[MailboxAccount, str | None], Awaitable[None]] | None = None

    async def list_page(
        self,
        account: MailboxAccount,
        page_cursor: str | None = None,
        list_filter: ListFilter | None = None,
    ) -> PageResult:
        self.calls.append((account.email_address, page_cursor, list_filter))
        if self.before_page is not None:
            await self.before_page(account, page_cursor)
        script = self.scripts[account.email_address]
        if isinstance(script, Exception):
            raise script
        return script[int(page_cursor) if page_cursor else 0]


class FakeClientFactory:
    """IMailProviderClientFactory returning one client for every account."""

    def __init__(self, client) -> None:
        self.client = client

    def for_account(self, account: MailboxAccount):
        return self.client


class FakeTokenDriver:
    """OAuth driver stand-in: hands out fresh-<n> tokens, or raises a scripted error."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.refreshed_with: list[str] = []

    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        self.refreshed_with.append(refresh_token)
        if self.error is not None:
            raise self.error
        return OAuthTokens(
            access_token=f"fresh-{len(self.refreshed_with)}",
            refresh_token=None,
            token_type="Bearer",
            expires_in=3600,
            expires_at=utc_now() + timedelta(hours=1),
            scope="",
        )
