"""Domain enumerations for the mailbox sync service.

Enums represent fixed sets of domain values (provider kind, sync states).
Values are stored as-is in the database and returned by the API.
"""

from enum import Enum


class ProviderKind(str, Enum):
    """Mailbox provider of a connected account."""

    GMAIL = "GMAIL"
    OUTLOOK = "OUTLOOK"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid provider values as strings."""
        return [kind.value for kind in cls]


class AccountSyncStatus(str, Enum):
    """Per-account sync status, mutated by every provider client call."""

    PENDING = "PENDING"
    SYNCING = "SYNCING"
    SYNCED = "SYNCED"
    ERROR = "ERROR"


class SyncJobStatus(str, Enum):
    """Sync job lifecycle.

    PENDING -> RUNNING -> {COMPLETED, FAILED, CANCELLED}. Terminal states are final.
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_JOB_STATUSES

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_JOB_STATUSES

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


_TERMINAL_JOB_STATUSES = frozenset(
    {SyncJobStatus.COMPLETED, SyncJobStatus.FAILED, SyncJobStatus.CANCELLED}
)

# A user may hold at most one job in these states.
ACTIVE_JOB_STATUSES = frozenset({SyncJobStatus.PENDING, SyncJobStatus.RUNNING})


class SyncJobType(str, Enum):
    """Kind of sync run."""

    FULL_SYNC = "FULL_SYNC"
    INCREMENTAL_SYNC = "INCREMENTAL_SYNC"


class NotificationType(str, Enum):
    """Notification kinds written by the sync engine."""

    SYNC_COMPLETE = "SYNC_COMPLETE"
    SYNC_FAILED = "SYNC_FAILED"


class FolderKind(str, Enum):
    """Whether a provider folder is built in or created by the user."""

    SYSTEM = "system"
    USER = "user"
