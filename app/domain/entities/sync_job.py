"""Sync job domain rules: lifecycle transitions and progress arithmetic.

Pure functions and a small entity; no ORM or persistence concerns.
"""

from dataclasses import dataclass

from app.domain.enums import SyncJobStatus
from app.domain.exceptions import InvalidJobTransitionException

_ALLOWED_TRANSITIONS: dict[SyncJobStatus, frozenset[SyncJobStatus]] = {
    SyncJobStatus.PENDING: frozenset(
        {SyncJobStatus.RUNNING, SyncJobStatus.FAILED, SyncJobStatus.CANCELLED}
    ),
    SyncJobStatus.RUNNING: frozenset(
        {SyncJobStatus.COMPLETED, SyncJobStatus.FAILED, SyncJobStatus.CANCELLED}
    ),
    SyncJobStatus.COMPLETED: frozenset(),
    SyncJobStatus.FAILED: frozenset(),
    SyncJobStatus.CANCELLED: frozenset(),
}


def can_transition(from_status: SyncJobStatus, to_status: SyncJobStatus) -> bool:
    """Return whether a job may move from from_status to to_status."""
    return to_status in _ALLOWED_TRANSITIONS[from_status]


def progress_percent(processed_accounts: int, total_accounts: int) -> int:
    """Whole-number percentage of processed accounts; 0 when there are no accounts."""
    if total_accounts <= 0:
        return 0
    return processed_accounts * 100 // total_accounts


def throughput(processed: int, elapsed_seconds: float) -> float:
    """Messages per second, or 0.0 before any measurable time has passed."""
    if elapsed_seconds <= 0:
        return 0.0
    return processed / elapsed_seconds


def estimate_seconds_remaining(
    estimated_total: int, total_processed: int, rate: float
) -> int | None:
    """Seconds left at the current rate; None when the rate or remainder is not positive."""
    remaining = estimated_total - total_processed
    if rate <= 0 or remaining <= 0:
        return None
    return int(remaining / rate)


@dataclass
class SyncJobEntity:
    """Domain view of a sync job's lifecycle state.

    Enforces PENDING -> RUNNING -> {COMPLETED, FAILED, CANCELLED}; terminal
    states never change again.
    """

    id: str
    status: SyncJobStatus

    def transition_to(self, target: SyncJobStatus) -> None:
        """Move to target status.

        Raises:
            InvalidJobTransitionException: If the move is not allowed.
        """
        if not can_transition(self.status, target):
            raise InvalidJobTransitionException(
                self.id, self.status.value, target.value
            )
        self.status = target

    def is_cancellable(self) -> bool:
        """Only a RUNNING job can be cancelled by the user."""
        return self.status == SyncJobStatus.RUNNING
