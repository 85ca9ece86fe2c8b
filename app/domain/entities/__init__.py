"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from app.domain.entities.sync_job import SyncJobEntity

__all__ = ["SyncJobEntity"]
