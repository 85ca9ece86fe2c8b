"""Sync jobs API: start, poll and cancel the caller's mailbox sync."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.v1.dependencies import get_sync_engine, get_user_id
from app.application.services.sync_engine import SyncEngine
from app.domain.enums import SyncJobType
from app.schemas.sync_job import NoSyncJobResponse, SyncJobResponse

router = APIRouter()


@router.post("", response_model=SyncJobResponse, status_code=202)
async def start_sync(
    user_id: Annotated[str, Depends(get_user_id)],
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
    job_type: SyncJobType = Query(SyncJobType.FULL_SYNC),
):
    """Start a background sync across all of the caller's accounts (409 if one is active)."""
    job = await engine.start_job(user_id, job_type)
    return SyncJobResponse.model_validate(job)


@router.get("/status", response_model=SyncJobResponse | NoSyncJobResponse)
async def get_sync_status(
    user_id: Annotated[str, Depends(get_user_id)],
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
):
    """Active job, else the most recent one."""
    job = await engine.get_status_for_user(user_id)
    if job is None:
        return NoSyncJobResponse()
    return SyncJobResponse.model_validate(job)


@router.get("/jobs/{job_id}", response_model=SyncJobResponse)
async def get_sync_job(
    job_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
):
    job = await engine.get_job_for_user(job_id, user_id)
    return SyncJobResponse.model_validate(job)


@router.post("/jobs/{job_id}/cancel", response_model=SyncJobResponse)
async def cancel_sync_job(
    job_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
):
    """Cancel a running job; a job in any other status is returned unchanged."""
    await engine.get_job_for_user(job_id, user_id)
    await engine.cancel_job(job_id)
    job = await engine.get_job_for_user(job_id, user_id)
    return SyncJobResponse.model_validate(job)
