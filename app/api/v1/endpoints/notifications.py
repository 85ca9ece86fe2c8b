"""Notifications API: the caller's sync outcome notifications."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.api.v1.dependencies import (
    get_notification_repo,
    get_notification_repo_for_write,
    get_user_id,
)
from app.infrastructure.persistence.repositories import NotificationRepository
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)

router = APIRouter()


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    user_id: Annotated[str, Depends(get_user_id)],
    notification_repo: Annotated[
        NotificationRepository, Depends(get_notification_repo)
    ],
    limit: int = Query(50, ge=1, le=200),
):
    """List notifications, newest first."""
    items = await notification_repo.list_for_user(user_id, limit=limit)
    return [NotificationResponse.model_validate(n) for n in items]


@router.get("/unread", response_model=list[NotificationResponse])
async def list_unread_notifications(
    user_id: Annotated[str, Depends(get_user_id)],
    notification_repo: Annotated[
        NotificationRepository, Depends(get_notification_repo)
    ],
    limit: int = Query(50, ge=1, le=200),
):
    items = await notification_repo.list_for_user(user_id, unread_only=True, limit=limit)
    return [NotificationResponse.model_validate(n) for n in items]


@router.get("/unread/count", response_model=UnreadCountResponse)
async def count_unread_notifications(
    user_id: Annotated[str, Depends(get_user_id)],
    notification_repo: Annotated[
        NotificationRepository, Depends(get_notification_repo)
    ],
):
    return UnreadCountResponse(count=await notification_repo.count_unread(user_id))


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    user_id: Annotated[str, Depends(get_user_id)],
    notification_repo: Annotated[
        NotificationRepository, Depends(get_notification_repo_for_write)
    ],
):
    return MarkAllReadResponse(updated=await notification_repo.mark_all_read(user_id))


@router.post("/{notification_id}/read", status_code=204)
async def mark_notification_read(
    notification_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    notification_repo: Annotated[
        NotificationRepository, Depends(get_notification_repo_for_write)
    ],
):
    if not await notification_repo.mark_read(notification_id, user_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return Response(status_code=204)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    notification_repo: Annotated[
        NotificationRepository, Depends(get_notification_repo_for_write)
    ],
):
    if not await notification_repo.delete(notification_id, user_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return Response(status_code=204)
