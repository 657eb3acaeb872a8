"""Notification endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import resource_store
from ..domain.models import NotificationRead
from ..domain.policy import ResourceKind
from ..domain.schemas import NotificationCreate, NotificationUpdate
from ..services.store import ResourceStore

router = APIRouter()


@router.get("/", response_model=List[NotificationRead])
def list_notifications(
    unread: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    store: ResourceStore = Depends(resource_store),
):
    owner = None if store.context.is_admin else store.context.subject_id
    return store.list(
        ResourceKind.NOTIFICATION,
        limit=limit,
        user_uid=owner,
        is_read=False if unread else None,
    )


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification(payload: NotificationCreate, store: ResourceStore = Depends(resource_store)):
    return store.create(ResourceKind.NOTIFICATION, payload.model_dump(exclude_unset=True))


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_read(notification_id: str, store: ResourceStore = Depends(resource_store)):
    record = store.update(ResourceKind.NOTIFICATION, notification_id, {"is_read": True})
    if not record:
        raise HTTPException(status_code=404, detail="Notification not found")
    return record


@router.patch("/{notification_id}", response_model=NotificationRead)
def update_notification(
    notification_id: str,
    payload: NotificationUpdate,
    store: ResourceStore = Depends(resource_store),
):
    record = store.update(
        ResourceKind.NOTIFICATION, notification_id, payload.model_dump(exclude_unset=True)
    )
    if not record:
        raise HTTPException(status_code=404, detail="Notification not found")
    return record


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(notification_id: str, store: ResourceStore = Depends(resource_store)):
    if not store.delete(ResourceKind.NOTIFICATION, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
