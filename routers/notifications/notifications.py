from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_current_user

from .schemas import MarkAllReadResponse, NotificationListResponse, NotificationResponse
from .service import (
    list_notifications as service_list_notifications,
    mark_all_read as service_mark_all_read,
    mark_read as service_mark_read,
)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
def get_notifications(
    limit: int = Query(50, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return service_list_notifications(db, user_id=current_user.id, limit=limit, unread_only=unread_only)


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return service_mark_all_read(db, user_id=current_user.id)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return service_mark_read(db, user_id=current_user.id, notification_id=notification_id)
