"""Notifications service layer."""

import logging

from fastapi import HTTPException, status

from . import repository as notifications_repository

logger = logging.getLogger(__name__)


def create_notification(db, *, user_id: str, title: str, message: str, type: str = "info"):
    return notifications_repository.create_notification(
        db, user_id=user_id, title=title, message=message, type=type
    )


def list_notifications(db, *, user_id: str, limit: int, unread_only: bool):
    rows = notifications_repository.list_for_user(db, user_id=user_id, limit=limit, unread_only=unread_only)
    return {
        "notifications": rows,
        "unread_count": notifications_repository.count_unread(db, user_id=user_id),
    }


def mark_read(db, *, user_id: str, notification_id: int):
    row = notifications_repository.get_for_user(db, notification_id=notification_id, user_id=user_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    row.is_read = True
    db.commit()
    db.refresh(row)
    return row


def mark_all_read(db, *, user_id: str):
    updated = notifications_repository.mark_all_read(db, user_id=user_id)
    db.commit()
    logger.debug(f"Marked {updated} notifications read for user={user_id}")
    return {"updated": updated}
