"""Notifications domain repository layer."""

from sqlalchemy import func
from sqlalchemy.orm import Session


def create_notification(db: Session, *, user_id: str, title: str, message: str, type: str):
    from models import Notification

    row = Notification(user_id=user_id, title=title, message=message, type=type)
    db.add(row)
    return row


def list_for_user(db: Session, *, user_id: str, limit: int, unread_only: bool):
    from models import Notification

    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def count_unread(db: Session, *, user_id: str) -> int:
    from models import Notification

    return (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .scalar()
        or 0
    )


def get_for_user(db: Session, *, notification_id: int, user_id: str):
    from models import Notification

    return (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )


def mark_all_read(db: Session, *, user_id: str) -> int:
    from models import Notification

    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
