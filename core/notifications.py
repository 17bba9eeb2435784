"""Notifications facade for other domains."""

from sqlalchemy.orm import Session


def notify(db: Session, *, user_id: str, title: str, message: str, type: str = "info"):
    """Queue a notification row on the caller's session. The caller commits."""
    from routers.notifications import service as notifications_service

    return notifications_service.create_notification(
        db, user_id=user_id, title=title, message=message, type=type
    )
