"""Notifications schemas."""

from datetime import datetime
from typing import List

from core.schemas import CamelModel


class NotificationResponse(CamelModel):
    id: int
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime


class NotificationListResponse(CamelModel):
    notifications: List[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(CamelModel):
    updated: int
