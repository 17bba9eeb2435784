"""Support service layer."""

import logging
from typing import Optional

from fastapi import HTTPException, status

from . import repository as support_repository

logger = logging.getLogger(__name__)

_NOT_FOUND = {
    "commodity": "Commodity registration not found",
    "currency": "Currency registration not found",
    "contact": "Contact message not found",
}


def submit(db, kind: str, *, data):
    row = support_repository.create(db, kind, **data.model_dump())
    db.commit()
    db.refresh(row)
    logger.info(f"SUPPORT_SUBMITTED | kind={kind} | id={row.id}")
    return row


def list_submissions(db, kind: str, *, status_filter: Optional[str] = None):
    return support_repository.list_all(db, kind, status=status_filter)


def _get_or_404(db, kind: str, row_id: int):
    row = support_repository.get(db, kind, row_id=row_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND[kind])
    return row


def review_registration(db, kind: str, *, row_id: int, new_status: str, admin_notes: Optional[str], reviewed_by: str):
    row = _get_or_404(db, kind, row_id)
    row.status = new_status
    if admin_notes is not None:
        row.admin_notes = admin_notes
    db.commit()
    db.refresh(row)
    logger.info(f"REGISTRATION_REVIEWED | kind={kind} | id={row_id} | status={new_status} | by={reviewed_by}")
    return row


def update_contact_message(db, *, row_id: int, is_read: Optional[bool], admin_response: Optional[str]):
    row = _get_or_404(db, "contact", row_id)
    if is_read is not None:
        row.is_read = is_read
    if admin_response is not None:
        row.admin_response = admin_response
        row.is_read = True
    db.commit()
    db.refresh(row)
    return row
