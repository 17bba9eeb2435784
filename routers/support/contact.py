from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_admin_user

from .schemas import ContactMessageCreate, ContactMessageResponse, ContactMessageUpdate
from .service import (
    list_submissions as service_list_submissions,
    submit as service_submit,
    update_contact_message as service_update_contact_message,
)

router = APIRouter(prefix="/api/contact-messages")


@router.post("", response_model=ContactMessageResponse, status_code=status.HTTP_201_CREATED)
def create_contact_message(payload: ContactMessageCreate, db: Session = Depends(get_db)):
    return service_submit(db, "contact", data=payload)


@router.get("", response_model=List[ContactMessageResponse], tags=["Admin"])
def list_contact_messages(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_list_submissions(db, "contact")


@router.put("/{message_id}", response_model=ContactMessageResponse, tags=["Admin"])
def update_contact_message(
    message_id: int,
    payload: ContactMessageUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_update_contact_message(
        db, row_id=message_id, is_read=payload.is_read, admin_response=payload.admin_response
    )
