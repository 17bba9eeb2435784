from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_admin_user

from .schemas import (
    MessageResponse,
    SendEmailRequest,
    SendEmailResponse,
    SmtpConfigRequest,
    SmtpConfigResponse,
    SmtpTestRequest,
)
from .service import (
    get_smtp_config as service_get_smtp_config,
    save_smtp_config as service_save_smtp_config,
    send_bulk_email as service_send_bulk_email,
    send_smtp_test as service_send_smtp_test,
)

router = APIRouter(prefix="/api/admin")


@router.post("/send-email", response_model=SendEmailResponse)
def send_email(payload: SendEmailRequest, db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_send_bulk_email(db, actor=admin, data=payload)


@router.get("/smtp-config", response_model=SmtpConfigResponse)
def get_smtp_config(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_get_smtp_config(db)


@router.post("/smtp-config", response_model=SmtpConfigResponse)
def save_smtp_config(payload: SmtpConfigRequest, db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_save_smtp_config(db, actor=admin, data=payload)


@router.post("/smtp-test", response_model=MessageResponse)
def smtp_test(payload: SmtpTestRequest, db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_send_smtp_test(db, actor=admin, to_email=payload.test_email)
