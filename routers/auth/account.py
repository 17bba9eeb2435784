from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import KycStatusResponse, KycSubmitRequest, TransactionListResponse
from .service import (
    kyc_status as service_kyc_status,
    recent_transactions as service_recent_transactions,
    submit_kyc as service_submit_kyc,
)

router = APIRouter(prefix="/api")


@router.get("/users/transactions", response_model=TransactionListResponse)
def list_my_transactions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_recent_transactions(db, user_id=current_user.id)


@router.get("/kyc/status", response_model=KycStatusResponse)
def get_kyc_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_kyc_status(db, user_id=current_user.id)


@router.post("/kyc/submit", response_model=KycStatusResponse)
def submit_kyc(
    payload: KycSubmitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_submit_kyc(db, user_id=current_user.id, data=payload)
