from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_current_user

from .schemas import SendTsuRequest, SendTsuResponse
from .service import send_tsu as service_send_tsu

router = APIRouter(prefix="/api/transactions", tags=["Wallet"])


@router.post("/send", response_model=SendTsuResponse)
def send_tsu(
    payload: SendTsuRequest,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Transfer TSU from the signed-in user to another account by email."""
    return service_send_tsu(
        db,
        sender_id=current_user.id,
        recipient_email=payload.recipient_email,
        amount=payload.amount,
        description=payload.description,
    )
