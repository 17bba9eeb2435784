from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_current_user

from .schemas import (
    BtcSignatureRequest,
    ChallengeResponse,
    EthSignatureRequest,
    VerifiedWalletResponse,
)
from .service import (
    create_challenge as service_create_challenge,
    verify_wallet_signature as service_verify_wallet_signature,
)

router = APIRouter(prefix="/api/wallet", tags=["Wallet"])


@router.post("/verify-challenge", response_model=ChallengeResponse)
def eth_challenge(db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return service_create_challenge(db, user_id=current_user.id, chain="eth")


@router.post("/verify-signature", response_model=VerifiedWalletResponse)
def eth_verify(
    payload: EthSignatureRequest,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return service_verify_wallet_signature(
        db,
        user_id=current_user.id,
        chain="eth",
        address=payload.address,
        signature=payload.signature,
        nonce=payload.nonce,
    )


@router.post("/bitcoin/verify-challenge", response_model=ChallengeResponse)
def btc_challenge(db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return service_create_challenge(db, user_id=current_user.id, chain="btc")


@router.post("/bitcoin/verify-signature", response_model=VerifiedWalletResponse)
def btc_verify(
    payload: BtcSignatureRequest,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return service_verify_wallet_signature(
        db,
        user_id=current_user.id,
        chain="btc",
        address=payload.address,
        signature=payload.signature,
        nonce=payload.nonce,
    )
