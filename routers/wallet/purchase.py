from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_current_user

from .schemas import (
    CoinSupplyResponse,
    ExchangeRateResponse,
    PurchaseRequest,
    PurchaseResponse,
    TsuRateResponse,
    TsuRatesResponse,
)
from .service import (
    get_rates as service_get_rates,
    get_supply_or_empty as service_get_supply,
    list_exchange_rates as service_list_exchange_rates,
    list_tsu_rates as service_list_tsu_rates,
    purchase as service_purchase,
)

router = APIRouter(prefix="/api", tags=["Wallet"])


@router.post("/tsu/purchase", response_model=PurchaseResponse)
def purchase_tsu(
    payload: PurchaseRequest,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """
    Credit TSU for an external payment.

    The payment reference (PayPal order id or transaction hash) is verified
    with the payment provider before any balance changes, and can only be
    redeemed once.
    """
    return service_purchase(db, user=current_user, data=payload)


@router.get("/tsu/rates", response_model=TsuRatesResponse)
def get_rates(db: Session = Depends(get_db)):
    return service_get_rates(db)


@router.get("/tsu-rates", response_model=List[TsuRateResponse])
def list_tsu_rates(db: Session = Depends(get_db)):
    return service_list_tsu_rates(db)


@router.get("/exchange-rates", response_model=List[ExchangeRateResponse])
def list_exchange_rates(db: Session = Depends(get_db)):
    return service_list_exchange_rates(db)


@router.get("/coin-supply", response_model=CoinSupplyResponse)
def get_coin_supply(db: Session = Depends(get_db)):
    return service_get_supply(db)
