from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_admin_user, get_super_admin_user

from .schemas import (
    BalanceAdjustRequest,
    BalanceAdjustResponse,
    CoinSupplyResponse,
    CreateCoinsRequest,
    DistributeCoinsRequest,
    DistributeCoinsResponse,
    TsuRateResponse,
    UpdateTsuRateRequest,
)
from .service import (
    adjust_supply as service_adjust_supply,
    create_coins as service_create_coins,
    distribute_coins as service_distribute_coins,
    update_tsu_rate as service_update_tsu_rate,
)

router = APIRouter(prefix="/api/admin")


@router.post("/coins/create", response_model=CoinSupplyResponse, status_code=status.HTTP_201_CREATED)
def create_coins(payload: CreateCoinsRequest, db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_create_coins(db, actor=admin, data=payload)


@router.put("/tsu-rates", response_model=TsuRateResponse)
def update_tsu_rate(payload: UpdateTsuRateRequest, db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_update_tsu_rate(db, actor=admin, data=payload)


@router.post("/balance/adjust", response_model=BalanceAdjustResponse)
def adjust_balance(
    payload: BalanceAdjustRequest,
    db: Session = Depends(get_db),
    super_admin=Depends(get_super_admin_user),
):
    """Grow or shrink total and circulating supply together. Neither may go below zero."""
    return service_adjust_supply(db, actor=super_admin, data=payload)


@router.post("/distribute-coins", response_model=DistributeCoinsResponse)
def distribute_coins(
    payload: DistributeCoinsRequest,
    db: Session = Depends(get_db),
    super_admin=Depends(get_super_admin_user),
):
    return service_distribute_coins(db, actor=super_admin, data=payload)
