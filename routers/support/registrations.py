from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_admin_user

from .schemas import (
    CommodityRegistrationCreate,
    CommodityRegistrationResponse,
    CurrencyRegistrationCreate,
    CurrencyRegistrationResponse,
    RegistrationStatus,
    RegistrationUpdate,
)
from .service import (
    list_submissions as service_list_submissions,
    review_registration as service_review_registration,
    submit as service_submit,
)

router = APIRouter(prefix="/api")


@router.post(
    "/commodity-registrations",
    response_model=CommodityRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_commodity_registration(payload: CommodityRegistrationCreate, db: Session = Depends(get_db)):
    return service_submit(db, "commodity", data=payload)


@router.get("/commodity-registrations", response_model=List[CommodityRegistrationResponse], tags=["Admin"])
def list_commodity_registrations(
    status_filter: Optional[RegistrationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_list_submissions(db, "commodity", status_filter=status_filter)


@router.put("/commodity-registrations/{registration_id}", response_model=CommodityRegistrationResponse, tags=["Admin"])
def review_commodity_registration(
    registration_id: int,
    payload: RegistrationUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_review_registration(
        db,
        "commodity",
        row_id=registration_id,
        new_status=payload.status,
        admin_notes=payload.admin_notes,
        reviewed_by=admin.id,
    )


@router.post(
    "/currency-registrations",
    response_model=CurrencyRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_currency_registration(payload: CurrencyRegistrationCreate, db: Session = Depends(get_db)):
    return service_submit(db, "currency", data=payload)


@router.get("/currency-registrations", response_model=List[CurrencyRegistrationResponse], tags=["Admin"])
def list_currency_registrations(
    status_filter: Optional[RegistrationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_list_submissions(db, "currency", status_filter=status_filter)


@router.put("/currency-registrations/{registration_id}", response_model=CurrencyRegistrationResponse, tags=["Admin"])
def review_currency_registration(
    registration_id: int,
    payload: RegistrationUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_review_registration(
        db,
        "currency",
        row_id=registration_id,
        new_status=payload.status,
        admin_notes=payload.admin_notes,
        reviewed_by=admin.id,
    )
