from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_admin_user

from .schemas import (
    AdminStatsResponse,
    AdminTransactionResponse,
    AdminUserResponse,
    CountryStatResponse,
    SecurityLogResponse,
    UserEmailResponse,
)
from .service import (
    get_country_stats as service_get_country_stats,
    get_stats as service_get_stats,
    list_security_logs as service_list_security_logs,
    list_transactions as service_list_transactions,
    list_user_emails as service_list_user_emails,
    list_users as service_list_users,
)

router = APIRouter(prefix="/api/admin")


@router.get("/stats", response_model=AdminStatsResponse)
def get_stats(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_get_stats(db)


@router.get("/users", response_model=List[AdminUserResponse])
def list_users(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_list_users(db)


@router.get("/users/emails", response_model=List[UserEmailResponse])
def list_user_emails(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    """Active users, for the bulk email recipient picker."""
    return service_list_user_emails(db)


@router.get("/transactions", response_model=List[AdminTransactionResponse])
def list_transactions(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_list_transactions(db, limit=50)


@router.get("/country-stats", response_model=List[CountryStatResponse])
def country_stats(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_get_country_stats(db)


@router.get("/security-logs", response_model=List[SecurityLogResponse])
def security_logs(
    limit: int = Query(100, ge=1, le=500),
    event_type: Optional[str] = Query(None, alias="eventType"),
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_list_security_logs(db, limit=limit, event_type=event_type)
