from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_super_admin_user

from .schemas import (
    AdminResetPasswordRequest,
    AdminUserResponse,
    MessageResponse,
    PromoteUserRequest,
    RegisterAdminRequest,
)
from .service import (
    delete_user as service_delete_user,
    promote_user as service_promote_user,
    register_admin as service_register_admin,
    reset_admin_password as service_reset_admin_password,
)

router = APIRouter(prefix="/api/admin")


@router.post("/users/promote", response_model=AdminUserResponse)
def promote_user(
    payload: PromoteUserRequest,
    db: Session = Depends(get_db),
    super_admin=Depends(get_super_admin_user),
):
    return service_promote_user(db, actor=super_admin, user_id=payload.user_id, role=payload.role)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: str, db: Session = Depends(get_db), super_admin=Depends(get_super_admin_user)):
    return service_delete_user(db, actor=super_admin, user_id=user_id)


@router.post("/register", response_model=AdminUserResponse, status_code=status.HTTP_201_CREATED)
def register_admin(
    payload: RegisterAdminRequest,
    db: Session = Depends(get_db),
    super_admin=Depends(get_super_admin_user),
):
    return service_register_admin(db, actor=super_admin, data=payload)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: AdminResetPasswordRequest,
    db: Session = Depends(get_db),
    super_admin=Depends(get_super_admin_user),
):
    return service_reset_admin_password(
        db, actor=super_admin, user_id=payload.user_id, new_password=payload.new_password
    )
