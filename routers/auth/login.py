from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import client_ip, get_current_user

from .schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from .service import (
    forgot_password as service_forgot_password,
    login as service_login,
    register as service_register,
    reset_password as service_reset_password,
)

router = APIRouter(prefix="/api/auth")


@router.post("/simple-register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    return service_register(db, data=payload, ip_address=client_ip(request))


@router.post("/simple-login", response_model=AuthResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    return service_login(
        db, email=payload.email, password=payload.password, ip_address=client_ip(request)
    )


@router.post("/simple-logout", response_model=MessageResponse)
def logout():
    # Tokens are stateless; the client drops its copy.
    return {"message": "Logged out successfully"}


@router.get("/user", response_model=UserResponse)
def get_user(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    return service_forgot_password(db, email=payload.email)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    return service_reset_password(db, token=payload.token, new_password=payload.new_password)
