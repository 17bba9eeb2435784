import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

import config
from auth import decode_access_token
from core.db import get_db
from models import User

logger = logging.getLogger(__name__)


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return auth_header.split(" ", 1)[1].strip()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Extracts and validates the bearer JWT from the Authorization header and
    returns the matching active user.
    """
    claims = decode_access_token(_bearer_token(request))
    user = db.query(User).filter(User.id == claims["sub"]).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")
    return user


def is_admin(user: User) -> bool:
    return bool(user.is_admin)


def verify_admin(user: User):
    if not is_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")


def verify_super_admin(user: User):
    if not user.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin access required")


def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    verify_admin(current_user)
    return current_user


def get_super_admin_user(current_user: User = Depends(get_current_user)) -> User:
    verify_super_admin(current_user)
    return current_user


def client_ip(request: Request) -> str:
    """Peer address, or the first X-Forwarded-For hop when TRUST_PROXY_HEADERS is set."""
    forwarded = request.headers.get("x-forwarded-for") if config.TRUST_PROXY_HEADERS else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
