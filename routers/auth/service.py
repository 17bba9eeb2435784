"""Auth service layer."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import config
from auth import create_access_token, hash_password, verify_password
from core.notifications import notify
from core.rate_limit import default_rate_limiter
from utils.email_service import EmailDeliveryError, password_reset_email, send_email

from . import repository as auth_repository
from .schemas import KycSubmitRequest, RegisterRequest

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = "If an account with that email exists, a password reset link has been sent."


# ---------------------------------------------------------------------------
# Internal API used through core.users
# ---------------------------------------------------------------------------

def get_user_by_id(db: Session, *, user_id: str):
    return auth_repository.get_user_by_id(db, user_id)


def get_user_by_id_for_update(db: Session, *, user_id: str):
    return auth_repository.get_user_by_id_for_update(db, user_id)


def get_user_by_email(db: Session, *, email: str):
    return auth_repository.get_user_by_email_ci(db, email)


def lock_users(db: Session, *, user_ids: List[str]) -> Dict[str, object]:
    users = auth_repository.get_users_by_ids_for_update(db, sorted(set(user_ids)))
    return {user.id: user for user in users}


def set_verified_wallet(db: Session, *, user_id: str, chain: str, address: str):
    user = auth_repository.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if chain == "eth":
        user.verified_eth_address = address.lower()
    else:
        user.verified_btc_address = address
    return user


# ---------------------------------------------------------------------------
# Registration and login
# ---------------------------------------------------------------------------

def _auth_payload(user) -> dict:
    return {"user": user, "token": create_access_token(user_id=user.id, role=user.role)}


def register(db: Session, *, data: RegisterRequest, ip_address: str) -> dict:
    limit = default_rate_limiter.allow(
        key=f"register:{ip_address}",
        limit=config.REGISTRATIONS_PER_IP_PER_HOUR,
        window_seconds=3600,
    )
    if not limit.allowed:
        logger.warning(f"REGISTER_RATE_LIMITED | ip={ip_address}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many registration attempts. Please try again later.",
            headers={"Retry-After": str(limit.retry_after_seconds)},
        )

    email = data.email.lower()
    if auth_repository.get_user_by_email_ci(db, email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists with this email")

    is_business = data.account_type == "business"
    user = auth_repository.create_user(
        db,
        email=email,
        password_hash=hash_password(data.password),
        account_type=data.account_type,
        first_name=(data.first_name or "").strip() or None,
        last_name=(data.last_name or "").strip() or None,
        company_name=data.company_name if is_business else None,
        business_type=data.business_type if is_business else None,
        tax_id=data.tax_id if is_business else None,
        country=data.country,
        role="user",
    )
    auth_repository.add_security_log(
        db, event_type="user_registered", ip_address=ip_address, details={"email": email}
    )
    try:
        db.flush()
        user_id = user.id
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists with this email")
    db.refresh(user)
    logger.info(f"USER_REGISTERED | user={user_id} | account_type={data.account_type} | ip={ip_address}")
    return _auth_payload(user)


def _maybe_bootstrap_admin(db: Session, *, email: str, password: str):
    """Development-only creation of the first super admin."""
    if not (config.DEBUG and config.ALLOW_ADMIN_BOOTSTRAP and config.ADMIN_BOOTSTRAP_PASSWORD):
        return None
    if email != config.ADMIN_BOOTSTRAP_EMAIL.lower():
        return None
    if not secrets.compare_digest(password, config.ADMIN_BOOTSTRAP_PASSWORD):
        return None
    user = auth_repository.create_user(
        db,
        email=email,
        password_hash=hash_password(password),
        first_name="Super",
        last_name="Admin",
        role="super_admin",
    )
    db.flush()
    logger.warning(f"ADMIN_BOOTSTRAPPED | email={email}")
    return user


def _reject_login(db: Session, *, email: str, ip_address: str, user_id: Optional[str], reason: str):
    auth_repository.record_login_attempt(db, email=email, ip_address=ip_address, success=False)
    auth_repository.add_security_log(
        db, event_type="login_failed", user_id=user_id, ip_address=ip_address,
        details={"email": email, "reason": reason},
    )
    db.commit()
    logger.warning(f"LOGIN_FAILED | email={email} | ip={ip_address} | reason={reason}")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")


def login(db: Session, *, email: str, password: str, ip_address: str) -> dict:
    email = email.lower()

    since = datetime.utcnow() - timedelta(minutes=config.LOGIN_LOCKOUT_MINUTES)
    failures = auth_repository.count_recent_failures(db, email=email, since=since)
    if failures >= config.LOGIN_MAX_FAILURES:
        auth_repository.add_security_log(
            db, event_type="account_locked", ip_address=ip_address,
            details={"email": email, "failures": failures},
        )
        db.commit()
        logger.warning(f"LOGIN_LOCKED | email={email} | ip={ip_address} | failures={failures}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many failed login attempts. Try again in {config.LOGIN_LOCKOUT_MINUTES} minutes.",
        )

    user = auth_repository.get_user_by_email_ci(db, email)
    if not user:
        user = _maybe_bootstrap_admin(db, email=email, password=password)
        if not user:
            _reject_login(db, email=email, ip_address=ip_address, user_id=None, reason="unknown_email")
    elif not verify_password(password, user.password_hash):
        _reject_login(db, email=email, ip_address=ip_address, user_id=user.id, reason="bad_password")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    auth_repository.record_login_attempt(db, email=email, ip_address=ip_address, success=True)
    auth_repository.add_security_log(db, event_type="login_success", user_id=user.id, ip_address=ip_address)
    db.commit()
    db.refresh(user)
    logger.info(f"LOGIN_SUCCESS | user={user.id} | role={user.role} | ip={ip_address}")
    return _auth_payload(user)


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------

def forgot_password(db: Session, *, email: str) -> dict:
    user = auth_repository.get_user_by_email_ci(db, email)
    if not user or not user.is_active:
        return {"message": GENERIC_RESET_MESSAGE}

    token = secrets.token_urlsafe(32)
    expires_at = datetime.utcnow() + timedelta(hours=config.PASSWORD_RESET_TOKEN_HOURS)
    auth_repository.create_reset_token(db, user_id=user.id, token=token, expires_at=expires_at)
    db.commit()

    reset_url = f"{config.SITE_URL.rstrip('/')}/reset-password?token={token}"
    try:
        send_email(
            db,
            to_email=user.email,
            subject="Reset your TSU Wallet password",
            body=password_reset_email(reset_url),
            is_html=True,
        )
    except EmailDeliveryError as e:
        logger.error(f"PASSWORD_RESET_EMAIL_FAILED | user={user.id} | error={e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send password reset email",
        )
    logger.info(f"PASSWORD_RESET_REQUESTED | user={user.id}")
    return {"message": GENERIC_RESET_MESSAGE}


def reset_password(db: Session, *, token: str, new_password: str) -> dict:
    row = auth_repository.get_reset_token(db, token)
    if not row or row.used or row.expires_at < datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    user = auth_repository.get_user_by_id(db, row.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    user.password_hash = hash_password(new_password)
    row.used = True
    auth_repository.add_security_log(db, event_type="password_reset", user_id=user.id)
    db.commit()
    logger.info(f"PASSWORD_RESET_COMPLETED | user={user.id}")
    return {"message": "Password has been reset successfully"}


# ---------------------------------------------------------------------------
# Account data
# ---------------------------------------------------------------------------

def recent_transactions(db: Session, *, user_id: str, limit: int = 10) -> dict:
    return {"transactions": auth_repository.list_recent_transactions(db, user_id=user_id, limit=limit)}


def kyc_status(db: Session, *, user_id: str) -> dict:
    row = auth_repository.get_latest_kyc(db, user_id=user_id)
    if not row:
        return {"status": "not_submitted"}
    return {
        "status": row.status,
        "document_type": row.document_type,
        "submitted_at": row.submitted_at,
        "reviewed_at": row.reviewed_at,
    }


def submit_kyc(db: Session, *, user_id: str, data: KycSubmitRequest) -> dict:
    existing = auth_repository.get_latest_kyc(db, user_id=user_id)
    if existing and existing.status in ("pending", "approved"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"KYC verification already {existing.status}",
        )
    row = auth_repository.create_kyc(
        db,
        user_id=user_id,
        document_type=data.document_type,
        document_number=data.document_number,
        document_url=data.document_url,
        status="pending",
    )
    notify(
        db,
        user_id=user_id,
        title="KYC Submitted",
        message="Your identity documents were received and are pending review.",
        type="info",
    )
    db.commit()
    db.refresh(row)
    logger.info(f"KYC_SUBMITTED | user={user_id} | document_type={data.document_type}")
    return {"status": row.status, "document_type": row.document_type, "submitted_at": row.submitted_at}
