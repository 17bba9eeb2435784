"""Auth repository layer."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import (
    KycVerification,
    LoginAttempt,
    PasswordResetToken,
    SecurityLog,
    Transaction,
    User,
)


def get_user_by_id(db: Session, user_id: str):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_id_for_update(db: Session, user_id: str):
    return db.query(User).filter(User.id == user_id).with_for_update().first()


def get_users_by_ids_for_update(db: Session, user_ids: List[str]):
    return (
        db.query(User)
        .filter(User.id.in_(user_ids))
        .order_by(User.id.asc())
        .with_for_update()
        .all()
    )


def get_user_by_email_ci(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def create_user(db: Session, **fields):
    user = User(**fields)
    db.add(user)
    return user


def record_login_attempt(db: Session, *, email: str, ip_address: Optional[str], success: bool):
    attempt = LoginAttempt(email=email.lower(), ip_address=ip_address, success=success)
    db.add(attempt)
    return attempt


def count_recent_failures(db: Session, *, email: str, since: datetime) -> int:
    last_success = (
        db.query(func.max(LoginAttempt.attempted_at))
        .filter(LoginAttempt.email == email.lower(), LoginAttempt.success.is_(True))
        .scalar()
    )
    window_start = max(since, last_success) if last_success else since
    return (
        db.query(func.count(LoginAttempt.id))
        .filter(
            LoginAttempt.email == email.lower(),
            LoginAttempt.success.is_(False),
            LoginAttempt.attempted_at > window_start,
        )
        .scalar()
        or 0
    )


def add_security_log(
    db: Session,
    *,
    event_type: str,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict] = None,
):
    entry = SecurityLog(user_id=user_id, event_type=event_type, ip_address=ip_address, details=details)
    db.add(entry)
    return entry


def create_reset_token(db: Session, *, user_id: str, token: str, expires_at: datetime):
    row = PasswordResetToken(user_id=user_id, token=token, expires_at=expires_at)
    db.add(row)
    return row


def get_reset_token(db: Session, token: str):
    return db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()


def list_recent_transactions(db: Session, *, user_id: str, limit: int):
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )


def get_latest_kyc(db: Session, *, user_id: str):
    return (
        db.query(KycVerification)
        .filter(KycVerification.user_id == user_id)
        .order_by(KycVerification.submitted_at.desc(), KycVerification.id.desc())
        .first()
    )


def create_kyc(db: Session, **fields):
    row = KycVerification(**fields)
    db.add(row)
    return row
