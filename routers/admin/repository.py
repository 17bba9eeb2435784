"""Admin repository layer."""

from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import CoinSupply, SecurityLog, SmtpConfig, Transaction, TsuRate, User

ADMIN_ROLES = ("admin", "super_admin")


def count_users(db: Session, *, admins: bool) -> int:
    role_filter = User.role.in_(ADMIN_ROLES) if admins else User.role == "user"
    return db.query(func.count(User.id)).filter(role_filter).scalar() or 0


def count_transactions(db: Session) -> int:
    return db.query(func.count(Transaction.id)).scalar() or 0


def list_users(db: Session, *, role: str = "user", limit: int = 500):
    return db.query(User).filter(User.role == role).order_by(User.created_at.desc()).limit(limit).all()


def list_active_users(db: Session):
    return db.query(User).filter(User.is_active.is_(True)).order_by(User.email.asc()).all()


def list_active_users_in_country(db: Session, *, country: str) -> List[User]:
    return (
        db.query(User)
        .filter(User.country == country, User.is_active.is_(True), User.role == "user")
        .order_by(User.id.asc())
        .all()
    )


def get_user(db: Session, *, user_id: str):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email_ci(db: Session, *, email: str):
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def country_stats(db: Session):
    return (
        db.query(
            User.country,
            func.count(User.id),
            func.coalesce(func.sum(User.tsu_balance), 0),
        )
        .filter(User.role == "user", User.country.isnot(None))
        .group_by(User.country)
        .order_by(func.count(User.id).desc())
        .all()
    )


def list_transactions(db: Session, *, limit: int):
    return db.query(Transaction).order_by(Transaction.created_at.desc(), Transaction.id.desc()).limit(limit).all()


def list_security_logs(db: Session, *, limit: int, event_type=None):
    query = db.query(SecurityLog)
    if event_type:
        query = query.filter(SecurityLog.event_type == event_type)
    return query.order_by(SecurityLog.created_at.desc(), SecurityLog.id.desc()).limit(limit).all()


def get_latest_supply_for_update(db: Session):
    return (
        db.query(CoinSupply)
        .order_by(CoinSupply.created_at.desc(), CoinSupply.id.desc())
        .with_for_update()
        .first()
    )


def create_supply(db: Session, **fields):
    row = CoinSupply(**fields)
    db.add(row)
    return row


def create_ledger_entry(db: Session, *, metadata=None, **fields):
    row = Transaction(tx_metadata=metadata, **fields)
    db.add(row)
    return row


def create_tsu_rate(db: Session, **fields):
    row = TsuRate(**fields)
    db.add(row)
    return row


def get_smtp_config(db: Session):
    return db.query(SmtpConfig).order_by(SmtpConfig.updated_at.desc(), SmtpConfig.id.desc()).first()


def save_smtp_config(db: Session, *, updated_by: str, **fields):
    row = get_smtp_config(db)
    if row is None:
        row = SmtpConfig(updated_by=updated_by, **fields)
        db.add(row)
        return row
    for name, value in fields.items():
        setattr(row, name, value)
    row.updated_by = updated_by
    return row
