"""Admin service layer."""

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from auth import hash_password
from core.notifications import notify
from core.payments import credit_balance, get_latest_supply
from utils import storage
from utils.email_service import EmailDeliveryError, load_smtp_settings, send_email

from . import repository as admin_repository
from .schemas import (
    BalanceAdjustRequest,
    CreateCoinsRequest,
    DistributeCoinsRequest,
    RegisterAdminRequest,
    SendEmailRequest,
    SmtpConfigRequest,
    UpdateTsuRateRequest,
)

logger = logging.getLogger(__name__)

TSU_QUANT = Decimal("0.00000001")
TREASURY_ADDRESS = "TSU Treasury"
SUPPLY_FIELDS = (
    "total_supply",
    "circulating_supply",
    "reserve_gold",
    "reserve_brics",
    "reserve_commodities",
    "reserve_african",
)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def get_stats(db: Session):
    supply = get_latest_supply(db)
    return {
        "total_users": admin_repository.count_users(db, admins=False),
        "total_admins": admin_repository.count_users(db, admins=True),
        "total_transactions": admin_repository.count_transactions(db),
        "total_supply": supply.total_supply if supply else Decimal("0"),
        "circulating_supply": supply.circulating_supply if supply else Decimal("0"),
    }


def list_users(db: Session):
    return admin_repository.list_users(db, role="user")


def list_user_emails(db: Session):
    return admin_repository.list_active_users(db)


def list_transactions(db: Session, *, limit: int = 50):
    return admin_repository.list_transactions(db, limit=limit)


def list_security_logs(db: Session, *, limit: int = 100, event_type: Optional[str] = None):
    return admin_repository.list_security_logs(db, limit=limit, event_type=event_type)


def get_country_stats(db: Session):
    return [
        {
            "country": country,
            "user_count": user_count,
            "total_balance": f"{Decimal(str(total or 0)):.8f}",
        }
        for country, user_count, total in admin_repository.country_stats(db)
    ]


# ---------------------------------------------------------------------------
# User management (super admin)
# ---------------------------------------------------------------------------

def _get_user_or_404(db: Session, user_id: str):
    user = admin_repository.get_user(db, user_id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def promote_user(db: Session, *, actor, user_id: str, role: str):
    if user_id == actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")
    user = _get_user_or_404(db, user_id)
    previous = user.role
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info(f"ROLE_CHANGED | user={user_id} | from={previous} | to={role} | by={actor.id}")
    return user


def delete_user(db: Session, *, actor, user_id: str):
    if user_id == actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    user = _get_user_or_404(db, user_id)
    if user.role == "super_admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin accounts cannot be deleted")
    email = user.email
    db.delete(user)
    db.commit()
    logger.warning(f"USER_DELETED | user={user_id} | email={email} | by={actor.id}")
    return {"message": f"User {email} deleted"}


def register_admin(db: Session, *, actor, data: RegisterAdminRequest):
    if admin_repository.get_user_by_email_ci(db, email=data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists with this email")
    from models import User

    user = User(
        email=data.email.lower(),
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"ADMIN_REGISTERED | user={user.id} | role={data.role} | by={actor.id}")
    return user


def reset_admin_password(db: Session, *, actor, user_id: str, new_password: str):
    user = _get_user_or_404(db, user_id)
    if user.role not in admin_repository.ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password reset is only available for admin accounts",
        )
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info(f"ADMIN_PASSWORD_RESET | user={user_id} | by={actor.id}")
    return {"message": "Password reset successfully"}


# ---------------------------------------------------------------------------
# Treasury
# ---------------------------------------------------------------------------

def create_coins(db: Session, *, actor, data: CreateCoinsRequest):
    if data.circulating_supply > data.total_supply:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Circulating supply cannot exceed total supply",
        )
    supply = admin_repository.create_supply(db, created_by=actor.id, **data.model_dump())
    admin_repository.create_ledger_entry(
        db,
        user_id=actor.id,
        type="creation",
        amount=data.total_supply,
        currency="TSU",
        from_address=TREASURY_ADDRESS,
        status="completed",
        description=f"Created {data.total_supply} TSU supply",
        metadata={"reserves": {k: str(v) for k, v in data.model_dump().items() if k.startswith("reserve_")}},
    )
    db.commit()
    db.refresh(supply)
    logger.info(f"SUPPLY_CREATED | total={data.total_supply} | by={actor.id}")
    return supply


def _next_supply_row(db: Session, *, actor, current, **overrides):
    fields = {name: getattr(current, name) if current else Decimal("0") for name in SUPPLY_FIELDS}
    fields.update(overrides)
    return admin_repository.create_supply(db, created_by=actor.id, **fields)


def adjust_supply(db: Session, *, actor, data: BalanceAdjustRequest):
    """Move total and circulating supply together by `data.amount`."""
    current = admin_repository.get_latest_supply_for_update(db)
    total = Decimal(current.total_supply) if current else Decimal("0")
    circulating = Decimal(current.circulating_supply) if current else Decimal("0")

    sign = 1 if data.operation == "increase" else -1
    new_total = total + sign * data.amount
    new_circulating = circulating + sign * data.amount
    if new_total < 0 or new_circulating < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot reduce supply below zero")

    supply = _next_supply_row(
        db, actor=actor, current=current, total_supply=new_total, circulating_supply=new_circulating
    )
    verb = "Created" if data.operation == "increase" else "Destroyed"
    admin_repository.create_ledger_entry(
        db,
        user_id=actor.id,
        type="creation" if data.operation == "increase" else "sale",
        amount=data.amount,
        currency="TSU",
        from_address=TREASURY_ADDRESS,
        status="completed",
        description=data.reason or f"{verb} {data.amount} TSU coins",
        metadata={
            "operation": data.operation,
            "previousTotal": str(total),
            "newTotal": str(new_total),
            "previousCirculating": str(circulating),
            "newCirculating": str(new_circulating),
        },
    )
    db.commit()
    db.refresh(supply)
    logger.info(
        f"SUPPLY_ADJUSTED | op={data.operation} | amount={data.amount} | total={new_total} | circulating={new_circulating} | by={actor.id}"
    )
    return {"new_supply": supply, "message": "Balance adjusted successfully"}


def distribute_coins(db: Session, *, actor, data: DistributeCoinsRequest):
    recipients = admin_repository.list_active_users_in_country(db, country=data.country)
    if not recipients:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active users found in this country")

    per_user = (data.amount / len(recipients)).quantize(TSU_QUANT, rounding=ROUND_DOWN)
    if per_user <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount is too small to distribute")
    total_distributed = per_user * len(recipients)

    current = admin_repository.get_latest_supply_for_update(db)
    if not current:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No coin supply has been created")
    available = Decimal(current.total_supply) - Decimal(current.circulating_supply)
    if total_distributed > available:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient uncirculated supply")

    reason = data.reason or f"TSU distribution to {data.country}"
    for user in recipients:
        credit_balance(
            db,
            user_id=user.id,
            amount=per_user,
            tx_type="transfer",
            description=reason,
            from_address=TREASURY_ADDRESS,
            metadata={"distribution": data.country, "distributedBy": actor.id},
        )
        notify(
            db,
            user_id=user.id,
            title="TSU Received",
            message=f"You received {per_user} TSU: {reason}",
            type="transaction",
        )

    _next_supply_row(
        db,
        actor=actor,
        current=current,
        circulating_supply=Decimal(current.circulating_supply) + total_distributed,
    )
    db.commit()
    logger.info(
        f"COINS_DISTRIBUTED | country={data.country} | recipients={len(recipients)} | per_user={per_user} | by={actor.id}"
    )
    return {
        "message": "Coins distributed successfully",
        "distributed_to": len(recipients),
        "amount_per_user": per_user,
        "total_distributed": total_distributed,
    }


def update_tsu_rate(db: Session, *, actor, data: UpdateTsuRateRequest):
    row = admin_repository.create_tsu_rate(db, updated_by=actor.id, **data.model_dump())
    db.commit()
    db.refresh(row)
    logger.info(f"TSU_RATE_UPDATED | price={data.tsu_price} | by={actor.id}")
    return row


# ---------------------------------------------------------------------------
# Communications
# ---------------------------------------------------------------------------

def send_bulk_email(db: Session, *, actor, data: SendEmailRequest):
    settings = load_smtp_settings(db)
    success_count = 0
    errors = []
    for recipient in data.recipients:
        try:
            send_email(
                db,
                to_email=recipient,
                subject=data.subject,
                body=data.message,
                is_html=data.is_html,
                settings=settings,
            )
            success_count += 1
        except EmailDeliveryError as e:
            errors.append(f"{recipient}: {e}")

    failure_count = len(errors)
    logger.info(f"BULK_EMAIL | by={actor.id} | sent={success_count} | failed={failure_count}")
    return {
        "message": f"Sent {success_count} of {len(data.recipients)} emails",
        "success_count": success_count,
        "failure_count": failure_count,
        "errors": errors,
    }


def get_smtp_config(db: Session):
    row = admin_repository.get_smtp_config(db)
    if not row:
        return {"configured": False}
    return {
        "configured": True,
        "host": row.host,
        "port": row.port,
        "secure": row.secure,
        "username": row.username,
        "from_email": row.from_email,
        "from_name": row.from_name,
        "is_active": row.is_active,
        "has_password": bool(row.password),
        "updated_at": row.updated_at,
    }


def save_smtp_config(db: Session, *, actor, data: SmtpConfigRequest):
    fields = data.model_dump()
    password = fields.pop("password")
    existing = admin_repository.get_smtp_config(db)
    if password:
        fields["password"] = password
    elif not existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SMTP password is required")
    admin_repository.save_smtp_config(db, updated_by=actor.id, **fields)
    db.commit()
    logger.info(f"SMTP_CONFIG_SAVED | host={data.host} | by={actor.id}")
    return get_smtp_config(db)


def send_smtp_test(db: Session, *, actor, to_email: str):
    if not load_smtp_settings(db):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SMTP is not configured")
    try:
        send_email(
            db,
            to_email=to_email,
            subject="TSU Wallet SMTP test",
            body="This is a test email confirming your SMTP configuration works.",
        )
    except EmailDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"SMTP test failed: {e}")
    logger.info(f"SMTP_TEST_SENT | to={to_email} | by={actor.id}")
    return {"message": f"Test email sent to {to_email}"}


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

def create_image_upload(*, content_type: str, filename: Optional[str]):
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image files are allowed")
    try:
        result = storage.presign_image_upload(content_type=content_type, filename=filename)
    except storage.StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return {
        "upload_url": result["uploadURL"],
        "object_key": result["objectKey"],
        "public_url": result["publicURL"],
    }
