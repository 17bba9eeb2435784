"""Wallet ledger facade for other domains."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session


def credit_balance(
    db: Session,
    *,
    user_id: str,
    amount: Decimal,
    tx_type: str,
    description: str,
    metadata: Optional[dict] = None,
    from_address: Optional[str] = None,
):
    from routers.wallet import service as wallet_service

    return wallet_service.apply_balance_change(
        db,
        user_id=user_id,
        delta=amount,
        tx_type=tx_type,
        description=description,
        metadata=metadata,
        from_address=from_address,
    )


def get_current_tsu_price(db: Session) -> Decimal:
    from routers.wallet import service as wallet_service

    return wallet_service.get_current_tsu_price(db)


def get_latest_supply(db: Session):
    from routers.wallet import service as wallet_service

    return wallet_service.get_latest_supply(db)
