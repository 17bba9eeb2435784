"""Wallet domain repository layer."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session


def get_processed_payment(db: Session, *, payment_reference: str):
    from models import ProcessedPayment

    return (
        db.query(ProcessedPayment)
        .filter(ProcessedPayment.payment_reference == payment_reference)
        .first()
    )


def create_processed_payment(db: Session, **fields):
    from models import ProcessedPayment

    row = ProcessedPayment(**fields)
    db.add(row)
    return row


def create_payment_transaction(db: Session, **fields):
    from models import PaymentTransaction

    row = PaymentTransaction(**fields)
    db.add(row)
    return row


def get_payment_transaction(db: Session, payment_id: int):
    from models import PaymentTransaction

    return db.get(PaymentTransaction, payment_id)


def create_transaction(db: Session, *, metadata=None, **fields):
    from models import Transaction

    row = Transaction(tx_metadata=metadata, **fields)
    db.add(row)
    return row


def get_latest_tsu_rate(db: Session):
    from models import TsuRate

    return db.query(TsuRate).order_by(TsuRate.updated_at.desc(), TsuRate.id.desc()).first()


def list_tsu_rates(db: Session, *, limit: int):
    from models import TsuRate

    return db.query(TsuRate).order_by(TsuRate.updated_at.desc(), TsuRate.id.desc()).limit(limit).all()


def list_exchange_rates(db: Session):
    from models import ExchangeRate

    return db.query(ExchangeRate).order_by(ExchangeRate.currency.asc()).all()


def upsert_exchange_rate(db: Session, *, currency: str, rate_usd: Decimal, source: str):
    from models import ExchangeRate

    row = db.query(ExchangeRate).filter(ExchangeRate.currency == currency).first()
    if row is None:
        row = ExchangeRate(currency=currency, rate_usd=rate_usd, source=source)
        db.add(row)
    else:
        row.rate_usd = rate_usd
        row.source = source
    return row


def get_latest_supply(db: Session):
    from models import CoinSupply

    return db.query(CoinSupply).order_by(CoinSupply.created_at.desc(), CoinSupply.id.desc()).first()


def create_challenge(db: Session, *, user_id: str, chain: str, nonce: str, message: str, expires_at: datetime):
    from models import WalletChallenge

    row = WalletChallenge(user_id=user_id, chain=chain, nonce=nonce, message=message, expires_at=expires_at)
    db.add(row)
    return row


def get_challenge_for_update(db: Session, *, user_id: str, chain: str, nonce: str):
    from models import WalletChallenge

    return (
        db.query(WalletChallenge)
        .filter(
            WalletChallenge.user_id == user_id,
            WalletChallenge.chain == chain,
            WalletChallenge.nonce == nonce,
        )
        .with_for_update()
        .first()
    )
